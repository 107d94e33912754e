"""Subtitle, speaker and snapshot models."""

from __future__ import annotations

import copy
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_subtitle_id() -> str:
    """Short 4-char base-36 token; unique enough within one subtitle set."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(4))


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class SubtitleItem:
    id: str
    start: float
    end: float
    original: str
    translated: str = ""
    speaker: str | None = None
    comment: str | None = None
    alignment_score: float | None = None
    low_confidence: bool = False

    @property
    def duration(self) -> float:
        return max(0.0, float(self.end) - float(self.start))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "start": float(self.start),
            "end": float(self.end),
            "original": self.original,
            "translated": self.translated,
        }
        if self.speaker is not None:
            out["speaker"] = self.speaker
        if self.comment is not None:
            out["comment"] = self.comment
        if self.alignment_score is not None:
            out["alignment_score"] = float(self.alignment_score)
            out["low_confidence"] = bool(self.low_confidence)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubtitleItem":
        score = data.get("alignment_score")
        return cls(
            id=str(data.get("id") or generate_subtitle_id()),
            start=float(data["start"]),
            end=float(data["end"]),
            original=str(data.get("original") or ""),
            translated=str(data.get("translated") or ""),
            speaker=data.get("speaker") or None,
            comment=data.get("comment") or None,
            alignment_score=float(score) if score is not None else None,
            low_confidence=bool(data.get("low_confidence", False)),
        )


@dataclass
class SpeakerProfile:
    id: str
    name: str
    color: str | None = None
    is_standard: bool | None = None
    short_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "is_standard": self.is_standard,
            "short_id": self.short_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpeakerProfile":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            color=data.get("color"),
            is_standard=data.get("is_standard"),
            short_id=data.get("short_id"),
        )


@dataclass(frozen=True)
class SubtitleSnapshot:
    """Deep-copied checkpoint of a working subtitle set.

    Holders must treat the contained lists as read-only; `SnapshotStore` hands
    out copies on restore.
    """

    id: str
    description: str
    subtitles: list[SubtitleItem]
    comments: dict[str, str] = field(default_factory=dict)
    speaker_profiles: list[SpeakerProfile] = field(default_factory=list)
    file_id: str = ""
    file_name: str = ""
    created_at: datetime = field(default_factory=_utcnow)

    def copy_subtitles(self) -> list[SubtitleItem]:
        return copy.deepcopy(self.subtitles)

    def copy_comments(self) -> dict[str, str]:
        return dict(self.comments)

    def copy_speaker_profiles(self) -> list[SpeakerProfile]:
        return copy.deepcopy(self.speaker_profiles)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "description": self.description,
            "subtitles": [s.to_dict() for s in self.subtitles],
            "comments": dict(self.comments),
            "speaker_profiles": [p.to_dict() for p in self.speaker_profiles],
            "file_id": self.file_id,
            "file_name": self.file_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubtitleSnapshot":
        created_raw = data.get("created_at")
        return cls(
            id=str(data["id"]),
            description=str(data.get("description") or ""),
            subtitles=[SubtitleItem.from_dict(x) for x in list(data.get("subtitles") or [])],
            comments={str(k): str(v) for k, v in dict(data.get("comments") or {}).items()},
            speaker_profiles=[
                SpeakerProfile.from_dict(x) for x in list(data.get("speaker_profiles") or [])
            ],
            file_id=str(data.get("file_id") or ""),
            file_name=str(data.get("file_name") or ""),
            created_at=datetime.fromisoformat(created_raw) if created_raw else _utcnow(),
        )
