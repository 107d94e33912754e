"""Snapshot history.

Newest first; once `max_snapshots` is exceeded the oldest entry is evicted.
Every capture deep-copies its inputs, so later edits to the working set never
reach a stored snapshot.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import uuid
from collections import deque
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from subweave.models.subtitle import SpeakerProfile, SubtitleItem, SubtitleSnapshot

logger = logging.getLogger(__name__)

DEFAULT_MAX_SNAPSHOTS = 20
AUTO_SAVE_LABEL = "Auto save"


def compute_content_hash(subtitles: Sequence[SubtitleItem], comments: Mapping[str, str]) -> str:
    payload = {
        "subtitles": [
            [s.id, s.start, s.end, s.original, s.translated, s.comment or "", s.speaker or ""]
            for s in subtitles
        ],
        "comments": sorted((str(k), str(v)) for k, v in comments.items()),
    }
    raw = json.dumps(payload, ensure_ascii=False, sort_keys=True)
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class SnapshotStore:
    def __init__(
        self,
        max_snapshots: int = DEFAULT_MAX_SNAPSHOTS,
        snapshots: Iterable[SubtitleSnapshot] = (),
    ) -> None:
        if int(max_snapshots) < 1:
            raise ValueError("max_snapshots must be >= 1")
        self.max_snapshots = int(max_snapshots)
        self._snapshots: deque[SubtitleSnapshot] = deque(snapshots, maxlen=self.max_snapshots)
        self._last_hash = ""

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[SubtitleSnapshot]:
        return iter(list(self._snapshots))

    @property
    def snapshots(self) -> list[SubtitleSnapshot]:
        """Most recent first."""
        return list(self._snapshots)

    def get(self, snapshot_id: str) -> SubtitleSnapshot | None:
        return next((s for s in self._snapshots if s.id == snapshot_id), None)

    def create_snapshot(
        self,
        description: str,
        subtitles: Sequence[SubtitleItem],
        comments: Mapping[str, str] | None = None,
        file_id: str = "",
        file_name: str = "",
        speaker_profiles: Sequence[SpeakerProfile] | None = None,
    ) -> SubtitleSnapshot:
        comments = dict(comments or {})
        snapshot = SubtitleSnapshot(
            id=uuid.uuid4().hex,
            description=description,
            subtitles=copy.deepcopy(list(subtitles)),
            comments=comments,
            speaker_profiles=copy.deepcopy(list(speaker_profiles or [])),
            file_id=file_id,
            file_name=file_name,
        )
        self._snapshots.appendleft(snapshot)
        self._last_hash = compute_content_hash(subtitles, comments)
        logger.debug("snapshot created (id=%s, description=%r, items=%d)", snapshot.id, description, len(subtitles))
        return snapshot

    def create_auto_save_snapshot(
        self,
        subtitles: Sequence[SubtitleItem],
        comments: Mapping[str, str] | None = None,
        file_id: str = "",
        file_name: str = "",
        speaker_profiles: Sequence[SpeakerProfile] | None = None,
    ) -> bool:
        """Capture only when the working set is non-empty and changed since the last capture."""
        if not subtitles:
            return False
        if compute_content_hash(subtitles, dict(comments or {})) == self._last_hash:
            return False
        self.create_snapshot(AUTO_SAVE_LABEL, subtitles, comments, file_id, file_name, speaker_profiles)
        return True

    def delete_snapshot(self, snapshot_id: str) -> bool:
        target = self.get(snapshot_id)
        if target is None:
            return False
        self._snapshots.remove(target)
        return True

    def clear_snapshots(self) -> None:
        self._snapshots.clear()
        self._last_hash = ""

    def to_list(self) -> list[dict[str, Any]]:
        """Serializable history for an external persistence layer."""
        return [s.to_dict() for s in self._snapshots]

    @classmethod
    def from_list(cls, items: Iterable[Mapping[str, Any]], max_snapshots: int = DEFAULT_MAX_SNAPSHOTS) -> "SnapshotStore":
        return cls(max_snapshots, [SubtitleSnapshot.from_dict(dict(x)) for x in items])
