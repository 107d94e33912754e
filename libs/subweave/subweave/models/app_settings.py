"""Persisted user settings (the opaque blob behind the settings store)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from subweave.models.glossary import Glossary, GlossaryItem


@dataclass
class AppSettings:
    glossaries: list[Glossary] = field(default_factory=list)
    active_glossary_id: str | None = None
    # Runtime override (e.g. terms confirmed for a single run); wins over the active glossary.
    glossary_override: list[GlossaryItem] = field(default_factory=list)
    target_language: str | None = None
    alignment_mode: str = "none"
    aligner_path: str = ""
    alignment_model_path: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def alignment_config(self) -> dict[str, Any]:
        return {
            "mode": self.alignment_mode,
            "aligner_path": self.aligner_path,
            "model_path": self.alignment_model_path,
        }

    def to_dict(self) -> dict[str, Any]:
        out = dict(self.extra)
        out.update(
            {
                "glossaries": [g.to_dict() for g in self.glossaries],
                "activeGlossaryId": self.active_glossary_id,
                "targetLanguage": self.target_language,
                "alignmentMode": self.alignment_mode,
                "alignerPath": self.aligner_path,
                "alignmentModelPath": self.alignment_model_path,
            }
        )
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        known = {
            "glossaries",
            "activeGlossaryId",
            "targetLanguage",
            "alignmentMode",
            "alignerPath",
            "alignmentModelPath",
        }
        return cls(
            glossaries=[Glossary.from_dict(g) for g in list(data.get("glossaries") or []) if g.get("id")],
            active_glossary_id=data.get("activeGlossaryId") or None,
            target_language=data.get("targetLanguage") or None,
            alignment_mode=str(data.get("alignmentMode") or "none"),
            aligner_path=str(data.get("alignerPath") or ""),
            alignment_model_path=str(data.get("alignmentModelPath") or ""),
            extra={k: v for k, v in data.items() if k not in known},
        )
