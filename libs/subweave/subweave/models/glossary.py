"""Glossary models.

The dict shape matches the glossary JSON export format (camelCase keys).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class GlossaryItem:
    term: str
    translation: str
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"term": self.term, "translation": self.translation}
        if self.notes:
            out["notes"] = self.notes
        return out


@dataclass
class Glossary:
    id: str
    name: str
    terms: list[GlossaryItem] = field(default_factory=list)
    target_language: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "terms": [t.to_dict() for t in self.terms],
        }
        if self.target_language:
            out["targetLanguage"] = self.target_language
        out["createdAt"] = self.created_at
        out["updatedAt"] = self.updated_at
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Glossary":
        """Load a trusted (already persisted) glossary; imports go through the manager."""
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            terms=[
                GlossaryItem(
                    term=str(t.get("term") or ""),
                    translation=str(t.get("translation") or ""),
                    notes=t.get("notes") or None,
                )
                for t in list(data.get("terms") or [])
            ],
            target_language=data.get("targetLanguage") or data.get("target_language") or None,
            created_at=str(data.get("createdAt") or data.get("created_at") or ""),
            updated_at=str(data.get("updatedAt") or data.get("updated_at") or ""),
        )


@dataclass
class GlossaryExtractionResult:
    """Terms proposed by one extraction pass (one chunk or the whole file)."""

    terms: list[GlossaryItem]
    source: str = "chunk"  # "chunk" | "full"
    chunk_index: int | None = None
    confidence: str | None = None  # "high" | "medium" | "low"
