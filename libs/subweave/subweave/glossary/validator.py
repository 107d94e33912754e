"""Per-item glossary validation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from subweave.models.glossary import GlossaryItem


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def validate_glossary_item(raw: GlossaryItem | Mapping[str, Any] | Any) -> GlossaryItem | None:
    """Return a trimmed copy of `raw`, or None when term or translation is empty.

    Never raises; malformed entries are simply rejected.
    """
    if isinstance(raw, GlossaryItem):
        term, translation, notes = raw.term, raw.translation, raw.notes
    elif isinstance(raw, Mapping):
        term, translation, notes = raw.get("term"), raw.get("translation"), raw.get("notes")
    else:
        return None

    term = _clean(term)
    translation = _clean(translation)
    if not term or not translation:
        return None
    return GlossaryItem(term=term, translation=translation, notes=_clean(notes) or None)
