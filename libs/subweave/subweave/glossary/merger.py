"""Merge glossary extraction results from several passes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from subweave.models.glossary import GlossaryExtractionResult, GlossaryItem


@dataclass
class GlossaryConflict:
    term: str
    options: list[GlossaryItem]
    has_existing: bool


@dataclass
class GlossaryMergeResult:
    unique: list[GlossaryItem] = field(default_factory=list)
    duplicates: dict[str, list[GlossaryItem]] = field(default_factory=dict)
    conflicts: list[GlossaryConflict] = field(default_factory=list)


def _key(term: str) -> str:
    return term.strip().lower()


def merge_glossary_results(
    results: Sequence[GlossaryExtractionResult],
    existing: Sequence[GlossaryItem] = (),
) -> GlossaryMergeResult:
    """Deduplicate terms by case-insensitive key.

    Same translation everywhere -> one unique entry (the existing one wins).
    Different translations -> a conflict for the user to resolve.
    """
    by_key: dict[str, list[GlossaryItem]] = {}
    for result in results:
        for item in result.terms:
            by_key.setdefault(_key(item.term), []).append(item)

    existing_by_key = {_key(item.term): item for item in existing}
    merged = GlossaryMergeResult()

    for key, items in by_key.items():
        current = existing_by_key.get(key)
        options = [current, *items] if current is not None else list(items)
        if len(options) == 1:
            merged.unique.append(options[0])
            continue
        if len({o.translation for o in options}) == 1:
            merged.unique.append(current or items[0])
            merged.duplicates[key] = list(items)
            continue
        merged.conflicts.append(
            GlossaryConflict(
                term=current.term if current is not None else items[0].term,
                options=options,
                has_existing=current is not None,
            )
        )
    return merged
