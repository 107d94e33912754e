"""One-time upgrades for persisted glossaries."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from subweave.glossary.manager import new_glossary_id, now_iso
from subweave.glossary.validator import validate_glossary_item
from subweave.models.glossary import Glossary, GlossaryItem
from subweave.utils.language import DEFAULT_LANGUAGE, LanguageDetector, detect_glossary_language

logger = logging.getLogger(__name__)

LEGACY_GLOSSARY_NAME = "Default"


def migrate_glossary_language(
    glossary: Glossary,
    fallback_language: str | None = None,
    *,
    detector: LanguageDetector | None = None,
) -> Glossary:
    """Fill in `target_language` when missing.

    Detected from the translations when there are terms; otherwise the
    fallback (or English) is used.
    """
    if glossary.target_language:
        return glossary
    if glossary.terms:
        language = detect_glossary_language(glossary, detector)
    else:
        language = fallback_language or DEFAULT_LANGUAGE
    logger.info("glossary %s: target_language set to %s", glossary.id, language)
    return replace(glossary, terms=list(glossary.terms), target_language=language)


def migrate_all_glossaries(
    glossaries: Sequence[Glossary],
    fallback_language: str | None = None,
    *,
    detector: LanguageDetector | None = None,
) -> tuple[list[Glossary], bool]:
    """Migrate every glossary; returns the new list and whether anything changed."""
    changed = False
    out: list[Glossary] = []
    for g in glossaries:
        if g.target_language:
            out.append(g)
            continue
        changed = True
        out.append(migrate_glossary_language(g, fallback_language, detector=detector))
    return out, changed


def migrate_from_legacy_glossary(legacy_items: Sequence[GlossaryItem]) -> Glossary:
    """Wrap a pre-multi-glossary flat term list into a named glossary."""
    now = now_iso()
    return Glossary(
        id=new_glossary_id(),
        name=LEGACY_GLOSSARY_NAME,
        terms=[item for item in (validate_glossary_item(x) for x in legacy_items) if item is not None],
        created_at=now,
        updated_at=now,
    )
