"""Glossary-based terminology checks.

A term is checked only on subtitles whose original text contains it
(case-insensitive). The translation must then contain the expected
translation as a literal substring, so valid paraphrases are reported and
coincidental substrings pass. This is a known precision limit.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from subweave.models.glossary import GlossaryItem
from subweave.models.subtitle import SubtitleItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TermOccurrence:
    segment_id: str
    text: str
    found: str


@dataclass
class TerminologyIssue:
    term: str
    expected: str
    occurrences: list[TermOccurrence] = field(default_factory=list)


def check_terminology(
    subtitles: Sequence[SubtitleItem],
    glossary: Iterable[GlossaryItem],
) -> list[TerminologyIssue]:
    """Return one issue per glossary term with at least one missing translation."""
    issues: list[TerminologyIssue] = []
    for item in glossary:
        if not item.term:
            continue
        pattern = re.compile(re.escape(item.term), re.IGNORECASE)
        occurrences = [
            TermOccurrence(segment_id=sub.id, text=sub.translated, found=f"Missing: {item.translation}")
            for sub in subtitles
            if sub.original
            and pattern.search(sub.original)
            and sub.translated
            and item.translation not in sub.translated
        ]
        if occurrences:
            issues.append(TerminologyIssue(term=item.term, expected=item.translation, occurrences=occurrences))
    return issues


class TerminologyChecker:
    """Holds the active glossary and checks subtitles against it."""

    def __init__(self, glossary: Iterable[GlossaryItem] | None = None) -> None:
        self._glossary: list[GlossaryItem] = list(glossary or [])

    def set_glossary(self, glossary: Iterable[GlossaryItem]) -> None:
        self._glossary = list(glossary)

    def get_glossary(self) -> list[GlossaryItem]:
        return list(self._glossary)

    def _find(self, term: str) -> int:
        key = term.lower()
        for i, item in enumerate(self._glossary):
            if item.term.lower() == key:
                return i
        return -1

    def add_term(self, term: str, translation: str, notes: str | None = None) -> None:
        """Add a term, replacing an existing entry with the same term (case-insensitive)."""
        entry = GlossaryItem(term=term, translation=translation, notes=notes)
        index = self._find(term)
        if index >= 0:
            self._glossary[index] = entry
        else:
            self._glossary.append(entry)
        logger.debug("added glossary term %r -> %r", term, translation)

    def remove_term(self, term: str) -> None:
        key = term.lower()
        self._glossary = [g for g in self._glossary if g.term.lower() != key]
        logger.debug("removed glossary term %r", term)

    def check(self, subtitles: Sequence[SubtitleItem]) -> list[TerminologyIssue]:
        logger.info(
            "checking terminology (subtitles=%d, terms=%d)", len(subtitles), len(self._glossary)
        )
        return check_terminology(subtitles, self._glossary)
