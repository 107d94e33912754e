"""Rule-based consistency checks for translated CJK subtitles.

Checks are independent; one subtitle may produce several issues. Severity is
fixed per check type.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from subweave.models.subtitle import SubtitleItem

MAX_LINE_LENGTH = 35

_IDEOGRAPH = re.compile(r"[\u4e00-\u9fa5]")
_HALF_WIDTH_COMMA = re.compile(r",(?!\d)")
# A lone period; runs of dots are ellipses.
_HALF_WIDTH_PERIOD = re.compile(r"(?<!\.)\.(?![.\d])")
_MISSING_SPACE = re.compile(r"[\u4e00-\u9fa5][a-zA-Z0-9]|[a-zA-Z0-9][\u4e00-\u9fa5]")
_OPEN_BRACKETS = re.compile(r"[（【《]")
_CLOSE_BRACKETS = re.compile(r"[）】》]")


class IssueType(str, Enum):
    PUNCTUATION = "punctuation"
    SPACING = "spacing"
    LENGTH = "length"
    BRACKETS = "brackets"


class IssueSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ConsistencyIssue:
    type: IssueType
    segment_id: str
    description: str
    severity: IssueSeverity
    # Stable key for the presentation layer to localize `description`.
    message_key: str = ""


def _issue(sub: SubtitleItem, kind: IssueType, key: str, description: str) -> ConsistencyIssue:
    return ConsistencyIssue(
        type=kind,
        segment_id=sub.id,
        description=description,
        severity=_SEVERITY[kind],
        message_key=f"consistency.{key}",
    )


_SEVERITY = {
    IssueType.PUNCTUATION: IssueSeverity.LOW,
    IssueType.SPACING: IssueSeverity.LOW,
    IssueType.LENGTH: IssueSeverity.MEDIUM,
    IssueType.BRACKETS: IssueSeverity.MEDIUM,
}


class ConsistencyValidator:
    """Stateless validator; `validate` never raises on content."""

    @staticmethod
    def validate(subtitles: Sequence[SubtitleItem]) -> list[ConsistencyIssue]:
        issues: list[ConsistencyIssue] = []
        for sub in subtitles:
            text = sub.translated
            if not text:
                continue
            issues.extend(ConsistencyValidator.check_punctuation(sub))
            if _MISSING_SPACE.search(text):
                issues.append(
                    _issue(sub, IssueType.SPACING, "missing_space", "Missing space between Chinese and English/Number")
                )
            if len(text) > MAX_LINE_LENGTH:
                issues.append(
                    _issue(
                        sub,
                        IssueType.LENGTH,
                        "line_too_long",
                        f"Line is very long (>{MAX_LINE_LENGTH} chars), consider splitting",
                    )
                )
            if len(_OPEN_BRACKETS.findall(text)) != len(_CLOSE_BRACKETS.findall(text)):
                issues.append(_issue(sub, IssueType.BRACKETS, "mismatched_brackets", "Mismatched brackets detected"))
        return issues

    @staticmethod
    def check_punctuation(sub: SubtitleItem) -> list[ConsistencyIssue]:
        text = sub.translated
        if not _IDEOGRAPH.search(text):
            return []
        out: list[ConsistencyIssue] = []
        if _HALF_WIDTH_COMMA.search(text):
            out.append(
                _issue(sub, IssueType.PUNCTUATION, "half_width_comma", "Possible half-width comma used in Chinese text")
            )
        if _HALF_WIDTH_PERIOD.search(text):
            out.append(
                _issue(sub, IssueType.PUNCTUATION, "half_width_period", "Possible half-width period used in Chinese text")
            )
        return out
