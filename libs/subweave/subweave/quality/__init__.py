"""Post-translation quality checks."""

from subweave.quality.consistency import (
    ConsistencyIssue,
    ConsistencyValidator,
    IssueSeverity,
    IssueType,
)
from subweave.quality.terminology import (
    TermOccurrence,
    TerminologyChecker,
    TerminologyIssue,
    check_terminology,
)

__all__ = [
    "ConsistencyIssue",
    "ConsistencyValidator",
    "IssueSeverity",
    "IssueType",
    "TermOccurrence",
    "TerminologyChecker",
    "TerminologyIssue",
    "check_terminology",
]
