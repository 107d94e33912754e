"""Canonical error codes surfaced to callers and the presentation layer."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"

    # User-actionable
    INVALID_API_KEY = "INVALID_API_KEY"
    RATE_LIMITED = "RATE_LIMITED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    BILLING_REQUIRED = "BILLING_REQUIRED"
    REGION_RESTRICTED = "REGION_RESTRICTED"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    NO_SUBTITLES = "NO_SUBTITLES"

    # Pipeline
    CANCELLED = "CANCELLED"
    TIMEOUT = "TIMEOUT"
    TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
    ALIGNMENT_FAILED = "ALIGNMENT_FAILED"
    TRANSLATION_FAILED = "TRANSLATION_FAILED"
    PROVIDER_FAILED = "PROVIDER_FAILED"

    # Glossary import
    INVALID_GLOSSARY_FORMAT = "INVALID_GLOSSARY_FORMAT"
    CSV_EMPTY = "CSV_EMPTY"
    CSV_NO_VALID_TERMS = "CSV_NO_VALID_TERMS"


USER_ACTIONABLE_CODES = frozenset(
    {
        ErrorCode.INVALID_API_KEY,
        ErrorCode.RATE_LIMITED,
        ErrorCode.PERMISSION_DENIED,
        ErrorCode.BILLING_REQUIRED,
        ErrorCode.REGION_RESTRICTED,
        ErrorCode.MODEL_NOT_FOUND,
        ErrorCode.NOT_FOUND,
        ErrorCode.NO_SUBTITLES,
    }
)
