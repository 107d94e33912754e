"""Subweave exception hierarchy and error classification."""

from __future__ import annotations

import asyncio
import json
import re
from enum import Enum

import httpx

from subweave.error_codes import USER_ACTIONABLE_CODES, ErrorCode


class SubweaveError(Exception):
    """Base error for Subweave."""


class ConfigurationError(SubweaveError):
    """Raised when configuration or inputs are invalid."""


class ProviderError(SubweaveError):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code
        self.status_code = status_code


class UserActionableError(SubweaveError):
    """Error the user resolves themselves (credentials, quota, permissions).

    Never reported to crash reporting; shown to the user as-is.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class OperationCancelledError(SubweaveError):
    """Raised when a cancellation signal fires during an operation."""

    error_code = ErrorCode.CANCELLED

    def __init__(self, message: str = "operation cancelled", *, stage: str | None = None) -> None:
        super().__init__(message if not stage else f"{stage}: {message}")
        self.stage = stage


class OperationTimeoutError(OperationCancelledError):
    """Raised when an operation exceeds its deadline.

    Subclasses OperationCancelledError: callers see a timeout exactly like a cancellation.
    """

    error_code = ErrorCode.TIMEOUT

    def __init__(self, timeout_s: float, *, stage: str | None = None) -> None:
        super().__init__(f"timed out after {timeout_s:.1f}s", stage=stage)
        self.timeout_s = float(timeout_s)


class TranscriptionErrorKind(str, Enum):
    NOT_AVAILABLE = "not_available"
    TRANSCRIPTION_FAILED = "transcription_failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class TranscriptionError(SubweaveError):
    """Raised by transcription providers; `kind` classifies the failure."""

    def __init__(
        self,
        message: str,
        *,
        kind: TranscriptionErrorKind = TranscriptionErrorKind.UNKNOWN,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind


class StageExecutionError(SubweaveError):
    """Raised when a pipeline stage fails."""

    def __init__(
        self,
        stage: str,
        message: str,
        *,
        chunk_index: int | None = None,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        prefix = f"{stage}"
        if chunk_index is not None:
            prefix = f"{prefix} (chunk={chunk_index})"
        super().__init__(f"{prefix}: {message}")
        self.stage = stage
        self.chunk_index = chunk_index
        self.message = message
        self.error_code = error_code


class GlossaryFormatError(SubweaveError):
    """Raised when a glossary document cannot be imported as a whole."""

    def __init__(self, code: ErrorCode, message: str | None = None) -> None:
        super().__init__(message or code.value)
        self.code = code


class ErrorCategory(str, Enum):
    USER_ACTIONABLE = "user_actionable"
    TRANSIENT = "transient"
    UNEXPECTED = "unexpected"


_TRANSIENT_MESSAGE_MARKERS = (
    "failed to fetch",
    "networkerror",
    "network error",
    "socket hang up",
    "connection reset",
    "connection refused",
    "[500",
    "[503",
    "[504",
    "internal server error",
    "service unavailable",
    "deadline exceeded",
    "<!doctype",
    "<html",
)


def is_transient_error(exc: BaseException | None) -> bool:
    """Detect failures expected to resolve on retry or caused by cancellation."""
    if exc is None:
        return False
    if isinstance(exc, (OperationCancelledError, asyncio.CancelledError, TimeoutError)):
        return True
    if isinstance(exc, TranscriptionError) and exc.kind == TranscriptionErrorKind.CANCELLED:
        return True
    if isinstance(exc, (ConnectionError, httpx.TransportError)):
        return True
    if isinstance(exc, ProviderError) and exc.status_code is not None and exc.status_code >= 500:
        return True
    msg = str(exc).lower()
    return any(marker in msg for marker in _TRANSIENT_MESSAGE_MARKERS)


def classify_error(exc: BaseException) -> ErrorCategory:
    if isinstance(exc, UserActionableError):
        return ErrorCategory.USER_ACTIONABLE
    if isinstance(exc, ProviderError) and exc.error_code in USER_ACTIONABLE_CODES:
        return ErrorCategory.USER_ACTIONABLE
    if is_transient_error(exc):
        return ErrorCategory.TRANSIENT
    return ErrorCategory.UNEXPECTED


def should_report(exc: BaseException) -> bool:
    """Only unexpected failures go to crash reporting."""
    return classify_error(exc) == ErrorCategory.UNEXPECTED


_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def readable_error_message(exc: BaseException) -> str:
    """Extract `error.message` from vendor errors that embed a JSON body."""
    raw = str(exc)
    match = _JSON_OBJECT.search(raw)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except ValueError:
            return raw
        if isinstance(parsed, dict):
            err = parsed.get("error")
            if isinstance(err, dict) and err.get("message"):
                return str(err["message"])
    return raw
