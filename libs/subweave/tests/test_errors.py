from __future__ import annotations

import asyncio

import httpx
import pytest

from subweave.error_codes import ErrorCode
from subweave.exceptions import (
    ErrorCategory,
    OperationCancelledError,
    OperationTimeoutError,
    ProviderError,
    StageExecutionError,
    TranscriptionError,
    TranscriptionErrorKind,
    UserActionableError,
    classify_error,
    is_transient_error,
    readable_error_message,
    should_report,
)


@pytest.mark.parametrize(
    "exc",
    [
        OperationCancelledError(),
        OperationTimeoutError(5.0, stage="transcription"),
        asyncio.CancelledError(),
        ConnectionError("reset"),
        httpx.ConnectError("refused"),
        ProviderError("openai", "upstream", status_code=502),
        TranscriptionError("stopped", kind=TranscriptionErrorKind.CANCELLED),
        RuntimeError("[503 Service Unavailable]"),
        RuntimeError("<!DOCTYPE html><html>bad gateway</html>"),
    ],
)
def test_transient_errors_are_not_reported(exc: BaseException) -> None:
    assert is_transient_error(exc)
    assert classify_error(exc) == ErrorCategory.TRANSIENT
    assert not should_report(exc)


def test_user_actionable_errors_are_not_reported() -> None:
    exc = UserActionableError("bad key", ErrorCode.INVALID_API_KEY)

    assert classify_error(exc) == ErrorCategory.USER_ACTIONABLE
    assert not should_report(exc)
    assert classify_error(ProviderError("openai", "slow down", error_code=ErrorCode.RATE_LIMITED)) == ErrorCategory.USER_ACTIONABLE


def test_unexpected_errors_are_reported() -> None:
    for exc in (KeyError("x"), ProviderError("openai", "bad request", status_code=400), StageExecutionError("x", "y")):
        assert classify_error(exc) == ErrorCategory.UNEXPECTED
        assert should_report(exc)
    assert not is_transient_error(None)


def test_timeout_message_and_stage_prefix() -> None:
    exc = OperationTimeoutError(2.5, stage="translation")

    assert str(exc) == "translation: timed out after 2.5s"
    assert exc.error_code == ErrorCode.TIMEOUT
    assert OperationCancelledError().error_code == ErrorCode.CANCELLED
    assert str(StageExecutionError("alignment", "boom", chunk_index=3)) == "alignment (chunk=3): boom"


def test_readable_error_message_extracts_vendor_message() -> None:
    exc = RuntimeError('HTTP 400 Bad Request: {"error": {"message": "context too long", "type": "x"}}')

    assert readable_error_message(exc) == "context too long"
    assert readable_error_message(RuntimeError("plain")) == "plain"
    assert readable_error_message(RuntimeError("{not json}")) == "{not json}"
