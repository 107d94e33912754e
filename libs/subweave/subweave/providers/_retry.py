"""Shared retry and HTTP error mapping for external providers."""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
from tenacity import RetryCallState, wait_exponential

from subweave.error_codes import ErrorCode
from subweave.exceptions import ProviderError, UserActionableError

_WAIT_NORMAL = wait_exponential(min=1, max=10)
_WAIT_RATE_LIMIT = wait_exponential(min=2, max=30)

_USER_ACTIONABLE_STATUS: dict[int, ErrorCode] = {
    401: ErrorCode.INVALID_API_KEY,
    402: ErrorCode.BILLING_REQUIRED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.MODEL_NOT_FOUND,
    451: ErrorCode.REGION_RESTRICTED,
}


class RetryableProviderError(ProviderError):
    """Retryable provider error with rate limit tracking."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        rate_limited: bool = False,
        error_code: ErrorCode | str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(provider, message, error_code=error_code, status_code=status_code)
        self.rate_limited = bool(rate_limited)


def wait_retry(state: RetryCallState) -> float:
    exc = state.outcome.exception() if state.outcome else None
    if isinstance(exc, RetryableProviderError) and exc.rate_limited:
        return _WAIT_RATE_LIMIT(state)
    return _WAIT_NORMAL(state)


def log_retry(logger: logging.Logger) -> Callable[[RetryCallState], None]:
    def _log(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        provider = "provider"
        model = None
        if state.args:
            provider = getattr(state.args[0], "provider", provider)
            model = getattr(state.args[0], "model", None)
        wait_s = state.next_action.sleep if state.next_action else None
        logger.warning(
            "provider retrying (provider=%s, model=%s, attempt=%s, wait_s=%s, error=%s)",
            provider,
            model,
            state.attempt_number,
            wait_s,
            exc,
        )

    return _log


def format_http_error(response: httpx.Response) -> str:
    status = response.status_code
    reason = response.reason_phrase
    detail = response.text.strip() if response.content else ""
    if detail:
        if len(detail) > 2000:
            detail = detail[:2000] + "…"
        return f"HTTP {status} {reason}: {detail}"
    return f"HTTP {status} {reason}"


def raise_for_response(provider: str, response: httpx.Response, *, error_code: ErrorCode) -> None:
    """Map an HTTP error response onto the retryable / user-actionable / fatal taxonomy."""
    status = response.status_code
    if status < 400:
        return
    message = format_http_error(response)
    if status == 429 or status >= 500:
        raise RetryableProviderError(
            provider,
            message,
            rate_limited=status == 429,
            error_code=ErrorCode.RATE_LIMITED if status == 429 else error_code,
            status_code=status,
        )
    code = _USER_ACTIONABLE_STATUS.get(status)
    if code is not None:
        raise UserActionableError(f"{provider}: {message}", code)
    raise ProviderError(provider, message, error_code=error_code, status_code=status)


def exhausted_to_user_error(exc: RetryableProviderError) -> Exception:
    """Rate limiting that survives every retry is the user's quota problem."""
    if exc.rate_limited:
        return UserActionableError(str(exc), ErrorCode.RATE_LIMITED)
    return exc
