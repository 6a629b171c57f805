"""Error hierarchy for acai."""
from __future__ import annotations

from typing import Any


class AcaiError(Exception):
    """Base error for all acai errors."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigurationError(AcaiError):
    """Invalid or missing configuration."""


# ---------------------------------------------------------------------------
# API errors
# ---------------------------------------------------------------------------


class ApiError(AcaiError):
    """A failed exchange with the model API."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        retryable: bool = False,
        retry_after: float | None = None,
        raw: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.error_code = error_code
        self.retryable = retryable
        self.retry_after = retry_after
        self.raw = raw


class AuthenticationError(ApiError):
    """Authentication failed (e.g. invalid API key)."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class InvalidRequestError(ApiError):
    """The request was rejected as malformed."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)


class RateLimitError(ApiError):
    """Rate limit exceeded."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class ServerError(ApiError):
    """Server-side error from the provider."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class NetworkError(ApiError):
    """A transport-level failure."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class RequestTimeoutError(ApiError):
    """The request did not complete in time."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)


class MalformedResponseError(ApiError):
    """The provider answered with a payload that could not be parsed."""


# ---------------------------------------------------------------------------
# Tool and session errors
# ---------------------------------------------------------------------------


class ToolValidationError(AcaiError):
    """Function call arguments do not match the tool's parameter schema."""


class ToolExecutionError(AcaiError):
    """A tool failed or timed out while running."""


class SessionCancelledError(AcaiError):
    """The session was aborted or ran past its deadline."""


class ProtocolError(AcaiError):
    """An internal invariant of the turn loop was violated."""


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------


def error_from_status_code(
    status_code: int,
    message: str,
    *,
    error_code: str | None = None,
    raw: dict[str, Any] | None = None,
    retry_after: float | None = None,
) -> ApiError:
    """Map an HTTP status code to the appropriate error type."""
    common = dict(
        status_code=status_code,
        error_code=error_code,
        raw=raw,
        retry_after=retry_after,
    )

    if status_code in (400, 404, 413, 422):
        return InvalidRequestError(message, **common)
    if status_code in (401, 402, 403):
        return AuthenticationError(message, **common)
    if status_code == 408:
        return RequestTimeoutError(message, **common)
    if status_code == 429:
        return RateLimitError(f"Rate limit exceeded: {message}", **common)
    if 500 <= status_code <= 599:
        return ServerError(message, **common)

    return ApiError(message, retryable=False, **common)
