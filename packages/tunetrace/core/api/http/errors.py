from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Failure categories shared by every upstream service."""

    NOT_FOUND = "not_found"
    CLIENT = "client"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    NETWORK = "network"
    MALFORMED = "malformed"
    TOOL_UNAVAILABLE = "tool_unavailable"
    EXHAUSTED = "exhausted"


RETRYABLE_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.SERVER, ErrorKind.NETWORK})


class ApiErrorData(BaseModel):
    """What is known about a failed upstream request.

    ``attempts`` counts every try made before giving up; ``cause`` is the
    underlying exception (transport error, JSON error, or for exhaustion the
    last retryable ApiError).
    """

    model_config = {"arbitrary_types_allowed": True}

    message: str
    method: str
    url: str
    service: str | None = None
    status_code: int | None = None
    request_id: str | None = None
    response_headers: dict[str, str] | None = None
    response_body_snippet: str | None = None
    attempts: int = 1
    cause: BaseException | None = Field(default=None, repr=False)


class ApiError(Exception):
    """Base exception for upstream service failures.

    Fields of ``data`` (``status_code``, ``service``, ``attempts``, ...) read
    as attributes of the exception itself. ``kind`` is fixed per subclass.
    """

    kind: ErrorKind = ErrorKind.CLIENT

    def __init__(self, *, message: str, method: str, url: str, **details: Any) -> None:
        self.data = ApiErrorData(message=message, method=method, url=url, **details)
        super().__init__(str(self))

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            raise AttributeError(name)
        try:
            return getattr(self.data, name)
        except AttributeError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            ) from None

    @property
    def retryable(self) -> bool:
        """Whether the retry loop may try this request again."""
        return self.kind in RETRYABLE_KINDS

    def __str__(self) -> str:
        d = self.data
        parts = [d.message, f"{d.method} {d.url}"]
        if d.service:
            parts.append(f"service={d.service}")
        if d.status_code is not None:
            parts.append(f"status={d.status_code}")
        if d.attempts > 1:
            parts.append(f"attempts={d.attempts}")
        if d.request_id:
            parts.append(f"request_id={d.request_id}")
        return " | ".join(parts)


class NetworkError(ApiError):
    """Network-level error (DNS, connection reset, etc.)."""

    kind = ErrorKind.NETWORK


class TimeoutError(NetworkError):
    """Request timed out."""


class DecodeError(ApiError):
    """Failed to decode response body (JSON/schema)."""

    kind = ErrorKind.MALFORMED


class RateLimitError(ApiError):
    """HTTP 429 rate limit error."""

    kind = ErrorKind.RATE_LIMITED


class ClientError(ApiError):
    """HTTP 4xx client error (excluding rate limit)."""

    kind = ErrorKind.CLIENT


class AuthError(ClientError):
    """HTTP 401/403 authentication or authorization error."""


class NotFoundError(ClientError):
    """HTTP 404, the requested resource does not exist upstream."""

    kind = ErrorKind.NOT_FOUND


class ServerError(ApiError):
    """HTTP 5xx server error."""

    kind = ErrorKind.SERVER


class UnexpectedStatusError(ApiError):
    """Non-2xx status that doesn't match a more specific category."""


class RetryExhaustedError(ApiError):
    """Every allowed attempt failed with a retryable error.

    ``status_code`` and ``cause`` describe the final failed attempt.
    """

    kind = ErrorKind.EXHAUSTED


def categorize_http_error(status_code: int) -> type[ApiError]:
    """Map HTTP status code to appropriate error class."""
    if status_code == 404:
        return NotFoundError
    if status_code in (401, 403):
        return AuthError
    if status_code == 429:
        return RateLimitError
    if 400 <= status_code < 500:
        return ClientError
    if 500 <= status_code < 600:
        return ServerError
    return UnexpectedStatusError


def malformed_response(service: str, url: str, error: Exception) -> DecodeError:
    """DecodeError for a body that parsed but has the wrong shape."""
    return DecodeError(
        message=f"Unexpected {service} response shape: {error}",
        method="GET",
        url=url,
        service=service,
        cause=error,
    )
