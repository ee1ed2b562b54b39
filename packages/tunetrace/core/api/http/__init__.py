"""HTTP client framework for upstream music services.

Provides:
- AsyncApiClient: httpx-based client with rate limiting and retries
- RateLimiter: FIFO minimum-interval limiter, one per upstream service
- RetryPolicy: exponential backoff configuration
- Error taxonomy with retryable/terminal classification
"""

from tunetrace.core.api.http.client import AsyncApiClient
from tunetrace.core.api.http.config import DEFAULT_USER_AGENT, HttpClientConfig
from tunetrace.core.api.http.errors import (
    ApiError,
    ApiErrorData,
    AuthError,
    ClientError,
    DecodeError,
    ErrorKind,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RetryExhaustedError,
    ServerError,
    TimeoutError,
    UnexpectedStatusError,
    categorize_http_error,
)
from tunetrace.core.api.http.rate_limit import RateLimiter
from tunetrace.core.api.http.retry import RetryPolicy

__all__ = [
    # Client
    "AsyncApiClient",
    "HttpClientConfig",
    "DEFAULT_USER_AGENT",
    "RateLimiter",
    "RetryPolicy",
    # Errors
    "ApiError",
    "ApiErrorData",
    "AuthError",
    "ClientError",
    "DecodeError",
    "ErrorKind",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "RetryExhaustedError",
    "ServerError",
    "TimeoutError",
    "UnexpectedStatusError",
    "categorize_http_error",
]
