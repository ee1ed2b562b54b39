"""Rate-limited, retrying HTTP client built on HTTPX.

Provides:
- One client per upstream service, sharing that service's RateLimiter
- Exponential-backoff retries with retryable/terminal classification
- Structured error handling (service, status, attempt count)
- Request/response logging with redaction
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from tunetrace.core.api.http.config import HttpClientConfig
from tunetrace.core.api.http.errors import (
    ApiError,
    DecodeError,
    NetworkError,
    RateLimitError,
    RetryExhaustedError,
    TimeoutError,
    categorize_http_error,
)
from tunetrace.core.api.http.logging_utils import RequestLogContext, log_request, log_response
from tunetrace.core.api.http.rate_limit import RateLimiter
from tunetrace.core.api.http.retry import RetryPolicy, retry_after_from_headers
from tunetrace.core.api.http.utils import get_request_id, join_url, safe_snippet

logger = logging.getLogger(__name__)


def _merge_headers(base: Mapping[str, str], extra: Mapping[str, str] | None) -> dict[str, str]:
    """Merge base headers with request-specific headers."""
    out = dict(base)
    if extra:
        out.update(extra)
    return out


def _merge_params(base: Mapping[str, str], extra: Mapping[str, Any] | None) -> dict[str, str]:
    """Merge base params with request-specific params."""
    out = dict(base)
    if extra:
        out.update({k: str(v) for k, v in extra.items() if v is not None})
    return out


def _is_json_response(resp: httpx.Response) -> bool:
    """Check if response content-type indicates JSON."""
    ctype = resp.headers.get("content-type", "")
    return "application/json" in ctype or "+json" in ctype


def _build_api_error(
    *,
    exc_type: type[ApiError],
    message: str,
    method: str,
    url: str,
    service: str,
    status_code: int | None = None,
    response: httpx.Response | None = None,
    body_snippet_limit: int = 4096,
    attempts: int = 1,
    cause: BaseException | None = None,
) -> ApiError:
    """Build API error with response context.

    Args:
        exc_type: Error class to instantiate
        message: Human-readable error message
        method: HTTP method
        url: Request URL
        service: Upstream service name
        status_code: HTTP status code (if available)
        response: HTTP response (if available)
        body_snippet_limit: Max bytes to include in error
        attempts: Attempts made so far
        cause: Original exception that triggered this error

    Returns:
        Constructed API error
    """
    headers: dict[str, str] | None = None
    snippet: str | None = None
    request_id: str | None = None
    if response is not None:
        headers = dict(response.headers)
        snippet = safe_snippet(response.content or b"", body_snippet_limit)
        request_id = get_request_id(response.headers)

    return exc_type(
        message=message,
        method=method,
        url=url,
        service=service,
        status_code=status_code,
        request_id=request_id,
        response_headers=headers,
        response_body_snippet=snippet,
        attempts=attempts,
        cause=cause,
    )


class AsyncApiClient:
    """Asynchronous HTTP client for one upstream service.

    Every attempt first waits for a slot on the service's RateLimiter, so
    retries are spaced like first attempts.

    Args:
        config: Client configuration
        rate_limiter: Limiter shared by all callers of this service (None = unlimited)
        retry_policy: Retry policy (defaults to 3 retries, 1s base delay)
        transport: Optional custom transport (useful for testing)

    Example:
        >>> config = HttpClientConfig(service="lrclib", base_url="https://lrclib.net/api")
        >>> async with AsyncApiClient(config) as client:
        ...     data = await client.get_json("/get", params={"track_name": "Yesterday"})
    """

    def __init__(
        self,
        config: HttpClientConfig,
        *,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.service = config.service
        self.rate_limiter = rate_limiter
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"User-Agent": config.user_agent, **config.headers},
            params=config.params,
            timeout=config.timeout,
            limits=config.limits,
            follow_redirects=config.follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncApiClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> httpx.Response:
        """Send a request under the rate limiter and retry policy.

        Args:
            method: HTTP method
            path: Path relative to base_url, or an absolute URL
            params: Query parameters (None values are dropped)
            headers: Extra request headers
            timeout: Per-request timeout override

        Returns:
            Successful (2xx/3xx) HTTP response

        Raises:
            ApiError: Terminal failure on first occurrence (4xx other than 429)
            RetryExhaustedError: Retryable failures on every allowed attempt
        """
        method_u = method.upper()
        url = join_url(str(self._client.base_url), path)
        merged_headers = _merge_headers(self._client.headers, headers)
        merged_params = _merge_params(self._client.params, params)
        policy = self.retry_policy

        attempts = 0
        delay = 0.0

        while True:
            attempts += 1
            if attempts > 1:
                await asyncio.sleep(delay)
            if self.rate_limiter is not None:
                await self.rate_limiter.wait_for_slot()

            ctx = RequestLogContext(
                service=self.service, method=method_u, url=url, attempt=attempts
            )
            start = log_request(
                ctx,
                merged_headers,
                merged_params,
                redact_headers=self.config.redact_headers,
                redact_params=self.config.redact_params,
            )

            try:
                resp = await self._client.request(
                    method_u,
                    url,
                    params=merged_params,
                    headers=merged_headers,
                    timeout=timeout or self.config.timeout,
                )
                log_response(ctx, resp.status_code, time.perf_counter() - start)

                if resp.status_code >= 400:
                    raise _build_api_error(
                        exc_type=categorize_http_error(resp.status_code),
                        message=f"{self.service} returned HTTP {resp.status_code}",
                        method=method_u,
                        url=url,
                        service=self.service,
                        status_code=resp.status_code,
                        response=resp,
                        body_snippet_limit=self.config.max_response_body_for_error,
                        attempts=attempts,
                    )

                return resp

            except ApiError as e:
                error = e

            except httpx.TimeoutException as e:
                error = _build_api_error(
                    exc_type=TimeoutError,
                    message=f"{self.service} request timed out",
                    method=method_u,
                    url=url,
                    service=self.service,
                    attempts=attempts,
                    cause=e,
                )

            except httpx.RequestError as e:
                error = _build_api_error(
                    exc_type=NetworkError,
                    message=f"Network error while contacting {self.service}",
                    method=method_u,
                    url=url,
                    service=self.service,
                    attempts=attempts,
                    cause=e,
                )

            if not error.retryable:
                raise error

            if not policy.should_retry(error, attempts):
                raise RetryExhaustedError(
                    message=(
                        f"{self.service} request failed after {attempts} attempts: "
                        f"{error.message}"
                    ),
                    method=method_u,
                    url=url,
                    service=self.service,
                    status_code=error.status_code,
                    request_id=error.request_id,
                    response_headers=error.response_headers,
                    response_body_snippet=error.response_body_snippet,
                    attempts=attempts,
                    cause=error,
                ) from error

            delay = policy.compute_delay(attempts)
            if isinstance(error, RateLimitError) and policy.honor_retry_after:
                retry_after = retry_after_from_headers(error.response_headers)
                if retry_after is not None:
                    delay = max(delay, retry_after)
                    if self.rate_limiter is not None:
                        self.rate_limiter.defer(retry_after)

            logger.warning(
                f"{self.service} request failed ({error.kind.value}, "
                f"attempt {attempts}/{policy.max_attempts}); retrying in {delay:.2f}s"
            )

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Perform async GET request.

        Args:
            path: Request path (relative to base_url) or absolute URL
            **kwargs: Additional arguments passed to request()

        Returns:
            HTTP response

        Raises:
            ApiError: On request failure
        """
        return await self.request("GET", path, **kwargs)

    async def get_json(self, path: str, **kwargs: Any) -> Any:
        """GET and decode a JSON body in one step."""
        response = await self.get(path, **kwargs)
        return self.json(response)

    async def get_text(self, path: str, **kwargs: Any) -> str:
        """GET and return the decoded text body."""
        response = await self.get(path, **kwargs)
        return response.text

    def json(self, response: httpx.Response) -> Any:
        """Decode JSON response with structured error handling.

        Args:
            response: HTTP response to decode

        Returns:
            Decoded JSON data (dict, list, etc.), or None for empty bodies

        Raises:
            DecodeError: If response is not JSON or parsing fails
        """
        if response.status_code == 204 or not response.content:
            return None
        if not _is_json_response(response):
            raise _build_api_error(
                exc_type=DecodeError,
                message="Response is not JSON (content-type mismatch)",
                method=response.request.method,
                url=str(response.request.url),
                service=self.service,
                status_code=response.status_code,
                response=response,
                body_snippet_limit=self.config.max_response_body_for_error,
            )
        try:
            return response.json()
        except ValueError as e:
            raise _build_api_error(
                exc_type=DecodeError,
                message="Failed to parse JSON response",
                method=response.request.method,
                url=str(response.request.url),
                service=self.service,
                status_code=response.status_code,
                response=response,
                body_snippet_limit=self.config.max_response_body_for_error,
                cause=e,
            ) from e
