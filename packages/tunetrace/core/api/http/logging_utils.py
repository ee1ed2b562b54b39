from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger("tunetrace.core.api.http")

REDACTED = "***REDACTED***"


def _lower_set(values: tuple[str, ...]) -> set[str]:
    """Convert tuple of strings to lowercase set."""
    return {v.lower() for v in values}


def redact_mapping(values: Mapping[str, Any], redact: tuple[str, ...]) -> dict[str, Any]:
    """Redact sensitive headers or query parameters for logging.

    Args:
        values: Headers or params to redact
        redact: Names to redact (case-insensitive)

    Returns:
        Copy with sensitive values replaced with "***REDACTED***"
    """
    red = _lower_set(redact)
    out: dict[str, Any] = {}
    for k, v in values.items():
        if k.lower() in red:
            out[k] = REDACTED
        else:
            out[k] = v
    return out


class RequestLogContext(BaseModel):
    """Context for structured HTTP request logging.

    Args:
        service: Upstream service name
        method: HTTP method
        url: Request URL (without query string)
        attempt: Attempt number (1-indexed)
        request_id: Request ID for tracing
    """

    service: str
    method: str
    url: str
    attempt: int
    request_id: str | None = None


def log_request(
    ctx: RequestLogContext,
    headers: Mapping[str, str],
    params: Mapping[str, Any],
    *,
    redact_headers: tuple[str, ...],
    redact_params: tuple[str, ...],
) -> float:
    """Log HTTP request with redacted headers and params.

    Returns:
        Start timestamp for elapsed time calculation
    """
    start = time.perf_counter()
    logger.debug(
        f"HTTP request {ctx.service} {ctx.method} {ctx.url} (attempt {ctx.attempt})",
        extra={
            "service": ctx.service,
            "method": ctx.method,
            "url": ctx.url,
            "attempt": ctx.attempt,
            "request_id": ctx.request_id,
            "headers": redact_mapping(headers, redact_headers),
            "params": redact_mapping(params, redact_params),
        },
    )
    return start


def log_response(ctx: RequestLogContext, status_code: int, elapsed_s: float) -> None:
    """Log HTTP response with timing information."""
    logger.debug(
        f"HTTP response {ctx.service} {ctx.method} {ctx.url} -> {status_code}",
        extra={
            "service": ctx.service,
            "method": ctx.method,
            "url": ctx.url,
            "attempt": ctx.attempt,
            "request_id": ctx.request_id,
            "status_code": status_code,
            "elapsed_ms": int(elapsed_s * 1000),
        },
    )
