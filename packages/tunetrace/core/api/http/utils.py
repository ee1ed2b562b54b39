"""Small helpers shared by the HTTP client."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urljoin

_REQUEST_ID_HEADERS = ("x-request-id", "x-correlation-id", "request-id", "trace-id")


def join_url(base_url: str, path: str) -> str:
    """Resolve ``path`` under ``base_url``; absolute URLs pass through.

    Example:
        >>> join_url("https://lrclib.net/api", "/get")
        'https://lrclib.net/api/get'
    """
    if path.startswith(("http://", "https://")):
        return path
    return urljoin(base_url.rstrip("/") + "/", path.lstrip("/"))


def safe_snippet(content: bytes, limit: int) -> str:
    """First ``limit`` bytes of a response body as text, for errors and logs."""
    return content[:limit].decode("utf-8", errors="replace") if content else ""


def get_request_id(headers: Mapping[str, str]) -> str | None:
    """Upstream tracing id from the first known header present."""
    lowered = {k.lower(): v for k, v in headers.items()}
    return next((lowered[h] for h in _REQUEST_ID_HEADERS if h in lowered), None)
