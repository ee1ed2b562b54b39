"""Shared pytest fixtures for tunetrace tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from tunetrace.core.api.http.client import AsyncApiClient
from tunetrace.core.api.http.config import HttpClientConfig
from tunetrace.core.api.http.rate_limit import RateLimiter
from tunetrace.core.api.http.retry import RetryPolicy
from tunetrace.core.caching.models import CacheStoreConfig

Handler = Callable[[httpx.Request], httpx.Response]

# ============================================================================
# HTTP Fixtures
# ============================================================================


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Three retries with no backoff delay."""
    return RetryPolicy(max_retries=3, base_delay_s=0.0)


@pytest.fixture
def make_http_client(fast_retry: RetryPolicy) -> Callable[..., AsyncApiClient]:
    """Factory for AsyncApiClient instances backed by an httpx.MockTransport."""

    def _make(
        handler: Handler,
        *,
        service: str = "test",
        base_url: str = "https://example.test",
        retry_policy: RetryPolicy | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> AsyncApiClient:
        return AsyncApiClient(
            HttpClientConfig(service=service, base_url=base_url),
            rate_limiter=rate_limiter,
            retry_policy=retry_policy or fast_retry,
            transport=httpx.MockTransport(handler),
        )

    return _make


def _json_response(status_code: int, payload: object, **headers: str) -> httpx.Response:
    return httpx.Response(
        status_code,
        json=payload,
        headers={"content-type": "application/json", **headers},
    )


@pytest.fixture
def json_response() -> Callable[..., httpx.Response]:
    """Builder for JSON responses with an explicit content-type header."""
    return _json_response


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def store_config(tmp_path: Path) -> CacheStoreConfig:
    """SQLite store config pointing into the test's temp directory."""
    return CacheStoreConfig(db_path=tmp_path / "cache" / "cache.db")


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    """Small fake audio file (bytes only, never decoded)."""
    path = tmp_path / "song.mp3"
    path.write_bytes(b"ID3" + bytes(range(256)) * 16)
    return path
