"""Tests for retry policy arithmetic and error classification."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tunetrace.core.api.http.errors import (
    ApiError,
    AuthError,
    ClientError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
    UnexpectedStatusError,
    categorize_http_error,
)
from tunetrace.core.api.http.retry import (
    RetryPolicy,
    parse_retry_after_seconds,
    retry_after_from_headers,
)


def _error(exc_type: type[ApiError]) -> ApiError:
    return exc_type(message="boom", method="GET", url="https://example.test/x")


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (400, ClientError),
        (401, AuthError),
        (403, AuthError),
        (404, NotFoundError),
        (429, RateLimitError),
        (500, ServerError),
        (503, ServerError),
        (302, UnexpectedStatusError),
    ],
)
def test_categorize_http_error(status: int, expected: type[ApiError]) -> None:
    assert categorize_http_error(status) is expected


@pytest.mark.parametrize(
    ("exc_type", "retryable"),
    [
        (RateLimitError, True),
        (ServerError, True),
        (NetworkError, True),
        (TimeoutError, True),
        (ClientError, False),
        (AuthError, False),
        (NotFoundError, False),
    ],
)
def test_retryable_classification(exc_type: type[ApiError], retryable: bool) -> None:
    assert _error(exc_type).retryable is retryable


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.max_attempts == 4

    def test_exponential_delay(self):
        policy = RetryPolicy(base_delay_s=1.0, max_delay_s=60.0)
        assert [policy.compute_delay(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_delay_capped(self):
        policy = RetryPolicy(base_delay_s=1.0, max_delay_s=5.0)
        assert policy.compute_delay(10) == 5.0

    def test_jitter_stays_within_spread(self):
        policy = RetryPolicy(base_delay_s=2.0, jitter=0.25)
        for _ in range(50):
            assert 1.5 <= policy.compute_delay(1) <= 2.5

    def test_max_delay_below_base_rejected(self):
        with pytest.raises(ValidationError):
            RetryPolicy(base_delay_s=5.0, max_delay_s=1.0)

    def test_should_retry_respects_max_retries(self):
        policy = RetryPolicy(max_retries=2)
        server = _error(ServerError)
        assert policy.should_retry(server, attempts=1)
        assert policy.should_retry(server, attempts=2)
        assert not policy.should_retry(server, attempts=3)

    def test_should_retry_never_for_terminal(self):
        policy = RetryPolicy(max_retries=5)
        assert not policy.should_retry(_error(AuthError), attempts=1)


def test_parse_retry_after_seconds() -> None:
    assert parse_retry_after_seconds("5") == 5.0
    assert parse_retry_after_seconds(" 1.5 ") == 1.5
    assert parse_retry_after_seconds("-1") is None
    assert parse_retry_after_seconds("Wed, 21 Oct 2015 07:28:00 GMT") is None
    assert parse_retry_after_seconds(None) is None


def test_retry_after_header_lookup_is_case_insensitive() -> None:
    assert retry_after_from_headers({"RETRY-AFTER": "3"}) == 3.0
    assert retry_after_from_headers({"content-type": "text/plain"}) is None
    assert retry_after_from_headers(None) is None
