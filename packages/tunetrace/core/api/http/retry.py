from __future__ import annotations

import random
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator

from tunetrace.core.api.http.errors import ApiError


class RetryPolicy(BaseModel):
    """Retry policy configuration for upstream HTTP calls.

    Controls exponential backoff between attempts of one logical request.
    The delay before retry ``n`` (1-indexed) is ``base_delay_s * 2 ** (n - 1)``,
    capped at ``max_delay_s``.

    Args:
        max_retries: Retries allowed after the initial attempt
        base_delay_s: Base delay in seconds for exponential backoff
        max_delay_s: Maximum delay in seconds (caps exponential growth)
        jitter: Jitter as fraction of delay (0.15 = +/-15% randomization)
        honor_retry_after: Let a 429 ``Retry-After`` header lengthen the delay

    Notes:
        - Only errors whose kind is retryable (429, 5xx, network/timeout) are retried
        - Every other 4xx is terminal and propagates on the first attempt
    """

    model_config = {"frozen": True}

    max_retries: int = Field(default=3, ge=0)
    base_delay_s: float = Field(default=1.0, ge=0.0)
    max_delay_s: float = Field(default=60.0, ge=0.0)
    jitter: float = Field(default=0.0, ge=0.0, le=1.0)
    honor_retry_after: bool = True

    @field_validator("max_delay_s")
    @classmethod
    def validate_max_delay(cls, v: float, info) -> float:
        """Ensure max_delay_s >= base_delay_s."""
        base = info.data.get("base_delay_s", 1.0)
        if v < base:
            raise ValueError("max_delay_s must be >= base_delay_s")
        return v

    @property
    def max_attempts(self) -> int:
        """Total attempts including the initial request."""
        return self.max_retries + 1

    def should_retry(self, error: ApiError, attempts: int) -> bool:
        """Check whether another attempt is allowed after ``error``.

        Args:
            error: Failure from the latest attempt
            attempts: Attempts made so far (1-indexed)

        Returns:
            True if the error is retryable and attempts remain
        """
        return error.retryable and attempts < self.max_attempts

    def compute_delay(self, attempt: int) -> float:
        """Compute retry delay with exponential backoff and optional jitter.

        Args:
            attempt: Retry number (1-indexed, 1 = first retry after initial failure)

        Returns:
            Delay in seconds before next retry
        """
        delay: float = min(self.max_delay_s, self.base_delay_s * (2 ** (attempt - 1)))
        if self.jitter > 0:
            spread: float = delay * self.jitter
            jitter_value: float = random.uniform(-spread, spread)
            delay = max(0.0, delay + jitter_value)
        return delay


def parse_retry_after_seconds(value: str | None) -> float | None:
    """Parse Retry-After header value to seconds.

    Handles numeric seconds format only (not HTTP-date format).

    Args:
        value: Retry-After header value

    Returns:
        Seconds to wait, or None if invalid or not provided
    """
    if not value:
        return None
    v = value.strip()
    try:
        seconds = float(v)
        if seconds < 0:
            return None
        return seconds
    except ValueError:
        return None


def retry_after_from_headers(headers: Mapping[str, str] | None) -> float | None:
    """Find and parse a Retry-After header (case-insensitive)."""
    if not headers:
        return None
    for hk, hv in headers.items():
        if hk.lower() == "retry-after":
            return parse_retry_after_seconds(hv)
    return None
