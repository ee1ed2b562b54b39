"""FIFO rate limiter for upstream services.

One limiter instance per upstream service, shared by every caller that talks
to that service during a run. Callers queue in arrival order and a single
drain task releases them one at a time, at least ``interval_s`` apart.

Example:
    >>> limiter = RateLimiter(interval_s=1.1, name="musicbrainz")
    >>> await limiter.wait_for_slot()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Serialize callers through a minimum inter-grant interval.

    Args:
        interval_s: Minimum seconds between two consecutive grants
        name: Service name used in log messages
        clock: Monotonic clock (injectable for tests)

    Notes:
        - Grants are issued strictly in arrival order.
        - A waiter whose task is cancelled before its turn is skipped and
          never granted; the remaining waiters keep their order.
        - Only one drain task runs per limiter at any time.
    """

    def __init__(
        self,
        interval_s: float,
        *,
        name: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_s < 0:
            raise ValueError("interval_s must be >= 0")
        self.interval_s = interval_s
        self.name = name or "default"
        self._clock = clock
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._drain_task: asyncio.Task[None] | None = None
        self._last_granted_at: float | None = None
        self._resume_at: float = 0.0

    @property
    def pending(self) -> int:
        """Number of callers still queued (including abandoned ones not yet skipped)."""
        return len(self._waiters)

    @property
    def last_granted_at(self) -> float | None:
        """Clock reading of the most recent grant, or None before the first."""
        return self._last_granted_at

    async def wait_for_slot(self) -> None:
        """Suspend until it is this caller's turn to hit the service."""
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[None] = loop.create_future()
        self._waiters.append(waiter)
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain())
        await waiter

    def defer(self, seconds: float) -> None:
        """Hold back all further grants for ``seconds`` (e.g. from a Retry-After header).

        Args:
            seconds: Pause length; shorter than an existing pause has no effect
        """
        if seconds <= 0:
            return
        resume_at = self._clock() + seconds
        if resume_at > self._resume_at:
            logger.info(f"Rate limiter '{self.name}' paused for {seconds:.1f}s")
            self._resume_at = resume_at

    async def _drain(self) -> None:
        while self._waiters:
            head = self._waiters[0]
            if head.done():
                # Caller went away while queued
                self._waiters.popleft()
                continue

            now = self._clock()
            next_allowed = self._resume_at
            if self._last_granted_at is not None:
                next_allowed = max(next_allowed, self._last_granted_at + self.interval_s)

            remaining = next_allowed - now
            if remaining > 0:
                await asyncio.sleep(remaining)
                continue

            self._waiters.popleft()
            self._last_granted_at = self._clock()
            head.set_result(None)
