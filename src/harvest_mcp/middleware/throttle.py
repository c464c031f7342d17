"""Local sliding-window throttle for mutating Harvest calls."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_WRITE_LIMIT = 30
DEFAULT_WINDOW_SECONDS = 60.0


class WriteRateLimitError(Exception):
    """Raised when a write is rejected by the local throttle."""

    def __init__(self, limit: int, window_seconds: float) -> None:
        super().__init__(
            f"Rate limit exceeded: maximum {limit} write operations per "
            f"{window_seconds:g} seconds. Please wait before making more changes."
        )
        self.limit = limit
        self.window_seconds = window_seconds


@dataclass
class RateLimitBucket:
    """Sliding window of admission timestamps."""

    timestamps: deque[float] = field(default_factory=deque)

    def cleanup(self, now: float, window_seconds: float) -> None:
        """Drop timestamps that have left the active window."""
        cutoff = now - window_seconds
        while self.timestamps and self.timestamps[0] <= cutoff:
            self.timestamps.popleft()

    def add_request(self, now: float) -> None:
        self.timestamps.append(now)

    def count(self) -> int:
        return len(self.timestamps)


class WriteThrottle:
    """Admit at most ``limit`` writes per rolling ``window_seconds``.

    This is an advisory guard that is stricter than Harvest's own limits: a
    rejected write fails immediately, before any network request. One instance
    is shared by every write handler in the process.
    """

    def __init__(
        self,
        limit: int = DEFAULT_WRITE_LIMIT,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._bucket = RateLimitBucket()
        self._lock = asyncio.Lock()

    async def acquire(self) -> bool:
        """Record a write attempt and return whether it is admitted."""
        async with self._lock:
            now = self._clock()
            self._bucket.cleanup(now, self.window_seconds)
            if self._bucket.count() >= self.limit:
                return False
            self._bucket.add_request(now)
            return True

    async def check_or_raise(self) -> None:
        if not await self.acquire():
            logger.warning(
                "Write throttle rejected call (%d per %gs)", self.limit, self.window_seconds
            )
            raise WriteRateLimitError(self.limit, self.window_seconds)
        logger.debug("Write admitted, %d remaining in window", self.remaining())

    def remaining(self) -> int:
        """Slots left in the current window. Read-only; pruning happens in :meth:`acquire`."""
        cutoff = self._clock() - self.window_seconds
        active = sum(1 for ts in self._bucket.timestamps if ts > cutoff)
        return max(0, self.limit - active)
