"""Minimum-interval rate limiter for a single external endpoint.

Each throttled endpoint gets its own :class:`RateLimiter`.  Callers await
:meth:`RateLimiter.wait_for_slot` before every request; the limiter suspends
them until at least ``min_interval`` seconds have passed since the previous
slot was granted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Enforces a minimum spacing between successive calls.

    Concurrent waiters on the same instance are served one at a time, so the
    spacing holds between every pair of consecutive grants, not just between
    calls that happen not to overlap.

    Parameters
    ----------
    min_interval:
        Minimum number of seconds between two granted slots.  ``0`` disables
        throttling.
    clock:
        Monotonic clock returning seconds.  Defaults to ``time.monotonic``.
    sleep:
        Coroutine used to wait.  Defaults to ``asyncio.sleep``.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        self._min_interval = min_interval
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_granted: float | None = None
        self._lock = asyncio.Lock()

    @property
    def min_interval(self) -> float:
        return self._min_interval

    async def wait_for_slot(self) -> None:
        """Suspend until the next slot is available, then claim it."""
        async with self._lock:
            if self._last_granted is not None:
                elapsed = self._clock() - self._last_granted
                wait = self._min_interval - elapsed
                if wait > 0:
                    logger.debug("RateLimiter: waiting %.2fs for next slot", wait)
                    await self._sleep(wait)
            self._last_granted = self._clock()

    def __repr__(self) -> str:
        return f"RateLimiter(min_interval={self._min_interval!r})"
