# poifinder/providers/rate_limit.py
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Minimum-interval gate for sources with an external request policy.

    `acquire()` returns once at least `min_interval_s` has passed since the previous
    permitted call. Callers queue on a FIFO asyncio.Lock, so concurrent aggregations
    sharing one adapter are serialized, none is dropped and none starves.
    Process-local only.
    """

    def __init__(
        self,
        min_interval_s: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval_s < 0:
            raise ValueError("min_interval_s must be >= 0")
        self.min_interval_s = min_interval_s
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: Optional[float] = None

    async def acquire(self) -> None:
        async with self._lock:
            now = self._clock()
            if self._last_call is not None:
                wait = self._last_call + self.min_interval_s - now
                if wait > 0:
                    logger.debug("rate limit: waiting %.3fs", wait)
                    await self._sleep(wait)
                    now = self._clock()
            self._last_call = now

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None
