"""
Per-API rate limiting.

Sliding 60 second window. When the budget is exhausted, acquire()
queues behind an asyncio.Lock and sleeps until the oldest request
leaves the window. One limiter per API name, shared by every
adapter instance talking to that API.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Optional


logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window requests-per-minute limiter."""

    WINDOW_SECONDS = 60.0

    def __init__(
        self,
        requests_per_minute: int,
        name: str = "",
        time_func: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if requests_per_minute < 1:
            raise ValueError("requests_per_minute must be at least 1")
        self.requests_per_minute = requests_per_minute
        self.name = name
        self._time = time_func
        self._sleep = sleep
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()
        self._total_wait_seconds = 0.0
        self._throttled = 0

    async def acquire(self) -> float:
        """
        Reserve one request slot, sleeping if the window is full.

        Returns the number of seconds spent waiting.
        """
        waited = 0.0
        async with self._lock:
            while True:
                now = self._time()
                self._evict(now)
                if len(self._timestamps) < self.requests_per_minute:
                    self._timestamps.append(now)
                    if waited:
                        self._total_wait_seconds += waited
                        self._throttled += 1
                    return waited

                wait = self._timestamps[0] + self.WINDOW_SECONDS - now
                if wait > 0:
                    logger.debug(f"[{self.name}] Rate limit reached, sleeping {wait:.2f}s")
                    await self._sleep(wait)
                    waited += wait

    def remaining(self) -> int:
        """Slots still free in the current window."""
        self._evict(self._time())
        return max(0, self.requests_per_minute - len(self._timestamps))

    def reset(self) -> None:
        self._timestamps.clear()

    def get_stats(self) -> dict[str, float]:
        return {
            "requests_per_minute": self.requests_per_minute,
            "in_window": len(self._timestamps),
            "throttled_requests": self._throttled,
            "total_wait_seconds": round(self._total_wait_seconds, 3),
        }

    def _evict(self, now: float) -> None:
        cutoff = now - self.WINDOW_SECONDS
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()


# Process-wide registry, one limiter per API name
_limiters: dict[str, RateLimiter] = {}


def get_rate_limiter(name: str, requests_per_minute: int) -> RateLimiter:
    """Get (or create) the shared limiter for an API."""
    limiter: Optional[RateLimiter] = _limiters.get(name)
    if limiter is None or limiter.requests_per_minute != requests_per_minute:
        if limiter is not None:
            logger.info(
                f"[{name}] Rate limit changed "
                f"{limiter.requests_per_minute} -> {requests_per_minute} rpm"
            )
        limiter = RateLimiter(requests_per_minute, name=name)
        _limiters[name] = limiter
    return limiter


def reset_rate_limiters() -> None:
    """Drop every shared limiter."""
    _limiters.clear()
