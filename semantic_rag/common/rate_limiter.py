"""Per-minute request budget for provider calls."""

import asyncio
import time
from collections.abc import Callable


class RateLimiter:
    """Async token bucket regaining ``requests_per_minute / 60`` tokens a second.

    The bucket starts full, so a burst of up to ``requests_per_minute``
    calls passes straight through. ``None`` or a non-positive budget
    disables limiting.
    """

    def __init__(
        self,
        requests_per_minute: int | None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.capacity = requests_per_minute if requests_per_minute and requests_per_minute > 0 else 0
        self.tokens = float(self.capacity)
        self._clock = clock
        self._updated = clock()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.capacity > 0

    @property
    def rate(self) -> float:
        """Tokens regained per second."""
        return self.capacity / 60.0

    def _refill(self) -> None:
        now = self._clock()
        self.tokens = min(float(self.capacity), self.tokens + (now - self._updated) * self.rate)
        self._updated = now

    async def acquire(self) -> None:
        """Take one token, sleeping until one is regained when the bucket is empty.

        Waiters queue on the lock, so tokens go out in arrival order.
        """
        if not self.enabled:
            return

        async with self._lock:
            self._refill()
            while self.tokens < 1:
                await asyncio.sleep((1 - self.tokens) / self.rate)
                self._refill()
            self.tokens -= 1
