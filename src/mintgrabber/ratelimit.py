import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Optional

from .config import RateLimitConfig

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window request limiter shared by every fetch of one run.

    At most ``max_requests`` acquisitions happen within any ``period`` seconds,
    and at most ``max_concurrent`` holders are inside the limiter at once.
    Waiters are served in arrival order.

    Usage:
        async with limiter:
            await client.fetch_trends(...)
    """

    def __init__(
        self,
        max_requests: int = 5,
        period: float = 1.0,
        max_concurrent: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.period = period
        self.max_concurrent = max_concurrent
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> "RateLimiter":
        return cls(
            max_requests=config.max_requests,
            period=config.period,
            max_concurrent=config.max_concurrent,
        )

    def _expire(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.period:
            self._timestamps.popleft()

    async def acquire(self) -> None:
        if self._semaphore:
            await self._semaphore.acquire()
        try:
            async with self._lock:
                while True:
                    now = self._clock()
                    self._expire(now)
                    if len(self._timestamps) < self.max_requests:
                        break
                    wait = self.period - (now - self._timestamps[0])
                    logger.debug("Rate limit reached, waiting %.3fs", wait)
                    await self._sleep(wait)
                self._timestamps.append(self._clock())
        except BaseException:
            if self._semaphore:
                self._semaphore.release()
            raise

    def release(self) -> None:
        if self._semaphore:
            self._semaphore.release()

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
