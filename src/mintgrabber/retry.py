import asyncio
import functools
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .config import RetryConfig
from .exceptions import NoHistoryError, StructuralError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Retrying cannot change the outcome of these.
NON_RETRYABLE = (StructuralError, NoHistoryError)


class RetryPolicy:
    """Retry an async operation with exponential backoff.

    Args:
        attempts: Total number of tries, including the first one
        backoff: Delay in seconds before the first retry
        multiplier: Factor applied to the delay after every retry
        sleep: Coroutine function used to wait between tries
    """

    def __init__(
        self,
        attempts: int = 3,
        backoff: float = 1.0,
        multiplier: float = 2.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.attempts = attempts
        self.backoff = backoff
        self.multiplier = multiplier
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            attempts=config.attempts,
            backoff=config.backoff,
            multiplier=config.multiplier,
        )

    def delay_for(self, retry_number: int) -> float:
        """Delay before the given retry (1 is the first retry)."""
        return self.backoff * self.multiplier ** (retry_number - 1)

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 1
        while True:
            try:
                return await fn()
            except NON_RETRYABLE:
                raise
            except Exception as e:
                if attempt >= self.attempts:
                    logger.warning("Giving up after %d attempts: %s", attempt, e)
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "Attempt %d/%d failed (%s), retrying in %.2fs",
                    attempt,
                    self.attempts,
                    e,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1

    def wrap(self, fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        """Decorate a coroutine function so every call is retried."""

        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            return await self.run(lambda: fn(*args, **kwargs))

        return wrapper

    __call__ = wrap
