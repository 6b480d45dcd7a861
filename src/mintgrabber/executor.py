import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from .exceptions import StructuralError
from .ratelimit import RateLimiter
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

Task = Callable[[], Awaitable[T]]
UnitCompleteCallback = Callable[[int, int], Any]


async def maybe_await(value):
    """Await value if it is awaitable, so callbacks may be sync or async."""
    if inspect.isawaitable(value):
        return await value
    return value


async def execute_all(
    tasks: Sequence[Task],
    retry: Optional[RetryPolicy] = None,
    limiter: Optional[RateLimiter] = None,
    on_unit_complete: Optional[UnitCompleteCallback] = None,
    default_factory: Optional[Callable[[], T]] = None,
) -> list[T]:
    """Run independent fetch tasks under a shared rate limiter.

    Every attempt of every task holds the limiter while it runs, and each task
    is retried on its own. A task that still fails does not cancel the others.

    Args:
        tasks: Zero-argument coroutine functions
        retry: Retry policy applied to each task
        limiter: Limiter shared by all tasks (and by other calls using it)
        on_unit_complete: Called once per settled task with (completed, total)
        default_factory: Produces the result of a task that failed for good.
            Without it, the first failure is raised once every task settled.

    Returns:
        Results in the same order as tasks
    """
    total = len(tasks)
    completed = 0

    async def run_one(task: Task):
        nonlocal completed

        async def attempt():
            if limiter is None:
                return await task()
            async with limiter:
                return await task()

        try:
            if retry is None:
                return await attempt()
            return await retry.run(attempt)
        finally:
            completed += 1
            if on_unit_complete is not None:
                await maybe_await(on_unit_complete(completed, total))

    outcomes = await asyncio.gather(
        *(run_one(task) for task in tasks), return_exceptions=True
    )

    results = []
    first_error = None
    for index, outcome in enumerate(outcomes):
        if not isinstance(outcome, BaseException):
            results.append(outcome)
            continue
        if isinstance(outcome, StructuralError) or not isinstance(outcome, Exception):
            raise outcome
        if default_factory is None:
            first_error = first_error or outcome
            results.append(None)
            continue
        logger.warning("Task %d/%d failed, using default: %s", index + 1, total, outcome)
        results.append(default_factory())

    if first_error is not None:
        raise first_error
    return results


async def resolve_sequential(
    factories: Sequence[Callable[[], Awaitable[T]]],
) -> list[T]:
    """Await each factory's coroutine only after the previous one finished."""
    results = []
    for factory in factories:
        results.append(await factory())
    return results


async def with_default_on_error(
    default_factory: Callable[[], T], awaitable: Awaitable[T]
) -> T:
    """Await and fall back to a default on failure. Structural errors propagate."""
    try:
        return await awaitable
    except StructuralError:
        raise
    except Exception as e:
        logger.warning("Falling back to default after error: %s", e)
        return default_factory()
