import asyncio
from unittest.mock import AsyncMock

import pytest

from mintgrabber.exceptions import InvalidReportTypeError, TrendTimeoutError
from mintgrabber.executor import (
    execute_all,
    resolve_sequential,
    with_default_on_error,
)
from mintgrabber.ratelimit import RateLimiter
from mintgrabber.retry import RetryPolicy


@pytest.fixture
def retry():
    return RetryPolicy(attempts=3, backoff=0, sleep=AsyncMock())


def delayed(value, ticks):
    """Task returning value after yielding to the event loop ticks times."""

    async def task():
        for _ in range(ticks):
            await asyncio.sleep(0)
        return value

    return task


def failing_then(value, failures, error=TrendTimeoutError):
    state = {"calls": 0}

    async def task():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise error()
        return value

    task.state = state
    return task


def test_results_in_submission_order():
    """Test that results follow task order, not completion order."""
    tasks = [delayed("slow", 5), delayed("fast", 0), delayed("medium", 2)]
    assert asyncio.run(execute_all(tasks)) == ["slow", "fast", "medium"]


def test_on_unit_complete_in_completion_order():
    """Test progress callbacks count settled tasks as they finish."""
    calls = []
    tasks = [delayed("slow", 5), delayed("fast", 0), delayed("medium", 2)]

    asyncio.run(
        execute_all(tasks, on_unit_complete=lambda done, total: calls.append((done, total)))
    )
    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_async_on_unit_complete():
    """Test that an async progress callback is awaited."""
    calls = []

    async def on_unit_complete(done, total):
        calls.append(done)

    asyncio.run(execute_all([delayed(1, 0), delayed(2, 0)], on_unit_complete=on_unit_complete))
    assert calls == [1, 2]


def test_retry_is_transparent(retry):
    """Test that a task failing twice yields the same result as a clean task."""
    flaky = failing_then("data", failures=2)
    results = asyncio.run(execute_all([flaky, delayed("data", 0)], retry=retry))
    assert results == ["data", "data"]
    assert flaky.state["calls"] == 3


def test_failed_task_uses_default(retry):
    """Test that a task failing every attempt yields the default."""
    broken = failing_then("never", failures=10)
    calls = []
    results = asyncio.run(
        execute_all(
            [delayed([1], 0), broken, delayed([3], 0)],
            retry=retry,
            default_factory=list,
            on_unit_complete=lambda done, total: calls.append(done),
        )
    )
    assert results == [[1], [], [3]]
    assert broken.state["calls"] == 3
    # the failed task still counts as a completed unit
    assert calls == [1, 2, 3]


def test_failure_without_default_raises_after_all_settle(retry):
    """Test that siblings finish before the failure propagates."""
    finished = []

    async def sibling():
        await asyncio.sleep(0)
        finished.append("sibling")
        return "ok"

    broken = failing_then("never", failures=10, error=ConnectionError)
    with pytest.raises(ConnectionError):
        asyncio.run(execute_all([broken, sibling], retry=retry))
    assert finished == ["sibling"]


def test_structural_error_is_never_defaulted(retry):
    """Test that structural errors propagate even with a default."""

    async def misconfigured():
        raise InvalidReportTypeError()

    with pytest.raises(InvalidReportTypeError):
        asyncio.run(execute_all([misconfigured], retry=retry, default_factory=list))


def test_each_attempt_acquires_limiter(retry):
    """Test that retries go through the rate limiter too."""

    class CountingLimiter(RateLimiter):
        acquired = 0

        async def acquire(self):
            CountingLimiter.acquired += 1
            await super().acquire()

    limiter = CountingLimiter(max_requests=100, period=1.0)
    flaky = failing_then("data", failures=2)

    asyncio.run(execute_all([flaky], retry=retry, limiter=limiter))
    assert CountingLimiter.acquired == 3


def test_empty_task_list():
    """Test that no tasks yields no results and no callbacks."""
    calls = []
    assert asyncio.run(execute_all([], on_unit_complete=lambda *a: calls.append(a))) == []
    assert calls == []


def test_resolve_sequential_never_overlaps():
    """Test that factories run one at a time, in order."""
    events = []

    def job(name):
        async def run():
            events.append(f"start {name}")
            await asyncio.sleep(0)
            events.append(f"end {name}")
            return name

        return run

    results = asyncio.run(resolve_sequential([job("a"), job("b")]))
    assert results == ["a", "b"]
    assert events == ["start a", "end a", "start b", "end b"]


def test_with_default_on_error_returns_value():
    """Test that a successful awaitable's value is returned."""
    assert asyncio.run(with_default_on_error(list, delayed([1], 0)())) == [1]


def test_with_default_on_error_swallows_failure():
    """Test that failures are replaced by the default."""

    async def broken():
        raise TrendTimeoutError()

    assert asyncio.run(with_default_on_error(list, broken())) == []


def test_with_default_on_error_propagates_structural():
    """Test that structural errors are not defaulted."""

    async def misconfigured():
        raise InvalidReportTypeError()

    with pytest.raises(InvalidReportTypeError):
        asyncio.run(with_default_on_error(list, misconfigured()))
