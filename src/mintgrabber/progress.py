"""Progress reporting for balance exports.

``ProgressAccumulator`` folds per-account window completions into one global
percentage. ``ProgressStream`` delivers ordered snapshots to subscribers so the
fetch code does not depend on how progress is displayed.
"""

import logging
from itertools import accumulate
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from .executor import maybe_await
from .models import BalanceHistoryProgress

logger = logging.getLogger(__name__)

P = TypeVar("P")

ProgressCallback = Callable[[P], Any]


class ProgressStream(Generic[P]):
    """Publish progress snapshots to subscribed callbacks (sync or async)."""

    def __init__(self):
        self._subscribers: list[ProgressCallback] = []
        self.last: Optional[P] = None

    @classmethod
    def of(cls, on_progress: Optional[ProgressCallback] = None) -> "ProgressStream[P]":
        """Stream with a single subscriber, or none."""
        stream = cls()
        if on_progress is not None:
            stream.subscribe(on_progress)
        return stream

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, snapshot: P) -> None:
        self.last = snapshot
        logger.debug("Progress: %s", snapshot)
        for callback in list(self._subscribers):
            await maybe_await(callback(snapshot))


class ProgressAccumulator:
    """Global progress over accounts processed one after another.

    Args:
        units_per_account: Number of windows each account will fetch, in
            processing order
    """

    def __init__(self, units_per_account: Sequence[int]):
        self.units_per_account = list(units_per_account)
        self.total_units = sum(self.units_per_account)
        # units finished by all accounts before index i
        self._offsets = [0, *accumulate(self.units_per_account)]
        self._completed_units = 0

    @property
    def total_accounts(self) -> int:
        return len(self.units_per_account)

    @property
    def completed_units(self) -> int:
        return self._completed_units

    @property
    def complete_percentage(self) -> float:
        if self.total_units == 0:
            return 1.0
        return self._completed_units / self.total_units

    def _advance(self, completed_units: int) -> None:
        # completions can be reported out of order; never move backwards
        self._completed_units = max(self._completed_units, completed_units)

    def unit_completed(
        self, account_index: int, completed_in_account: int
    ) -> BalanceHistoryProgress:
        """Record that account_index has finished completed_in_account windows."""
        in_account = min(completed_in_account, self.units_per_account[account_index])
        self._advance(self._offsets[account_index] + in_account)
        return self.snapshot(account_index)

    def account_finished(self, account_index: int) -> BalanceHistoryProgress:
        self._advance(self._offsets[account_index + 1])
        return self.snapshot(account_index + 1)

    def snapshot(self, completed_accounts: int) -> BalanceHistoryProgress:
        return BalanceHistoryProgress(
            completed_accounts=completed_accounts,
            total_accounts=self.total_accounts,
            complete_percentage=self.complete_percentage,
        )
