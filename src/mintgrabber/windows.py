import calendar
from datetime import date, timedelta
from typing import Optional, Sequence

from .config import MAX_WINDOW_DAYS
from .exceptions import NoHistoryError
from .models import TrendEntry, Window


def parse_date(iso_date: str) -> date:
    """Parse the date part of an ISO date or datetime string."""
    return date.fromisoformat(iso_date[:10])


def _start_of_month(day: date) -> date:
    return day.replace(day=1)


def _end_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def _next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def calculate_interval_for_account_history(
    monthly_balances: Sequence[TrendEntry], today: Optional[date] = None
) -> tuple[date, date]:
    """Determine the inclusive date span covering an account's history.

    The span starts at the first month. If the history ends with zero months,
    it ends on the last day of the month after the first of those zero months
    (Feb 500, Mar 0, Apr 0 ends on Apr 30), otherwise today. Later zero months
    add nothing since trailing zero rows are dropped on export.

    Args:
        monthly_balances: Monthly trend entries, oldest first
        today: Override for the current date

    Returns:
        Tuple of (start, end)

    Raises:
        NoHistoryError: If there are no monthly balances
    """
    if not monthly_balances:
        raise NoHistoryError("Unable to determine start date for account history.")

    today = today or date.today()
    start = _start_of_month(parse_date(monthly_balances[0].date))

    # find the last month with a non-zero balance
    index = len(monthly_balances) - 1
    while index > 0 and monthly_balances[index].amount == 0:
        index -= 1

    if index == len(monthly_balances) - 1:
        end = today
    else:
        # Daily balances can trail past the month the monthly report first shows
        # as zero, so keep one extra month after it.
        first_zero_month = parse_date(monthly_balances[index + 1].date)
        end = _end_of_month(_next_month(first_zero_month))

    return start, min(end, today)


def split_interval(
    start: date, end: date, max_days: int = MAX_WINDOW_DAYS
) -> list[Window]:
    """Split an inclusive span into consecutive windows of at most max_days days."""
    if max_days < 1:
        raise ValueError("max_days must be at least 1")

    windows = []
    step = timedelta(days=max_days)
    cursor = start
    while cursor <= end:
        window_end = min(cursor + step - timedelta(days=1), end)
        windows.append(Window(start=cursor, end=window_end))
        cursor = window_end + timedelta(days=1)
    return windows


def resolve_windows(
    monthly_history: Sequence[TrendEntry],
    max_days: int = MAX_WINDOW_DAYS,
    today: Optional[date] = None,
) -> list[Window]:
    """Windows needed to fetch daily balances for an account's whole history."""
    start, end = calculate_interval_for_account_history(monthly_history, today=today)
    return split_interval(start, end, max_days)
