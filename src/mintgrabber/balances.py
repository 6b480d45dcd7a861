import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Sequence, Union

from .accounts import fetch_accounts, fetch_monthly_balances_for_account, fetch_trend_accounts
from .client import MintClient, make_account_id_filter, make_custom_date_filter
from .config import DEFAULT_LIMIT, MAX_WINDOW_DAYS, get_config
from .exceptions import InvalidReportTypeError, TrendTimeoutError, UnsupportedReportTypeError
from .executor import execute_all, resolve_sequential, with_default_on_error
from .models import (
    Account,
    AccountBalances,
    BalanceHistoryProgress,
    ReportType,
    TrendEntry,
    TrendProgress,
    TrendState,
    Window,
)
from .progress import ProgressAccumulator, ProgressStream
from .ratelimit import RateLimiter
from .retry import RetryPolicy
from .windows import parse_date, resolve_windows, split_interval

logger = logging.getLogger(__name__)

WindowProgressCallback = Callable[[int, int], object]


@dataclass
class AccountPlan:
    """Windows to fetch for one account, resolved before any daily fetch."""

    account: Account
    windows: list[Window] = field(default_factory=list)
    report_type: Optional[ReportType] = None


def _defaults(
    limiter: Optional[RateLimiter], retry: Optional[RetryPolicy]
) -> tuple[RateLimiter, RetryPolicy]:
    config = get_config()
    return (
        limiter or RateLimiter.from_config(config.rate_limit),
        retry or RetryPolicy.from_config(config.retry),
    )


def _to_report_type(report_type) -> ReportType:
    if not report_type:
        raise InvalidReportTypeError()
    try:
        return ReportType(report_type)
    except ValueError:
        raise UnsupportedReportTypeError(report_type)


async def fetch_intervals_for_account_history(
    client: MintClient,
    account_id: str,
    limiter: Optional[RateLimiter] = None,
    retry: Optional[RetryPolicy] = None,
    max_days: int = MAX_WINDOW_DAYS,
    today: Optional[date] = None,
) -> tuple[list[Window], ReportType]:
    """Determine the windows covering an account's whole balance history.

    Returns:
        Tuple of (windows, report type the account's history comes from)
    """

    async def probe():
        return await fetch_monthly_balances_for_account(
            client, account_id, limiter=limiter
        )

    if retry is None:
        monthly_balances, report_type = await probe()
    else:
        monthly_balances, report_type = await retry.run(probe)

    windows = resolve_windows(monthly_balances, max_days=max_days, today=today)
    return windows, report_type


async def fetch_daily_balances(
    client: MintClient,
    windows: Sequence[Window],
    account_ids: Union[str, Sequence[str]],
    report_type: Optional[ReportType],
    limiter: Optional[RateLimiter] = None,
    retry: Optional[RetryPolicy] = None,
    on_progress: Optional[WindowProgressCallback] = None,
    today: Optional[date] = None,
) -> list[TrendEntry]:
    """Fetch daily balances for one or more accounts, one request per window.

    A window that keeps failing contributes no entries. DEBT amounts are
    negated, except in net reports, which keep both sides positive.

    Args:
        client: Authenticated MintClient
        windows: Date windows, in the order entries should be returned
        account_ids: Account ID or IDs to filter the report to
        report_type: Report to request
        limiter: Rate limiter shared with the rest of the run
        retry: Retry policy for each window
        on_progress: Called with (completed, total) as windows finish
        today: Override for the current date

    Returns:
        Entries of all windows, concatenated in window order
    """
    report_type = _to_report_type(report_type)
    if isinstance(account_ids, str):
        account_ids = [account_ids]
    filters = [make_account_id_filter(account_id) for account_id in account_ids]
    today = today or date.today()

    def make_task(window: Window):
        async def fetch_window() -> list[TrendEntry]:
            entries = await client.fetch_trends(
                report_type,
                filters=filters,
                date_filter=make_custom_date_filter(
                    window.start.isoformat(), min(window.end, today).isoformat()
                ),
            )
            if entries is None:
                # Trend is omitted when the request times out
                raise TrendTimeoutError()
            return [
                TrendEntry.from_api(entry, signed=not report_type.is_paired)
                for entry in entries
            ]

        return fetch_window

    balances_by_window = await execute_all(
        [make_task(window) for window in windows],
        retry=retry,
        limiter=limiter,
        on_unit_complete=on_progress,
        default_factory=list,
    )
    return [entry for balances in balances_by_window for entry in balances]


async def _plan_account(client, account, limiter, retry, today) -> AccountPlan:
    windows, report_type = await with_default_on_error(
        lambda: ([], None),
        fetch_intervals_for_account_history(
            client, account.id, limiter=limiter, retry=retry, today=today
        ),
    )
    return AccountPlan(account=account, windows=windows, report_type=report_type)


async def fetch_daily_balances_for_all_accounts(
    client: MintClient,
    on_progress: Optional[Callable[[BalanceHistoryProgress], object]] = None,
    progress: Optional[ProgressStream] = None,
    limiter: Optional[RateLimiter] = None,
    retry: Optional[RetryPolicy] = None,
    today: Optional[date] = None,
) -> list[AccountBalances]:
    """Fetch the full daily balance history of every account.

    Window counts are resolved for all accounts first so progress can be
    reported against the total. Accounts are then fetched one at a time to
    stay within the rate limit. An account that fails yields no balances.

    Args:
        client: Authenticated MintClient
        on_progress: Subscribed to the progress stream
        progress: Stream receiving BalanceHistoryProgress snapshots
        limiter: Shared rate limiter (from configuration if omitted)
        retry: Retry policy (from configuration if omitted)
        today: Override for the current date

    Returns:
        One AccountBalances per account, in account order
    """
    limiter, retry = _defaults(limiter, retry)
    progress = progress or ProgressStream()
    if on_progress is not None:
        progress.subscribe(on_progress)

    async def list_accounts():
        async with limiter:
            return await fetch_accounts(client, limit=DEFAULT_LIMIT)

    accounts = await retry.run(list_accounts)
    logger.info("Resolving balance history windows for %d accounts", len(accounts))

    plans = await execute_all(
        [
            lambda account=account: _plan_account(client, account, limiter, retry, today)
            for account in accounts
        ]
    )

    # one request per account per window
    accumulator = ProgressAccumulator([len(plan.windows) for plan in plans])
    logger.info("Fetching %d windows of daily balances", accumulator.total_units)
    if accumulator.total_units == 0:
        await progress.publish(accumulator.snapshot(len(plans)))

    def make_account_job(account_index: int, plan: AccountPlan):
        async def on_window_complete(completed: int, total: int):
            await progress.publish(accumulator.unit_completed(account_index, completed))

        async def job() -> AccountBalances:
            balances = []
            if plan.windows:
                balances = await with_default_on_error(
                    list,
                    fetch_daily_balances(
                        client,
                        plan.windows,
                        plan.account.id,
                        plan.report_type,
                        limiter=limiter,
                        retry=retry,
                        on_progress=on_window_complete,
                        today=today,
                    ),
                )
            accumulator.account_finished(account_index)
            logger.debug(
                "Account %s: %d daily balances", plan.account.name, len(balances)
            )
            return AccountBalances(account_name=plan.account.name, balances=balances)

        return job

    return await resolve_sequential(
        [make_account_job(index, plan) for index, plan in enumerate(plans)]
    )


async def fetch_daily_balances_for_trend(
    client: MintClient,
    trend: TrendState,
    on_progress: Optional[Callable[[TrendProgress], object]] = None,
    progress: Optional[ProgressStream] = None,
    limiter: Optional[RateLimiter] = None,
    retry: Optional[RetryPolicy] = None,
    max_days: int = MAX_WINDOW_DAYS,
    today: Optional[date] = None,
) -> list[TrendEntry]:
    """Fetch daily balances for the accounts and dates selected on the trends page.

    Returns:
        Entries for every window in date order, or an empty list if the fetch
        failed
    """
    report_type = _to_report_type(trend.report_type)
    limiter, retry = _defaults(limiter, retry)
    progress = progress or ProgressStream()
    if on_progress is not None:
        progress.subscribe(on_progress)
    today = today or date.today()

    async def list_trend_accounts():
        async with limiter:
            return await fetch_trend_accounts(client, trend)

    accounts = await retry.run(list_trend_accounts)
    windows = split_interval(
        parse_date(trend.from_date),
        min(parse_date(trend.to_date), today),
        max_days,
    )
    if not windows:
        await progress.publish(TrendProgress(complete_percentage=1.0))

    async def on_window_complete(completed: int, total: int):
        await progress.publish(TrendProgress(complete_percentage=completed / total))

    return await with_default_on_error(
        list,
        fetch_daily_balances(
            client,
            windows,
            [account.id for account in accounts],
            report_type,
            limiter=limiter,
            retry=retry,
            on_progress=on_window_complete,
            today=today,
        ),
    )


async def fetch_net_worth_balances(
    client: MintClient, offset: int = 0, limit: int = DEFAULT_LIMIT
) -> list[TrendEntry]:
    """Monthly net worth history: an ASSET and a DEBT entry for each month.

    DEBT amounts are left positive, as reported.
    """
    entries = await client.fetch_trends(
        ReportType.NET_WORTH, offset=offset, limit=limit
    )
    if entries is None:
        raise TrendTimeoutError()
    return [TrendEntry.from_api(entry, signed=False) for entry in entries]
