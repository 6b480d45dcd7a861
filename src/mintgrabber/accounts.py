import logging
from typing import Callable, Optional

from .client import MintClient, make_account_id_filter
from .config import DEFAULT_LIMIT
from .exceptions import AmbiguousReportTypeError, NoHistoryError, UnsupportedReportTypeError
from .formatters import get_formatter
from .models import Account, AccountType, ReportType, TrendEntry, TrendState
from .ratelimit import RateLimiter

logger = logging.getLogger(__name__)

AccountTypeFilter = Callable[[AccountType], bool]

# The provider does not say whether an account is an asset or a debt, so both
# monthly reports are tried.
PROBE_REPORT_TYPES = (ReportType.ASSETS_TIME, ReportType.DEBTS_TIME)


def _default_filter(account_type: AccountType) -> bool:
    return account_type not in (AccountType.CASH, AccountType.INSURANCE)


def _excluding(*excluded: AccountType) -> AccountTypeFilter:
    return lambda account_type: (
        account_type not in excluded and _default_filter(account_type)
    )


def get_account_type_filter_for_trend(trend: TrendState) -> AccountTypeFilter:
    """Account types eligible for a trend's report.

    The API cannot query negated account IDs and does not expose the selected
    accounts, so eligibility mirrors the trends page.

    Args:
        trend: Trend selection

    Returns:
        Predicate on AccountType

    Raises:
        UnsupportedReportTypeError: For an unknown report type
    """
    try:
        report_type = ReportType(trend.report_type)
    except ValueError:
        raise UnsupportedReportTypeError(trend.report_type)

    if report_type in (
        ReportType.INCOME_TIME,
        ReportType.SPENDING_TIME,
        ReportType.NET_INCOME,
    ):
        return _excluding(AccountType.REAL_ESTATE, AccountType.VEHICLE)
    if report_type == ReportType.ASSETS_TIME:
        return _excluding(AccountType.LOAN, AccountType.CREDIT)
    if report_type == ReportType.DEBTS_TIME:
        return _excluding(AccountType.BANK, AccountType.INVESTMENT)
    if report_type == ReportType.NET_WORTH:
        return _default_filter
    raise UnsupportedReportTypeError(trend.report_type)


async def fetch_accounts(
    client: MintClient, offset: int = 0, limit: int = DEFAULT_LIMIT
) -> list[Account]:
    """Fetch all of the user's accounts.

    Paginated upstream, but a single page of DEFAULT_LIMIT is assumed to be
    enough.
    """
    return await client.fetch_accounts(offset=offset, limit=limit)


async def fetch_trend_accounts(
    client: MintClient, trend: TrendState, limit: int = DEFAULT_LIMIT
) -> list[Account]:
    """Accounts selected on the trends page.

    Returns an empty list when nothing is deselected: the provider then picks
    the eligible accounts itself.
    """
    if not trend.deselected_account_ids:
        return []

    account_type_filter = get_account_type_filter_for_trend(trend)
    all_accounts = await fetch_accounts(client, offset=0, limit=limit)
    deselected = set(trend.deselected_account_ids)
    return [
        account
        for account in all_accounts
        if account_type_filter(account.type) and account.id not in deselected
    ]


def _fetch_monthly(client, report_type, account_id, offset, limit):
    return client.fetch_trends(
        report_type,
        filters=[make_account_id_filter(account_id)],
        offset=offset,
        limit=limit,
    )


async def fetch_monthly_balances_for_account(
    client: MintClient,
    account_id: str,
    offset: int = 0,
    limit: int = DEFAULT_LIMIT,
    limiter: Optional[RateLimiter] = None,
) -> tuple[list[TrendEntry], ReportType]:
    """Fetch an account's balance for every month of its history.

    Each probe request acquires limiter when one is given.

    Returns:
        Tuple of (monthly balances, report type that returned them)

    Raises:
        NoHistoryError: If neither report returned data
        AmbiguousReportTypeError: If both did
    """
    found = []
    for report_type in PROBE_REPORT_TYPES:
        if limiter is None:
            entries = await _fetch_monthly(client, report_type, account_id, offset, limit)
        else:
            async with limiter:
                entries = await _fetch_monthly(
                    client, report_type, account_id, offset, limit
                )
        # the API omits Trend when the report does not apply to the account
        if entries:
            found.append(([TrendEntry.from_api(e) for e in entries], report_type))

    if not found:
        raise NoHistoryError(f"Unable to fetch account history for {account_id}.")
    if len(found) > 1:
        raise AmbiguousReportTypeError(account_id)

    balances, report_type = found[0]
    logger.debug(
        "Account %s: %d monthly balances from %s",
        account_id,
        len(balances),
        report_type.value,
    )
    return balances, report_type


async def get_accounts_data(
    client: MintClient, report_type: Optional[ReportType] = None
) -> list[Account]:
    """Fetch accounts, optionally only those eligible for a report type.

    Args:
        client: Authenticated MintClient
        report_type: Keep only accounts the trends page offers for this report

    Returns:
        List of Account objects
    """
    accounts = await fetch_accounts(client)
    if report_type is None:
        return accounts

    account_type_filter = get_account_type_filter_for_trend(
        TrendState(report_type=report_type, from_date="", to_date="")
    )
    return [account for account in accounts if account_type_filter(account.type)]


async def print_accounts(
    client: MintClient,
    report_type: Optional[ReportType] = None,
    output_format: str = "table",
    verbose: bool = False,
) -> None:
    """Fetch and print accounts.

    Args:
        client: Authenticated MintClient
        report_type: Keep only accounts eligible for this report
        output_format: Output format - 'table', 'json', or 'csv' (default 'table')
        verbose: If True, print status messages during execution
    """
    if verbose:
        print("\nFetching accounts...")

    accounts = await get_accounts_data(client, report_type)

    if not accounts:
        print("No accounts found.")
        return

    formatter = get_formatter(output_format)
    print(formatter.format_accounts(accounts))
