import logging
import re
from pathlib import Path
from typing import Optional

import typer

from .balances import (
    fetch_daily_balances_for_all_accounts,
    fetch_daily_balances_for_trend,
    fetch_net_worth_balances,
)
from .client import MintClient
from .export import build_balance_table, format_balances_as_csv
from .formatters import get_formatter
from .models import BalanceHistoryProgress, BalanceTable, ReportType, TrendProgress, TrendState

logger = logging.getLogger(__name__)


def _echo_history_progress(progress: BalanceHistoryProgress) -> None:
    typer.echo(
        f"Progress: {progress.complete_percentage:.0%} "
        f"({progress.completed_accounts}/{progress.total_accounts} accounts done)",
        err=True,
    )


def _echo_trend_progress(progress: TrendProgress) -> None:
    typer.echo(f"Progress: {progress.complete_percentage:.0%}", err=True)


def _safe_filename(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_") or "account"


def _merge_tables(tables: list[BalanceTable]) -> Optional[BalanceTable]:
    """Concatenate tables sharing a header into one."""
    tables = [table for table in tables if table.rows]
    if not tables:
        return None
    return BalanceTable(
        header=tables[0].header,
        rows=[row for table in tables for row in table.rows],
    )


async def print_balance_history(
    client: MintClient,
    output_format: str = "csv",
    output_dir: Optional[Path] = None,
    verbose: bool = False,
) -> None:
    """Fetch and print daily balance history for every account.

    Args:
        client: Authenticated MintClient
        output_format: Output format - 'table', 'json', or 'csv' (default 'csv')
        output_dir: Write one CSV file per account here instead of printing
        verbose: If True, print status and progress messages
    """
    if verbose:
        print("\nFetching balance history for all accounts...")

    history = await fetch_daily_balances_for_all_accounts(
        client, on_progress=_echo_history_progress if verbose else None
    )

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        for account in history:
            if not account.balances:
                logger.info("No balances for %s, skipping file", account.account_name)
                continue
            path = output_dir / f"{_safe_filename(account.account_name)}.csv"
            path.write_text(
                format_balances_as_csv(account.balances, account.account_name)
            )
            print(f"Wrote {path}")
        return

    table = _merge_tables(
        [
            build_balance_table(account.balances, account_name=account.account_name)
            for account in history
        ]
    )
    if table is None:
        print("No balances found.")
        return

    print(get_formatter(output_format).format_balances(table), end="")
    if output_format != "csv":
        print()


async def print_trend_balances(
    client: MintClient,
    trend: TrendState,
    output_format: str = "csv",
    verbose: bool = False,
) -> None:
    """Fetch and print the daily balances of a trend selection."""
    if verbose:
        print(f"\nFetching {trend.report_type.value} trend...")

    balances = await fetch_daily_balances_for_trend(
        client, trend, on_progress=_echo_trend_progress if verbose else None
    )
    if not balances:
        print("No balances found.")
        return

    table = build_balance_table(balances, report_type=trend.report_type)
    print(get_formatter(output_format).format_balances(table), end="")
    if output_format != "csv":
        print()


async def print_net_worth(
    client: MintClient, output_format: str = "csv", verbose: bool = False
) -> None:
    """Fetch and print monthly net worth."""
    if verbose:
        print("\nFetching net worth...")

    balances = await fetch_net_worth_balances(client)
    if not balances:
        print("No balances found.")
        return

    table = build_balance_table(balances, report_type=ReportType.NET_WORTH)
    print(get_formatter(output_format).format_balances(table), end="")
    if output_format != "csv":
        print()
