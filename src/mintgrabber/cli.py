import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from .accounts import print_accounts
from .auth import get_api_key
from .auth import logout as auth_logout
from .client import MintClient
from .config import get_config
from .models import ReportType, TrendState
from .reports import print_balance_history, print_net_worth, print_trend_balances

app = typer.Typer(help="Mint Balance History Exporter CLI", no_args_is_help=True)


class OutputFormat(str, Enum):
    """Output format options."""

    table = "table"
    json = "json"
    csv = "csv"


def _verbose(ctx: typer.Context) -> bool:
    return ctx.obj.get("verbose") if ctx.obj else False


def _client_or_exit(ctx: typer.Context) -> MintClient:
    api_key = get_api_key(verbose=_verbose(ctx))
    if not api_key:
        print("Could not authenticate.")
        raise typer.Exit(code=1)
    return MintClient(api_key, config=get_config().api)


async def _run_with_client(client: MintClient, coro_fn, *args, **kwargs):
    async with client:
        await coro_fn(client, *args, **kwargs)


@app.command()
def login(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Prompt for a new API key even if one is stored."
    ),
):
    """
    Store the Mint API key used for requests.
    """
    api_key = get_api_key(force_login=force, verbose=_verbose(ctx))
    if api_key:
        print("Login routine completed successfully.")
    else:
        print("Login routine failed.")
        raise typer.Exit(code=1)


@app.command()
def logout():
    """
    Clear the stored API key.
    """
    auth_logout()


@app.command(name="accounts")
def accounts_cmd(
    ctx: typer.Context,
    report_type: Optional[ReportType] = typer.Option(
        None,
        "--report-type",
        "-r",
        help="Show only accounts eligible for this trend report.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.table, "--format", "-f", help="Output format."
    ),
):
    """
    List all accounts with their IDs and types.
    """
    client = _client_or_exit(ctx)
    try:
        asyncio.run(
            _run_with_client(
                client,
                print_accounts,
                report_type=report_type,
                output_format=output_format.value,
                verbose=_verbose(ctx),
            )
        )
    except Exception as e:
        print(f"Error fetching accounts: {e}")
        raise typer.Exit(code=1)


@app.command()
def history(
    ctx: typer.Context,
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Write one CSV file per account to this directory.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.csv, "--format", "-f", help="Output format."
    ),
):
    """
    Export the daily balance history of every account.
    """
    client = _client_or_exit(ctx)
    try:
        asyncio.run(
            _run_with_client(
                client,
                print_balance_history,
                output_format=output_format.value,
                output_dir=output_dir,
                verbose=_verbose(ctx),
            )
        )
    except Exception as e:
        print(f"Error fetching balance history: {e}")
        raise typer.Exit(code=1)


@app.command()
def trend(
    ctx: typer.Context,
    report_type: ReportType = typer.Option(
        ..., "--report-type", "-r", help="Trend report to export."
    ),
    from_date: str = typer.Option(..., "--from", help="Start date (YYYY-MM-DD)."),
    to_date: str = typer.Option(..., "--to", help="End date (YYYY-MM-DD)."),
    deselect: Optional[list[str]] = typer.Option(
        None,
        "--deselect",
        "-x",
        help="Account ID to leave out of the trend. Can be repeated.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.csv, "--format", "-f", help="Output format."
    ),
):
    """
    Export daily balances for a trend report and date range.
    """
    trend_state = TrendState(
        report_type=report_type,
        from_date=from_date,
        to_date=to_date,
        deselected_account_ids=list(deselect or []),
    )
    client = _client_or_exit(ctx)
    try:
        asyncio.run(
            _run_with_client(
                client,
                print_trend_balances,
                trend_state,
                output_format=output_format.value,
                verbose=_verbose(ctx),
            )
        )
    except Exception as e:
        print(f"Error fetching trend: {e}")
        raise typer.Exit(code=1)


@app.command(name="net-worth")
def net_worth(
    ctx: typer.Context,
    output_format: OutputFormat = typer.Option(
        OutputFormat.csv, "--format", "-f", help="Output format."
    ),
):
    """
    Export monthly net worth (assets, debts and net).
    """
    client = _client_or_exit(ctx)
    try:
        asyncio.run(
            _run_with_client(
                client,
                print_net_worth,
                output_format=output_format.value,
                verbose=_verbose(ctx),
            )
        )
    except Exception as e:
        print(f"Error fetching net worth: {e}")
        raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show status messages and progress."
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
):
    """
    Mint Balance History Exporter CLI
    """
    logging.basicConfig(
        level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s"
    )
    if debug:
        logging.getLogger("mintgrabber").setLevel(logging.DEBUG)
    ctx.obj = {"verbose": verbose, "debug": debug}
