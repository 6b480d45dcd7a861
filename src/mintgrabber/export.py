"""Turn trend entries into export tables."""

import csv
from dataclasses import replace
from io import StringIO
from typing import Callable, Optional, Sequence, Union

from .models import BalanceTable, Cell, ReportType, TrendEntry

Column = Union[str, Callable[[TrendEntry], Cell]]


def zip_trend_entries(trend_entries: Sequence[TrendEntry]) -> list[TrendEntry]:
    """Merge paired entries into a single amount/inverse_amount entry.

    The API leaves out the inverse entry of a date when its amount is zero,
    but always returns the positive entry.
    """
    merged = []
    i = 0
    while i < len(trend_entries):
        entry = trend_entries[i]
        next_entry = trend_entries[i + 1] if i + 1 < len(trend_entries) else None
        inverse_amount = 0
        # consume the next entry if it is the inverse of this one
        if next_entry is not None and next_entry.type != entry.type:
            inverse_amount = next_entry.amount
            i += 1
        merged.append(replace(entry, inverse_amount=inverse_amount))
        i += 1
    return merged


def _net(entry: TrendEntry) -> str:
    return f"{entry.amount - (entry.inverse_amount or 0):.2f}"


def _inverse(entry: TrendEntry) -> Cell:
    return entry.inverse_amount or 0


def _columns_for(report_type: Optional[ReportType]) -> tuple[list[str], list[Column]]:
    if report_type is not None and ReportType(report_type).is_paired:
        if ReportType(report_type) == ReportType.NET_INCOME:
            labels = ["Income", "Expenses"]
        else:
            labels = ["Assts", "Debts"]
        return ["Date", *labels, "Net"], ["date", "amount", _inverse, _net]
    return ["Date", "Amount"], ["date", "amount"]


def to_table(
    entries: Sequence[TrendEntry],
    account_name: Optional[str] = None,
    report_type: Optional[ReportType] = None,
) -> BalanceTable:
    """Encode entries as a header and rows.

    Zero balances at the end of the history are dropped, but the first row is
    kept even when every balance is zero.

    Args:
        entries: Trend entries, merged already for net reports
        account_name: Appended as an "Account Name" column when given
        report_type: Net reports get paired columns plus a Net column

    Returns:
        BalanceTable
    """
    header, columns = _columns_for(report_type)
    extra = []
    if account_name:
        header.append("Account Name")
        extra.append(account_name)

    # index of the last row worth keeping
    last = len(entries) - 1
    while last > 0 and entries[last].amount == 0 and not entries[last].inverse_amount:
        last -= 1

    rows = [
        [
            *(col(entry) if callable(col) else getattr(entry, col) for col in columns),
            *extra,
        ]
        for entry in entries[: last + 1]
    ]
    return BalanceTable(header=header, rows=rows)


def build_balance_table(
    balances: Sequence[TrendEntry],
    account_name: Optional[str] = None,
    report_type: Optional[ReportType] = None,
) -> BalanceTable:
    """Merge paired entries for net reports, then encode."""
    entries = balances
    if report_type is not None and ReportType(report_type).is_paired:
        entries = zip_trend_entries(balances)
    return to_table(entries, account_name=account_name, report_type=report_type)


def table_to_csv(table: BalanceTable) -> str:
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(table.header)
    writer.writerows(table.rows)
    return output.getvalue()


def format_balances_as_csv(
    balances: Sequence[TrendEntry],
    account_name: Optional[str] = None,
    report_type: Optional[ReportType] = None,
) -> str:
    return table_to_csv(build_balance_table(balances, account_name, report_type))
