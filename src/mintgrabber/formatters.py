"""Output formatters for different data formats."""

import csv
import json
from io import StringIO
from typing import Protocol, Sequence

from .export import table_to_csv
from .models import Account, BalanceTable


def _account_rows(accounts: Sequence[Account]) -> list[list[str]]:
    return [[acc.name, acc.id, acc.type.value] for acc in accounts]


class FormatterProtocol(Protocol):
    """Protocol for data formatters."""

    def format_accounts(self, accounts: Sequence[Account]) -> str:
        """Format account data."""
        ...

    def format_balances(self, table: BalanceTable) -> str:
        """Format an encoded balance table."""
        ...


class TableFormatter:
    """Format data as aligned ASCII tables."""

    @staticmethod
    def _format_cell(value) -> str:
        if isinstance(value, float):
            return f"{value:,.2f}"
        return str(value)

    def format_accounts(self, accounts: Sequence[Account]) -> str:
        """Format accounts as table."""
        if not accounts:
            return "No accounts found."

        lines = []
        lines.append("\n" + "=" * 80)
        lines.append(f"{'Account':<40} {'ID':<18} {'Type':>20}")
        lines.append("-" * 80)
        for name, account_id, account_type in _account_rows(accounts):
            lines.append(f"{name:<40} {account_id:<18} {account_type:>20}")
        lines.append("=" * 80)
        return "\n".join(lines)

    def format_balances(self, table: BalanceTable) -> str:
        """Format balances with each column sized to its widest cell."""
        if not table.rows:
            return "No balances found."

        cells = [[self._format_cell(value) for value in row] for row in table.rows]
        widths = [
            max(len(header), *(len(row[i]) for row in cells))
            for i, header in enumerate(table.header)
        ]
        total_width = sum(widths) + 2 * (len(widths) - 1)

        def render(values):
            # first column (date) left aligned, the rest right aligned
            parts = [
                f"{value:<{width}}" if i == 0 else f"{value:>{width}}"
                for i, (value, width) in enumerate(zip(values, widths))
            ]
            return "  ".join(parts).rstrip()

        lines = ["\n" + "=" * total_width, render(table.header), "-" * total_width]
        lines.extend(render(row) for row in cells)
        lines.append("=" * total_width)
        return "\n".join(lines)


class JsonFormatter:
    """Format data as JSON."""

    def format_accounts(self, accounts: Sequence[Account]) -> str:
        """Format accounts as JSON array."""
        return json.dumps(
            [{"id": acc.id, "name": acc.name, "type": acc.type.value} for acc in accounts],
            indent=2,
        )

    def format_balances(self, table: BalanceTable) -> str:
        """Format balances as a JSON array of objects keyed by column name."""
        return json.dumps([dict(zip(table.header, row)) for row in table.rows], indent=2)


class CsvFormatter:
    """Format data as CSV."""

    def format_accounts(self, accounts: Sequence[Account]) -> str:
        """Format accounts as CSV."""
        if not accounts:
            return ""

        output = StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(["name", "id", "type"])
        writer.writerows(_account_rows(accounts))
        return output.getvalue()

    def format_balances(self, table: BalanceTable) -> str:
        """Format balances as CSV, header first."""
        return table_to_csv(table)


def get_formatter(format_type: str) -> FormatterProtocol:
    """Get formatter instance by type.

    Args:
        format_type: One of 'table', 'json', or 'csv'

    Returns:
        Formatter instance. Defaults to TableFormatter for unknown types.
    """
    formatters = {
        "table": TableFormatter(),
        "json": JsonFormatter(),
        "csv": CsvFormatter(),
    }
    return formatters.get(format_type.lower(), TableFormatter())
