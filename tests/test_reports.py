import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from mintgrabber.models import (
    AccountBalances,
    ReportType,
    TrendEntry,
    TrendState,
    TrendType,
)
from mintgrabber.reports import (
    print_balance_history,
    print_net_worth,
    print_trend_balances,
)


def entry(day, amount, trend_type=TrendType.ASSET):
    return TrendEntry(amount=amount, date=day, type=trend_type)


def sample_history():
    return [
        AccountBalances("Checking", [entry("2021-01-01", 10), entry("2021-01-02", 0)]),
        AccountBalances("Empty", []),
        AccountBalances("Visa/Card", [entry("2021-01-01", -5, TrendType.DEBT)]),
    ]


@patch("mintgrabber.reports.fetch_daily_balances_for_all_accounts", new_callable=AsyncMock)
def test_print_balance_history_csv(mock_fetch, capsys):
    """Test that account tables are concatenated under one header."""
    mock_fetch.return_value = sample_history()

    asyncio.run(print_balance_history(MagicMock()))

    assert capsys.readouterr().out.splitlines() == [
        "Date,Amount,Account Name",
        "2021-01-01,10,Checking",
        "2021-01-01,-5,Visa/Card",
    ]


@patch("mintgrabber.reports.fetch_daily_balances_for_all_accounts", new_callable=AsyncMock)
def test_print_balance_history_output_dir(mock_fetch, tmp_path, capsys):
    """Test writing one CSV file per account with data."""
    mock_fetch.return_value = sample_history()

    asyncio.run(print_balance_history(MagicMock(), output_dir=tmp_path))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["Checking.csv", "Visa_Card.csv"]
    assert (tmp_path / "Checking.csv").read_text() == (
        "Date,Amount,Account Name\n2021-01-01,10,Checking\n"
    )
    assert "Wrote" in capsys.readouterr().out


@patch("mintgrabber.reports.fetch_daily_balances_for_all_accounts", new_callable=AsyncMock)
def test_print_balance_history_empty(mock_fetch, capsys):
    mock_fetch.return_value = [AccountBalances("Empty", [])]

    asyncio.run(print_balance_history(MagicMock()))

    assert "No balances found." in capsys.readouterr().out


@patch("mintgrabber.reports.fetch_daily_balances_for_all_accounts", new_callable=AsyncMock)
def test_print_balance_history_verbose_progress(mock_fetch, capsys):
    """Test that verbose mode passes a progress callback."""
    mock_fetch.return_value = []

    asyncio.run(print_balance_history(MagicMock(), verbose=True))

    assert mock_fetch.await_args.kwargs["on_progress"] is not None
    assert "Fetching balance history" in capsys.readouterr().out


@patch("mintgrabber.reports.fetch_daily_balances_for_trend", new_callable=AsyncMock)
def test_print_trend_balances_net_worth(mock_fetch, capsys):
    """Test that paired trend entries are merged into one row per date."""
    mock_fetch.return_value = [
        entry("2021-01-01", 100),
        entry("2021-01-01", 40, TrendType.DEBT),
    ]
    trend = TrendState(ReportType.NET_WORTH, "2021-01-01", "2021-01-31")

    asyncio.run(print_trend_balances(MagicMock(), trend))

    assert capsys.readouterr().out.splitlines() == [
        "Date,Assts,Debts,Net",
        "2021-01-01,100,40,60.00",
    ]


@patch("mintgrabber.reports.fetch_daily_balances_for_trend", new_callable=AsyncMock)
def test_print_trend_balances_empty(mock_fetch, capsys):
    mock_fetch.return_value = []
    trend = TrendState(ReportType.ASSETS_TIME, "2021-01-01", "2021-01-31")

    asyncio.run(print_trend_balances(MagicMock(), trend))

    assert "No balances found." in capsys.readouterr().out


@patch("mintgrabber.reports.fetch_net_worth_balances", new_callable=AsyncMock)
def test_print_net_worth_json(mock_fetch, capsys):
    mock_fetch.return_value = [entry("2021-01-01", 100)]

    asyncio.run(print_net_worth(MagicMock(), output_format="json"))

    out = capsys.readouterr().out
    assert '"Assts": 100' in out
    assert '"Net": "100.00"' in out


def test_print_net_worth_debts_stay_positive(fake_client_cls, capsys):
    """Test that Net subtracts debts reported by the net worth trend."""
    client = fake_client_cls(
        monthly={
            (None, "NET_WORTH"): [
                {"amount": 100, "date": "2021-01-01", "type": "ASSET"},
                {"amount": 40, "date": "2021-01-01", "type": "DEBT"},
            ]
        }
    )

    asyncio.run(print_net_worth(client))

    assert capsys.readouterr().out.splitlines() == [
        "Date,Assts,Debts,Net",
        "2021-01-01,100,40,60.00",
    ]


def test_print_trend_balances_net_worth_from_api(fake_client_cls, capsys):
    """Test the daily NET_WORTH trend export end to end."""

    def daily(report_type, filters, date_filter):
        return [
            {"amount": 100, "date": "2021-01-01", "type": "ASSET"},
            {"amount": 40, "date": "2021-01-01", "type": "DEBT"},
        ]

    trend = TrendState(ReportType.NET_WORTH, "2021-01-01", "2021-01-31")

    asyncio.run(print_trend_balances(fake_client_cls(daily=daily), trend))

    assert capsys.readouterr().out.splitlines() == [
        "Date,Assts,Debts,Net",
        "2021-01-01,100,40,60.00",
    ]
