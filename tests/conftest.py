from typing import Optional

import pytest

from mintgrabber.models import Account, AccountType


class FakeMintClient:
    """In-memory stand-in for MintClient.

    Args:
        accounts: Accounts returned by fetch_accounts
        monthly: Maps (account_id, report_type value) to monthly trend entries
        daily: Callable (report_type, filters, date_filter) -> Trend list or None
    """

    def __init__(self, accounts=(), monthly=None, daily=None):
        self.accounts = list(accounts)
        self.monthly = monthly or {}
        self.daily = daily or (lambda report_type, filters, date_filter: [])
        self.trend_calls = []
        self.account_calls = 0

    async def fetch_accounts(self, offset: int = 0, limit: int = 1000):
        self.account_calls += 1
        return self.accounts

    async def fetch_trends(
        self,
        report_type,
        filters=(),
        date_filter: Optional[dict] = None,
        offset: int = 0,
        limit: int = 1000,
    ):
        self.trend_calls.append((report_type, list(filters), date_filter))
        if date_filter is None:
            account_ids = [f["accountId"] for f in filters]
            if not account_ids:
                return self.monthly.get((None, report_type.value))
            return self.monthly.get((account_ids[0], report_type.value))
        return self.daily(report_type, list(filters), date_filter)

    async def aclose(self):
        pass


@pytest.fixture
def accounts():
    return [
        Account(id="1", name="Checking", type=AccountType.BANK),
        Account(id="2", name="Visa", type=AccountType.CREDIT),
        Account(id="3", name="House", type=AccountType.REAL_ESTATE),
        Account(id="4", name="Wallet", type=AccountType.CASH),
        Account(id="5", name="Car Loan", type=AccountType.LOAN),
    ]


@pytest.fixture
def fake_client_cls():
    return FakeMintClient
