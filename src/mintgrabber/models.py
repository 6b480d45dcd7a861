"""Data models for mintgrabber balance exports."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Union


class TrendType(str, Enum):
    """Kind of a single trend entry."""

    DEBT = "DEBT"
    ASSET = "ASSET"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class ReportType(str, Enum):
    """Kind of time series requested from the trends API."""

    ASSETS_TIME = "ASSETS_TIME"
    DEBTS_TIME = "DEBTS_TIME"
    SPENDING_TIME = "SPENDING_TIME"
    INCOME_TIME = "INCOME_TIME"
    NET_INCOME = "NET_INCOME"
    NET_WORTH = "NET_WORTH"

    @property
    def is_paired(self) -> bool:
        """Net reports return two entries per date (positive and inverse)."""
        return self.value.startswith("NET_")


class FixedDateFilter(str, Enum):
    """Semantic date ranges offered on the trends page."""

    LAST_7_DAYS = "LAST_7_DAYS"
    LAST_14_DAYS = "LAST_14_DAYS"
    THIS_MONTH = "THIS_MONTH"
    LAST_MONTH = "LAST_MONTH"
    LAST_3_MONTHS = "LAST_3_MONTHS"
    LAST_6_MONTHS = "LAST_6_MONTHS"
    LAST_12_MONTHS = "LAST_12_MONTHS"
    THIS_YEAR = "THIS_YEAR"
    LAST_YEAR = "LAST_YEAR"
    ALL_TIME = "ALL_TIME"
    CUSTOM = "CUSTOM"


class AccountType(str, Enum):
    """Account kinds known to the provider."""

    BANK = "BankAccount"
    CASH = "CashAccount"
    CREDIT = "CreditAccount"
    INSURANCE = "InsuranceAccount"
    INVESTMENT = "InvestmentAccount"
    LOAN = "LoanAccount"
    REAL_ESTATE = "RealEstateAccount"
    VEHICLE = "VehicleAccount"
    OTHER_PROPERTY = "OtherPropertyAccount"


@dataclass(frozen=True)
class Account:
    """Container for a provider account."""

    id: str
    name: str
    type: AccountType

    @classmethod
    def from_api(cls, account: dict) -> "Account":
        return cls(
            id=str(account.get("id", "")),
            name=account.get("name", "Unknown Account"),
            type=AccountType(account.get("type")),
        )


@dataclass
class TrendEntry:
    """One dated balance observation.

    ``amount`` is signed: DEBT entries are negated when read from the API,
    except in net reports, where the Net column subtracts the raw debt.
    ``inverse_amount`` holds the paired opposite amount in net reports.
    """

    amount: float
    date: str  # YYYY-MM-DD format
    type: TrendType
    inverse_amount: Optional[float] = None

    @classmethod
    def from_api(cls, entry: dict, signed: bool = True) -> "TrendEntry":
        trend_type = TrendType(entry.get("type"))
        amount = entry.get("amount") or 0
        return cls(
            amount=-amount if signed and trend_type == TrendType.DEBT else amount,
            date=entry.get("date", ""),
            type=trend_type,
        )


@dataclass(frozen=True)
class Window:
    """Inclusive date range submitted as one trends request."""

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} is before start {self.start}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass
class TrendState:
    """State of user selections on the trends page."""

    report_type: ReportType
    from_date: str
    to_date: str
    deselected_account_ids: list[str] = field(default_factory=list)
    fixed_filter: FixedDateFilter = FixedDateFilter.CUSTOM


@dataclass
class AccountBalances:
    """Daily balances fetched for one account."""

    account_name: str
    balances: list[TrendEntry]


@dataclass(frozen=True)
class BalanceHistoryProgress:
    """Progress snapshot of a multi-account history export."""

    completed_accounts: int
    total_accounts: int
    complete_percentage: float


@dataclass(frozen=True)
class TrendProgress:
    """Progress snapshot of a single trend export."""

    complete_percentage: float


Cell = Union[str, float, int]


@dataclass
class BalanceTable:
    """Header plus data rows ready for output formatting."""

    header: list[str]
    rows: list[list[Cell]]
