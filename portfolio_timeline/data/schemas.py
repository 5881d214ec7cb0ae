"""
Typed records for the ledger pipeline, plus period filter schemas for time-based queries.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class LedgerError(Exception):
    """Base class for ledger pipeline failures."""


class LedgerReadError(LedgerError):
    """Ledger content could not be decoded or tokenized as delimited text."""


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class TransactionCategory(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRADE = "trade"
    DIVIDEND = "dividend"
    FEE = "fee"
    OTHER = "other"


class TransferKind(str, Enum):
    CASH_CREDIT = "cash-credit"
    CASH_DEBIT = "cash-debit"
    ASSET_BUY = "asset-buy"
    ASSET_SELL = "asset-sell"
    OTHER = "other"


@dataclass(frozen=True)
class Transaction:
    """One validated ledger row."""
    id: str
    date: dt.datetime
    category: TransactionCategory
    transfer_kind: TransferKind
    amount: float = 0.0
    cash_balance_after: Optional[float] = None
    asset_name: Optional[str] = None
    asset_quantity: Optional[float] = None
    asset_price: Optional[float] = None
    realized_pnl: float = 0.0
    type: str = ""
    currency: str = ""
    asset_id: Optional[str] = None
    source_row: int = 0

    @property
    def day(self) -> dt.date:
        return self.date.date()

    @property
    def month_key(self) -> str:
        return f"{self.date.year}-{self.date.month:02d}"


@dataclass(frozen=True)
class NormalizedLedger:
    """Sorted transactions plus bookkeeping about discarded rows."""
    transactions: tuple[Transaction, ...] = ()
    total_rows: int = 0
    dropped_rows: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.transactions


# ---------------------------------------------------------------------------
# Timeline output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Holding:
    name: str
    quantity: float = 0.0
    last_price: float = 0.0

    @property
    def value(self) -> float:
        return self.quantity * self.last_price


@dataclass(frozen=True)
class DailySnapshot:
    """Portfolio state at the end of one calendar day."""
    date: dt.date
    timestamp: int                     # epoch milliseconds of the day's midnight
    cash_balance: float
    assets_value: float
    total_value: float
    total_invested: float
    total_realized_pnl: float
    total_unrealized_pnl: float
    total_fees: float
    total_dividends: float
    holdings: Mapping[str, Holding] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "timestamp": self.timestamp,
            "cash_balance": self.cash_balance,
            "assets_value": self.assets_value,
            "total_value": self.total_value,
            "total_invested": self.total_invested,
            "total_realized_pnl": self.total_realized_pnl,
            "total_unrealized_pnl": self.total_unrealized_pnl,
            "total_fees": self.total_fees,
            "total_dividends": self.total_dividends,
            "holdings": {
                name: {"name": h.name, "quantity": h.quantity, "last_price": h.last_price}
                for name, h in self.holdings.items()
            },
        }


@dataclass(frozen=True)
class MonthlyCashFlow:
    month: str                         # YYYY-MM
    deposits: float = 0.0
    withdrawals: float = 0.0
    dividends: float = 0.0
    net_flow: float = 0.0

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "deposits": self.deposits,
            "withdrawals": self.withdrawals,
            "dividends": self.dividends,
            "net_flow": self.net_flow,
        }


@dataclass(frozen=True)
class AssetAllocation:
    name: str
    quantity: float
    current_value: float
    allocation: float                  # percent of total current asset value

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "current_value": self.current_value,
            "allocation": self.allocation,
        }


@dataclass(frozen=True)
class Timeline:
    """Everything the replay engine hands to downstream consumers."""
    snapshots: tuple[DailySnapshot, ...] = ()
    monthly_cash_flow: Mapping[str, MonthlyCashFlow] = field(default_factory=lambda: MappingProxyType({}))
    asset_summary: tuple[AssetAllocation, ...] = ()
    warnings: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "Timeline":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.snapshots

    @property
    def final(self) -> Optional[DailySnapshot]:
        return self.snapshots[-1] if self.snapshots else None


# ---------------------------------------------------------------------------
# Period filters
# ---------------------------------------------------------------------------

class PeriodType(str, Enum):
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"
    ALL = "all"


def _month_end(year: int, month: int) -> dt.date:
    if month == 12:
        return dt.date(year + 1, 1, 1) - dt.timedelta(days=1)
    return dt.date(year, month + 1, 1) - dt.timedelta(days=1)


@dataclass
class PeriodFilter:
    """Selects a slice of the timeline by calendar period.

    Year, quarter and month combine independently: a quarter without a year
    selects that quarter in every year.
    """
    period_type: PeriodType = PeriodType.ALL
    year: Optional[int] = None
    month: Optional[int] = None          # 1-12
    quarter: Optional[int] = None        # 1-4
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    def contains(self, day: dt.date) -> bool:
        """True if the calendar day falls inside the period."""
        if self.period_type == PeriodType.ALL:
            return True

        if self.period_type == PeriodType.CUSTOM:
            if self.start_date is not None and day < self.start_date:
                return False
            if self.end_date is not None and day > self.end_date:
                return False
            return True

        if self.year is not None and day.year != self.year:
            return False
        if self.period_type == PeriodType.QUARTER and self.quarter is not None:
            return (day.month - 1) // 3 + 1 == self.quarter
        if self.period_type == PeriodType.MONTH and self.month is not None:
            return day.month == self.month
        return True

    def contains_month(self, month_key: str) -> bool:
        """True if any day of the YYYY-MM month falls inside the period."""
        year, month = (int(p) for p in month_key.split("-"))
        first = dt.date(year, month, 1)
        if self.period_type != PeriodType.CUSTOM:
            return self.contains(first)
        last = _month_end(year, month)
        if self.start_date is not None and last < self.start_date:
            return False
        if self.end_date is not None and first > self.end_date:
            return False
        return True

    @property
    def label(self) -> str:
        """Human-readable label for the period."""
        if self.period_type == PeriodType.ALL:
            return "All Time"
        if self.period_type == PeriodType.YEAR and self.year:
            return str(self.year)
        if self.period_type == PeriodType.QUARTER and self.quarter:
            return f"Q{self.quarter} {self.year}" if self.year else f"Q{self.quarter} (all years)"
        if self.period_type == PeriodType.MONTH and self.month:
            if self.year:
                return f"{dt.date(self.year, self.month, 1):%B %Y}"
            return f"{dt.date(2000, self.month, 1):%B} (all years)"
        if self.period_type == PeriodType.CUSTOM:
            s = self.start_date.isoformat() if self.start_date else "?"
            e = self.end_date.isoformat() if self.end_date else "?"
            return f"{s} to {e}"
        return "Unknown"
