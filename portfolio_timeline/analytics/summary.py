"""
Summary analytics over the snapshot series — period slicing, KPI cards, frames for export.

Everything here reads timeline output and returns new objects; nothing mutates it.
"""
from __future__ import annotations

from typing import Iterable, Mapping, Sequence

import pandas as pd

from portfolio_timeline.analytics.common import safe_divide
from portfolio_timeline.data.schemas import (
    AssetAllocation, DailySnapshot, MonthlyCashFlow, PeriodFilter,
)


SNAPSHOT_COLUMNS = [
    "date", "cash_balance", "assets_value", "total_value", "total_invested",
    "total_realized_pnl", "total_unrealized_pnl", "total_fees", "total_dividends",
]


# ---------------------------------------------------------------------------
# Period slicing
# ---------------------------------------------------------------------------

def filter_snapshots(
    snapshots: Sequence[DailySnapshot],
    period: PeriodFilter | None = None,
) -> list[DailySnapshot]:
    """Snapshots whose day falls inside the period (all of them when period is None)."""
    if period is None:
        return list(snapshots)
    return [s for s in snapshots if period.contains(s.date)]


def filter_cash_flow(
    cash_flow: Mapping[str, MonthlyCashFlow],
    period: PeriodFilter | None = None,
) -> list[MonthlyCashFlow]:
    """Monthly buckets overlapping the period, in month order."""
    months = sorted(cash_flow)
    if period is not None:
        months = [m for m in months if period.contains_month(m)]
    return [cash_flow[m] for m in months]


def years_available(snapshots: Iterable[DailySnapshot]) -> list[int]:
    return sorted({s.date.year for s in snapshots})


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------

def kpi_summary(snapshot: DailySnapshot | None) -> dict:
    """Headline numbers for one snapshot.

    Total return adds dividends and subtracts fees on top of realized and
    unrealized P&L; return % is relative to net invested capital (0 if none).
    """
    if snapshot is None:
        return {
            "date": None,
            "net_value": 0.0,
            "cash_balance": 0.0,
            "assets_value": 0.0,
            "total_invested": 0.0,
            "realized_pnl": 0.0,
            "unrealized_pnl": 0.0,
            "dividends": 0.0,
            "fees": 0.0,
            "total_return": 0.0,
            "return_pct": 0.0,
        }

    total_return = (
        snapshot.total_realized_pnl
        + snapshot.total_unrealized_pnl
        + snapshot.total_dividends
        - snapshot.total_fees
    )
    return {
        "date": snapshot.date.isoformat(),
        "net_value": snapshot.total_value,
        "cash_balance": snapshot.cash_balance,
        "assets_value": snapshot.assets_value,
        "total_invested": snapshot.total_invested,
        "realized_pnl": snapshot.total_realized_pnl,
        "unrealized_pnl": snapshot.total_unrealized_pnl,
        "dividends": snapshot.total_dividends,
        "fees": snapshot.total_fees,
        "total_return": total_return,
        "return_pct": safe_divide(total_return, snapshot.total_invested) * 100,
    }


def cash_flow_totals(buckets: Sequence[MonthlyCashFlow]) -> dict:
    deposits = sum(b.deposits for b in buckets)
    withdrawals = sum(b.withdrawals for b in buckets)
    return {
        "deposits": deposits,
        "withdrawals": withdrawals,
        "dividends": sum(b.dividends for b in buckets),
        "net_flow": deposits - withdrawals,
        "months": len(buckets),
    }


# ---------------------------------------------------------------------------
# DataFrames (for export and ad-hoc analysis)
# ---------------------------------------------------------------------------

def snapshots_to_frame(snapshots: Sequence[DailySnapshot]) -> pd.DataFrame:
    """One row per day, holdings left out."""
    if not snapshots:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)
    df = pd.DataFrame([{col: getattr(s, col) for col in SNAPSHOT_COLUMNS} for s in snapshots])
    df["date"] = pd.to_datetime(df["date"])
    return df


def holdings_to_frame(snapshots: Sequence[DailySnapshot]) -> pd.DataFrame:
    """Long format: one row per (day, asset) with quantity, price and value."""
    rows = [
        {
            "date": s.date,
            "asset": h.name,
            "quantity": h.quantity,
            "last_price": h.last_price,
            "value": h.value,
        }
        for s in snapshots
        for h in s.holdings.values()
    ]
    if not rows:
        return pd.DataFrame(columns=["date", "asset", "quantity", "last_price", "value"])
    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"])
    return df


def cash_flow_to_frame(buckets: Sequence[MonthlyCashFlow]) -> pd.DataFrame:
    return pd.DataFrame(
        [b.to_dict() for b in buckets],
        columns=["month", "deposits", "withdrawals", "dividends", "net_flow"],
    )


def allocation_to_frame(rows: Sequence[AssetAllocation]) -> pd.DataFrame:
    return pd.DataFrame(
        [r.to_dict() for r in rows],
        columns=["name", "quantity", "current_value", "allocation"],
    )
