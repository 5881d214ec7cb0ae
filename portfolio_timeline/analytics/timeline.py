"""
Timeline replay — turns the sorted transaction stream into one snapshot per calendar day.

The running portfolio state is an immutable ``ReplayState`` value threaded
through ``step_day``; each step returns a fresh state plus the day's snapshot,
so an emitted snapshot never shares mutable structure with later steps.
"""
from __future__ import annotations

import datetime as dt
from collections import defaultdict
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

import pandas as pd

from portfolio_timeline.config import ALLOCATION_MIN_QUANTITY, ROUNDING_TOLERANCE
from portfolio_timeline.analytics.common import pct_of_total
from portfolio_timeline.data.normalize import parse_ledger
from portfolio_timeline.data.schemas import (
    AssetAllocation, DailySnapshot, Holding, MonthlyCashFlow, NormalizedLedger,
    Timeline, Transaction, TransactionCategory, TransferKind,
)


@dataclass(frozen=True)
class ReplayState:
    """Cumulative portfolio state carried from one day to the next."""
    cash_balance: float = 0.0
    total_invested: float = 0.0
    total_realized_pnl: float = 0.0
    total_fees: float = 0.0
    total_dividends: float = 0.0
    holdings: Mapping[str, Holding] = field(default_factory=lambda: MappingProxyType({}))
    cash_flow: Mapping[str, MonthlyCashFlow] = field(default_factory=lambda: MappingProxyType({}))
    oversold: frozenset = frozenset()
    warnings: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _day_timestamp(day: dt.date) -> int:
    """Epoch milliseconds of the day's midnight."""
    return int(pd.Timestamp(day).value // 1_000_000)


def _add_flow(
    cash_flow: dict[str, MonthlyCashFlow],
    month: str,
    deposits: float = 0.0,
    withdrawals: float = 0.0,
    dividends: float = 0.0,
) -> None:
    bucket = cash_flow.get(month) or MonthlyCashFlow(month)
    new_deposits = bucket.deposits + deposits
    new_withdrawals = bucket.withdrawals + withdrawals
    cash_flow[month] = replace(
        bucket,
        deposits=new_deposits,
        withdrawals=new_withdrawals,
        dividends=bucket.dividends + dividends,
        net_flow=new_deposits - new_withdrawals,
    )


def _apply_to_holding(holding: Holding, tx: Transaction) -> Holding:
    """Price and quantity effects of one transaction on its asset."""
    last_price = holding.last_price
    # Zero price is what exports put on non-trade rows; it must not wipe the mark
    if tx.asset_price:
        last_price = tx.asset_price

    quantity = holding.quantity
    if tx.transfer_kind == TransferKind.ASSET_BUY:
        quantity += tx.asset_quantity or 0.0
    elif tx.transfer_kind == TransferKind.ASSET_SELL:
        quantity -= tx.asset_quantity or 0.0

    return replace(holding, quantity=quantity, last_price=last_price)


def _settle_holdings(
    holdings: dict[str, Holding],
    day: dt.date,
    oversold: frozenset,
) -> tuple[dict[str, Holding], frozenset, list[str]]:
    """Snap float residue to zero and flag positions that went genuinely negative."""
    warnings: list[str] = []
    flagged = set(oversold)
    for name, h in holdings.items():
        if -ROUNDING_TOLERANCE < h.quantity < 0:
            holdings[name] = replace(h, quantity=0.0)
        elif h.quantity <= -ROUNDING_TOLERANCE and name not in flagged:
            flagged.add(name)
            warnings.append(f"{day.isoformat()}: {name} quantity {h.quantity:.6f} is below zero (sold more than held)")
    return holdings, frozenset(flagged), warnings


# ---------------------------------------------------------------------------
# Replay step
# ---------------------------------------------------------------------------

def step_day(
    state: ReplayState,
    day: dt.date,
    transactions: Iterable[Transaction],
) -> tuple[ReplayState, DailySnapshot]:
    """Apply one day's transactions (in order) and snapshot the end-of-day state."""
    cash = state.cash_balance
    invested = state.total_invested
    realized = state.total_realized_pnl
    fees = state.total_fees
    dividends = state.total_dividends
    holdings = dict(state.holdings)
    cash_flow = dict(state.cash_flow)

    for tx in transactions:
        # Source-reported balance is ground truth, not an increment
        if tx.cash_balance_after is not None:
            cash = tx.cash_balance_after

        month = tx.month_key
        if tx.category == TransactionCategory.DEPOSIT:
            invested += tx.amount
            _add_flow(cash_flow, month, deposits=tx.amount)
        elif tx.category == TransactionCategory.WITHDRAWAL:
            invested += tx.amount
            _add_flow(cash_flow, month, withdrawals=abs(tx.amount))
        elif tx.category == TransactionCategory.DIVIDEND:
            dividends += tx.amount
            _add_flow(cash_flow, month, dividends=tx.amount)
        elif tx.category == TransactionCategory.FEE:
            fees += abs(tx.amount)

        if tx.realized_pnl != 0:
            realized += tx.realized_pnl

        if tx.asset_name:
            current = holdings.get(tx.asset_name) or Holding(tx.asset_name)
            holdings[tx.asset_name] = _apply_to_holding(current, tx)

    holdings, oversold, new_warnings = _settle_holdings(holdings, day, state.oversold)

    assets_value = sum(h.quantity * h.last_price for h in holdings.values())
    total_value = cash + assets_value

    new_state = ReplayState(
        cash_balance=cash,
        total_invested=invested,
        total_realized_pnl=realized,
        total_fees=fees,
        total_dividends=dividends,
        holdings=MappingProxyType(holdings),
        cash_flow=MappingProxyType(cash_flow),
        oversold=oversold,
        warnings=state.warnings + tuple(new_warnings),
    )
    snapshot = DailySnapshot(
        date=day,
        timestamp=_day_timestamp(day),
        cash_balance=cash,
        assets_value=assets_value,
        total_value=total_value,
        total_invested=invested,
        total_realized_pnl=realized,
        total_unrealized_pnl=total_value - invested - realized,
        total_fees=fees,
        total_dividends=dividends,
        holdings=MappingProxyType(dict(holdings)),
    )
    return new_state, snapshot


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def asset_allocation(
    snapshot: DailySnapshot | None,
    min_quantity: float = ALLOCATION_MIN_QUANTITY,
) -> tuple[AssetAllocation, ...]:
    """Open positions of a snapshot with their share of total asset value, largest first."""
    if snapshot is None:
        return ()
    open_positions = [h for h in snapshot.holdings.values() if h.quantity > min_quantity]
    total = sum(h.value for h in open_positions)
    rows = [
        AssetAllocation(
            name=h.name,
            quantity=h.quantity,
            current_value=h.value,
            allocation=pct_of_total(h.value, total),
        )
        for h in open_positions
    ]
    return tuple(sorted(rows, key=lambda a: -a.allocation))


def day_range(transactions: Sequence[Transaction]) -> list[dt.date]:
    """Every calendar day from the first to the last transaction, inclusive."""
    if not transactions:
        return []
    first = min(tx.date for tx in transactions)
    last = max(tx.date for tx in transactions)
    return [ts.date() for ts in pd.date_range(pd.Timestamp(first.date()), pd.Timestamp(last.date()), freq="D")]


def seed_cash_flow(days: Sequence[dt.date]) -> dict[str, MonthlyCashFlow]:
    """An empty bucket for every month the day range touches, in chronological order."""
    if not days:
        return {}
    months = pd.period_range(pd.Timestamp(days[0]), pd.Timestamp(days[-1]), freq="M")
    return {str(p): MonthlyCashFlow(str(p)) for p in months}


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------

def replay(transactions: Sequence[Transaction]) -> Timeline:
    """Replay a sorted transaction stream into the daily timeline."""
    if not transactions:
        return Timeline.empty()

    days = day_range(transactions)
    by_day: dict[dt.date, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        by_day[tx.day].append(tx)

    state = ReplayState(cash_flow=MappingProxyType(seed_cash_flow(days)))
    snapshots: list[DailySnapshot] = []
    for day in days:
        state, snapshot = step_day(state, day, by_day.get(day, ()))
        snapshots.append(snapshot)

    return Timeline(
        snapshots=tuple(snapshots),
        monthly_cash_flow=MappingProxyType(dict(sorted(state.cash_flow.items()))),
        asset_summary=asset_allocation(snapshots[-1]),
        warnings=state.warnings,
    )


def build_timeline(text: str) -> tuple[NormalizedLedger, Timeline]:
    """Full pipeline: raw ledger text → normalized ledger + timeline."""
    ledger = parse_ledger(text)
    if ledger.is_empty:
        return ledger, Timeline.empty()
    return ledger, replay(ledger.transactions)
