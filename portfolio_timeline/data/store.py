"""
PortfolioStore — In-memory timeline built once from the ledger, queried on every request.

Loaded at startup (or after an upload); every accessor returns new lists or
DataFrame copies so callers can slice freely without touching the timeline.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from portfolio_timeline.config import INBOX_FOLDER
from portfolio_timeline.data.loader import load_ledger
from portfolio_timeline.data.normalize import parse_ledger
from portfolio_timeline.data.schemas import (
    AssetAllocation, DailySnapshot, MonthlyCashFlow, NormalizedLedger, PeriodFilter, Timeline,
)
from portfolio_timeline.analytics.timeline import replay, asset_allocation
from portfolio_timeline.analytics.summary import (
    filter_snapshots, filter_cash_flow, years_available, snapshots_to_frame,
)


class PortfolioStore:
    """Ledger + replayed timeline with period-filtered accessors."""

    def __init__(self) -> None:
        self.ledger: NormalizedLedger = NormalizedLedger()
        self.timeline: Timeline = Timeline.empty()
        self.sources: list[str] = []
        self._loaded = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, source: Path = INBOX_FOLDER) -> "PortfolioStore":
        """Load a ledger CSV (or every CSV under a directory) and replay it."""
        print("Loading ledger...")
        ledger, files = load_ledger(source)
        if not files:
            print(f"  No ledger CSVs found in {source} — starting with empty timeline")
        for f in files:
            print(f"  - {f.name}")
        return self._replace(ledger, [f.name for f in files])

    def load_text(self, text: str, name: str = "upload") -> "PortfolioStore":
        """Replay ledger content received in memory (e.g. an upload)."""
        print(f"Loading ledger from {name}...")
        return self._replace(parse_ledger(text), [name])

    def _replace(self, ledger: NormalizedLedger, sources: list[str]) -> "PortfolioStore":
        timeline = replay(ledger.transactions) if not ledger.is_empty else Timeline.empty()

        # Swap in one step so concurrent readers see either the old or the new timeline
        self.ledger, self.timeline, self.sources = ledger, timeline, sources
        self._loaded = True

        print(f"  {ledger.total_rows:,} rows → {len(ledger.transactions):,} transactions "
              f"({ledger.dropped_rows:,} dropped)")
        if timeline.is_empty:
            print("  No valid transactions — timeline is empty")
        else:
            print(f"  {len(timeline.snapshots):,} days "
                  f"({timeline.snapshots[0].date} to {timeline.snapshots[-1].date}), "
                  f"{len(timeline.monthly_cash_flow):,} months, "
                  f"{len(timeline.asset_summary):,} open positions")
        for w in timeline.warnings:
            print(f"  Warning: {w}")
        return self

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Period-filtered accessors
    # ------------------------------------------------------------------

    def snapshots(self, period: PeriodFilter | None = None) -> list[DailySnapshot]:
        return filter_snapshots(self.timeline.snapshots, period)

    def snapshot_frame(self, period: PeriodFilter | None = None) -> pd.DataFrame:
        return snapshots_to_frame(self.snapshots(period))

    def cash_flow(self, period: PeriodFilter | None = None) -> list[MonthlyCashFlow]:
        return filter_cash_flow(self.timeline.monthly_cash_flow, period)

    def latest(self, period: PeriodFilter | None = None) -> Optional[DailySnapshot]:
        """Last snapshot of the period, or of the whole timeline when the period is empty."""
        selected = self.snapshots(period)
        if selected:
            return selected[-1]
        return self.timeline.final

    def allocation(self, period: PeriodFilter | None = None) -> list[AssetAllocation]:
        """Allocation at the end of the period (final allocation summary when unfiltered)."""
        if period is None:
            return list(self.timeline.asset_summary)
        return list(asset_allocation(self.latest(period)))

    # ------------------------------------------------------------------
    # Metadata queries
    # ------------------------------------------------------------------

    def years_available(self) -> list[int]:
        return years_available(self.timeline.snapshots)

    def date_range(self, period: PeriodFilter | None = None) -> str:
        """Human-readable date range string."""
        selected = self.snapshots(period)
        if not selected:
            return "N/A"
        return f"{selected[0].date} to {selected[-1].date}"

    def transaction_count(self) -> int:
        return len(self.ledger.transactions)

    @property
    def dropped_rows(self) -> int:
        return self.ledger.dropped_rows

    def day_count(self) -> int:
        return len(self.timeline.snapshots)
