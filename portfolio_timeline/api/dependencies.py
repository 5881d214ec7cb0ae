"""
FastAPI dependencies — PortfolioStore singleton, period parsing.
"""
from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import HTTPException, Query

from portfolio_timeline.data.store import PortfolioStore
from portfolio_timeline.data.schemas import PeriodFilter, PeriodType

# ---------------------------------------------------------------------------
# Global store singleton (set during startup)
# ---------------------------------------------------------------------------
_store: PortfolioStore | None = None


def set_store(store: PortfolioStore) -> None:
    global _store
    _store = store


def get_store() -> PortfolioStore:
    if _store is None or not _store.is_loaded:
        raise HTTPException(503, "Data not loaded yet")
    return _store


def get_store_or_empty() -> PortfolioStore:
    """Return the store even if it has no data (for upload/reload endpoints)."""
    if _store is None:
        raise HTTPException(503, "Server not initialized yet")
    return _store


# ---------------------------------------------------------------------------
# Period parsing from query params
# ---------------------------------------------------------------------------

def _parse_date(value: Optional[str], name: str) -> Optional[dt.date]:
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise HTTPException(400, f"Invalid {name}: {value} (expected YYYY-MM-DD)")


def parse_period(
    period_type: Optional[str] = Query(None, description="all|year|quarter|month|custom"),
    year: Optional[int] = Query(None),
    quarter: Optional[int] = Query(None, ge=1, le=4),
    month: Optional[int] = Query(None, ge=1, le=12),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
) -> PeriodFilter | None:
    """Parse period query parameters into a PeriodFilter.

    Without period_type the most specific of month/quarter/year wins,
    so ?year=2023&quarter=2 and ?quarter=2 both work.
    """
    if period_type is None:
        if month is not None:
            period_type = PeriodType.MONTH.value
        elif quarter is not None:
            period_type = PeriodType.QUARTER.value
        elif year is not None:
            period_type = PeriodType.YEAR.value
        elif start_date or end_date:
            period_type = PeriodType.CUSTOM.value
        else:
            return None

    try:
        pt = PeriodType(period_type)
    except ValueError:
        raise HTTPException(400, f"Invalid period_type: {period_type}")

    return PeriodFilter(
        period_type=pt,
        year=year,
        month=month,
        quarter=quarter,
        start_date=_parse_date(start_date, "start_date"),
        end_date=_parse_date(end_date, "end_date"),
    )
