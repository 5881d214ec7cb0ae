"""
Meta endpoints: health, periods, reload.
"""
from __future__ import annotations

import threading

from fastapi import APIRouter, Depends

from portfolio_timeline.data.schemas import LedgerError
from portfolio_timeline.data.store import PortfolioStore
from portfolio_timeline.api.dependencies import get_store_or_empty
from portfolio_timeline.api.response_models import HealthResponse, PeriodsResponse

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/health", response_model=HealthResponse)
def health(store: PortfolioStore = Depends(get_store_or_empty)):
    return HealthResponse(
        status="ok" if store.is_loaded else "loading",
        rows=store.ledger.total_rows,
        transactions=store.transaction_count(),
        dropped_rows=store.dropped_rows,
        days=store.day_count(),
        months=len(store.timeline.monthly_cash_flow),
        sources=store.sources,
        warnings=list(store.timeline.warnings),
    )


@router.get("/periods", response_model=PeriodsResponse)
def list_periods(store: PortfolioStore = Depends(get_store_or_empty)):
    final = store.timeline.final
    first = store.timeline.snapshots[0] if store.timeline.snapshots else None
    return PeriodsResponse(
        years=store.years_available(),
        quarters=["Q1", "Q2", "Q3", "Q4"],
        first_day=first.date.isoformat() if first else None,
        last_day=final.date.isoformat() if final else None,
    )


@router.post("/reload")
def reload_data(store: PortfolioStore = Depends(get_store_or_empty)):
    """Re-scan inbox and replay the ledger.

    Returns immediately, reload happens in background.
    """
    def _do_reload():
        try:
            store.load()
        except LedgerError as exc:
            print(f"  Reload failed — {exc}")
            return
        print(f"  Reload complete — {store.transaction_count():,} transactions, {store.day_count():,} days")

    threading.Thread(target=_do_reload, daemon=True).start()
    return {
        "status": "reloading",
        "message": "Ledger reload started in background. Check /api/health for updated counts.",
    }
