"""
Portfolio Timeline — FastAPI app factory with startup ledger loading.
"""
from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_timeline import __version__
from portfolio_timeline.data.schemas import LedgerError
from portfolio_timeline.data.store import PortfolioStore
from portfolio_timeline.api.dependencies import set_store
from portfolio_timeline.api.router_meta import router as meta_router
from portfolio_timeline.api.router_timeline import router as timeline_router
from portfolio_timeline.api.router_upload import router as upload_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the inbox ledger at startup."""
    from portfolio_timeline.config import INBOX_FOLDER, REPORTS_FOLDER
    for d in [INBOX_FOLDER, REPORTS_FOLDER]:
        d.mkdir(parents=True, exist_ok=True)

    print(f"  PORTFOLIO_DATA_DIR = {os.environ.get('PORTFOLIO_DATA_DIR', '(not set)')}")
    print(f"  INBOX_FOLDER = {INBOX_FOLDER}")

    store = PortfolioStore()
    try:
        store.load()
    except LedgerError as exc:
        # Keep serving so a corrected file can be uploaded
        print(f"  Could not load inbox ledger — {exc}")
    set_store(store)

    if store.day_count() > 0:
        print(f"\nPortfolio Timeline ready — {store.transaction_count():,} transactions, "
              f"{store.day_count():,} days\n")
    else:
        print("\nPortfolio Timeline ready — no data yet. Upload a ledger CSV via /api/upload.\n")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Portfolio Timeline API",
        description="Brokerage ledger replayed into daily portfolio snapshots, cash flow and allocation",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(meta_router)
    app.include_router(timeline_router)
    app.include_router(upload_router)

    return app


app = create_app()
