"""
Upload endpoint: replace the loaded ledger with an uploaded CSV export.
Reload from the inbox lives in router_meta.py.
"""
from __future__ import annotations

import gzip
import re

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File

from portfolio_timeline.config import INBOX_FOLDER
from portfolio_timeline.data.loader import decode_ledger_bytes
from portfolio_timeline.data.schemas import LedgerReadError
from portfolio_timeline.data.store import PortfolioStore
from portfolio_timeline.api.dependencies import get_store_or_empty
from portfolio_timeline.api.response_models import UploadResponse

router = APIRouter(prefix="/api", tags=["upload"])


def _safe_filename(filename: str) -> str:
    return re.sub(r"[^\w\-. ()]", "_", filename)


@router.post("/upload", response_model=UploadResponse)
async def upload_ledger(
    file: UploadFile = File(...),
    store: PortfolioStore = Depends(get_store_or_empty),
):
    """Upload a ledger CSV, keep a copy in the inbox and replay it."""
    if not file.filename:
        raise HTTPException(400, "Missing filename")

    # Strip .gz suffix if present (browser gzip-compressed upload)
    filename = file.filename
    is_gzipped = filename.lower().endswith(".csv.gz")
    if is_gzipped:
        filename = filename[:-3]

    if not filename.lower().endswith(".csv"):
        raise HTTPException(400, f"Only .csv files are accepted (got '{file.filename}')")

    content = await file.read()
    try:
        if is_gzipped:
            content = gzip.decompress(content)
        text = decode_ledger_bytes(content)
        store.load_text(text, name=filename)
    except (OSError, LedgerReadError) as exc:
        raise HTTPException(400, f"Could not read ledger: {exc}")

    INBOX_FOLDER.mkdir(parents=True, exist_ok=True)
    (INBOX_FOLDER / _safe_filename(filename)).write_bytes(content)

    return UploadResponse(
        status="loaded",
        name=filename,
        transactions=store.transaction_count(),
        dropped_rows=store.dropped_rows,
        days=store.day_count(),
    )
