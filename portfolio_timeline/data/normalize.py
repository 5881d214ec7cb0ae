"""
Column mapping, timestamp/numeric parsing, category and transfer-type classification.

Turns a raw ledger DataFrame into typed, chronologically ordered ``Transaction`` records.
Rows without a usable timestamp are dropped and counted, never raised.
"""
from __future__ import annotations

import io
import warnings

import numpy as np
import pandas as pd

from portfolio_timeline.config import (
    COLUMN_MAP, NUMERIC_COLS, OPTIONAL_NUMERIC_COLS, TIMESTAMP_FORMAT,
    CATEGORY_NORMALIZATION, TRANSFER_KIND_MAP,
)
from portfolio_timeline.data.schemas import (
    LedgerReadError, NormalizedLedger, Transaction, TransactionCategory, TransferKind,
)


# ---------------------------------------------------------------------------
# Raw text → DataFrame
# ---------------------------------------------------------------------------

def read_ledger_frame(text: str) -> pd.DataFrame:
    """Tokenize delimited text into an all-string DataFrame.

    Cells beyond the header width (e.g. a trailing comma on every row) are
    ignored and the row is kept; rows with fewer cells are padded.
    """
    if not text.strip():
        return pd.DataFrame()

    try:
        with warnings.catch_warnings():
            # index_col=False keeps pandas from turning a trailing-comma export
            # into an implicit index; it then warns about the ignored cells
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                index_col=False,
                engine="python",
            )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except pd.errors.ParserError as exc:
        raise LedgerReadError(f"Ledger is not valid delimited text: {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    return df


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------

# Trailing "Z" / "+01:00" / "-0500" after a clock time
_OFFSET_RE = r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)\s*(?:Z|[+-]\d{2}(?::?\d{2})?)$"


def parse_timestamps(values: pd.Series) -> pd.Series:
    """Parse timestamp strings; anything unparseable becomes NaT.

    Any UTC offset is stripped without conversion: exports stamp rows in the
    account's local time, and days are bucketed by that wall clock.
    """
    cleaned = values.astype(str).str.strip().str.replace(_OFFSET_RE, r"\1", regex=True)
    parsed = pd.to_datetime(cleaned, format=TIMESTAMP_FORMAT, errors="coerce", utc=True)
    return parsed.dt.tz_localize(None)


def parse_numeric(values: pd.Series) -> pd.Series:
    """Permissive float parsing: empty or garbage → NaN, never an exception."""
    cleaned = values.astype(str).str.strip().replace("", np.nan)
    result = pd.to_numeric(cleaned, errors="coerce").astype(float)
    return result.replace([np.inf, -np.inf], np.nan)


def classify_category(values: pd.Series) -> pd.Series:
    """Map raw category labels ("deposits", "Trades", ...) to TransactionCategory values."""
    key = values.astype(str).str.strip().str.lower()
    return key.map(CATEGORY_NORMALIZATION).fillna(TransactionCategory.OTHER.value)


def classify_transfer_kind(values: pd.Series) -> pd.Series:
    """Map raw transfer types (ASSET_TRADE_BUY, CASH_CREDIT, ...) to TransferKind values."""
    key = values.astype(str).str.strip().str.lower()
    return key.map(TRANSFER_KIND_MAP).fillna(TransferKind.OTHER.value)


# ---------------------------------------------------------------------------
# Column normalisation
# ---------------------------------------------------------------------------

def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename raw export columns and make sure every internal column exists."""
    df = df.rename(columns=COLUMN_MAP)
    for col in COLUMN_MAP.values():
        if col not in df.columns:
            df[col] = ""
    df = df[list(COLUMN_MAP.values())].fillna("")
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def _optional(value: float) -> float | None:
    return None if pd.isna(value) else float(value)


def _text_or_none(value: str) -> str | None:
    return value if value else None


def normalize_transactions(frame: pd.DataFrame) -> NormalizedLedger:
    """Validate, type and order raw ledger rows.

    - rows whose timestamp is missing or unparseable are dropped (counted in
      ``dropped_rows``)
    - empty numeric fields become 0.0, or None for the optional ones
    - withdrawals are stored as non-positive amounts whatever the source sign
    - output is sorted by timestamp; ties keep source order
    """
    total_rows = len(frame)
    if frame.empty:
        return NormalizedLedger(total_rows=total_rows, dropped_rows=total_rows)

    df = normalize_columns(frame)
    df["source_row"] = np.arange(1, len(df) + 1)
    df["date"] = parse_timestamps(df["timestamp"])

    valid = df["date"].notna()
    dropped = int((~valid).sum())
    df = df[valid].copy()
    if df.empty:
        return NormalizedLedger(total_rows=total_rows, dropped_rows=dropped)

    for col in NUMERIC_COLS:
        df[col] = parse_numeric(df[col]).fillna(0.0)
    for col in OPTIONAL_NUMERIC_COLS:
        df[col] = parse_numeric(df[col])

    df["category"] = classify_category(df["category"])
    df["transfer_kind"] = classify_transfer_kind(df["transfer_kind"])

    is_withdrawal = df["category"] == TransactionCategory.WITHDRAWAL.value
    df.loc[is_withdrawal, "amount"] = -df.loc[is_withdrawal, "amount"].abs()

    # Ids follow validated source order, assigned before the chronological sort
    df["id"] = [f"tx-{i}" for i in range(len(df))]
    df = df.sort_values("date", kind="stable")

    transactions = tuple(
        Transaction(
            id=row.id,
            date=row.date.to_pydatetime(),
            category=TransactionCategory(row.category),
            transfer_kind=TransferKind(row.transfer_kind),
            amount=float(row.amount),
            cash_balance_after=_optional(row.cash_balance_after),
            asset_name=_text_or_none(row.asset_name),
            asset_quantity=_optional(row.asset_quantity),
            asset_price=_optional(row.asset_price),
            realized_pnl=float(row.realized_pnl),
            type=row.type,
            currency=row.currency,
            asset_id=_text_or_none(row.asset_id),
            source_row=int(row.source_row),
        )
        for row in df.itertuples(index=False)
    )
    return NormalizedLedger(transactions=transactions, total_rows=total_rows, dropped_rows=dropped)


def parse_ledger(text: str) -> NormalizedLedger:
    """Raw ledger text → sorted, typed transactions."""
    return normalize_transactions(read_ledger_frame(text))
