"""
Ledger CSV discovery, decoding, loading, and cross-file deduplication.
"""
from __future__ import annotations

import re
from pathlib import Path

import pandas as pd

from portfolio_timeline.config import INBOX_FOLDER, LEDGER_KEYWORDS
from portfolio_timeline.data.normalize import read_ledger_frame, normalize_transactions
from portfolio_timeline.data.schemas import LedgerReadError, NormalizedLedger


# ---------------------------------------------------------------------------
# Date-range extraction from filenames
# ---------------------------------------------------------------------------

_DATE_RANGE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})\s*(?:to|_|-|\s)\s*(\d{4}-\d{2}-\d{2})")


def _parse_file_dates(filepath: Path) -> tuple[str | None, str | None]:
    """Extract (start_date, end_date) strings from a filename like
    "transactions 2023-01-01 2023-12-31.csv"
    """
    m = _DATE_RANGE_RE.search(filepath.stem)
    if m:
        return m.group(1), m.group(2)
    return None, None


# ---------------------------------------------------------------------------
# CSV discovery
# ---------------------------------------------------------------------------

def discover_csvs(
    inbox: Path = INBOX_FOLDER,
    keywords: list[str] | None = None,
) -> list[Path]:
    """Recursively find ledger CSVs in inbox, oldest export first."""
    if keywords is None:
        keywords = LEDGER_KEYWORDS

    matches: list[Path] = []
    if not inbox.exists():
        return matches

    for csv_file in inbox.rglob("*.csv"):
        filename_lower = csv_file.name.lower()
        if keywords and not any(kw in filename_lower for kw in keywords):
            continue
        matches.append(csv_file)

    # Sort by file start-date, then name, so replay sees exports in chronological order
    def _sort_key(p: Path) -> tuple[str, str]:
        start, _ = _parse_file_dates(p)
        return start or "0000-00-00", p.name

    matches.sort(key=_sort_key)
    return matches


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def decode_ledger_bytes(raw: bytes) -> str:
    """Decode exported bytes as UTF-8 (BOM tolerated)."""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise LedgerReadError(f"Ledger is not UTF-8 text: {exc}") from exc


def read_ledger_text(filepath: Path) -> str:
    """Read one ledger file as text."""
    try:
        raw = Path(filepath).read_bytes()
    except OSError as exc:
        raise LedgerReadError(f"Cannot read {filepath}: {exc}") from exc
    return decode_ledger_bytes(raw)


# ---------------------------------------------------------------------------
# Loading & dedup
# ---------------------------------------------------------------------------

_OCCURRENCE_COL = "_occurrence"


def _tag_occurrences(df: pd.DataFrame) -> pd.DataFrame:
    """Number repeated identical rows within one file (0, 1, 2, ...)."""
    df = df.copy()
    if df.empty:
        df[_OCCURRENCE_COL] = pd.Series(dtype=int)
        return df
    df[_OCCURRENCE_COL] = df.fillna("").groupby(list(df.columns), sort=False, dropna=False).cumcount()
    return df


def merge_ledger_frames(frames: list[pd.DataFrame]) -> pd.DataFrame:
    """Concatenate per-file frames and drop rows repeated by overlapping exports.

    A row is a duplicate only if the same row with the same occurrence number
    already appeared in an earlier file, so identical rows inside one export
    (e.g. two equal buys in the same second) are all kept.
    """
    frames = [f for f in frames if not f.empty]
    if not frames:
        return pd.DataFrame()
    if len(frames) == 1:
        return frames[0]

    tagged = [_tag_occurrences(f) for f in frames]
    df = pd.concat(tagged, ignore_index=True).fillna("")
    df = df.drop_duplicates(keep="first")
    return df.drop(columns=[_OCCURRENCE_COL]).reset_index(drop=True)


def load_ledger_files(files: list[Path]) -> NormalizedLedger:
    """Load several exports of one account as a single ledger."""
    frames = [read_ledger_frame(read_ledger_text(f)) for f in files]
    return normalize_transactions(merge_ledger_frames(frames))


def load_ledger(source: Path = INBOX_FOLDER) -> tuple[NormalizedLedger, list[Path]]:
    """Load a single CSV file, or every ledger CSV found under a directory.

    Returns the normalized ledger and the files it was built from.
    """
    source = Path(source)
    files = [source] if source.is_file() else discover_csvs(source)
    if not files:
        return NormalizedLedger(), []
    return load_ledger_files(files), files
