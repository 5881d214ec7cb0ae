"""Ledger loading, normalization, and typed records."""
from .schemas import (
    Transaction, NormalizedLedger, DailySnapshot, MonthlyCashFlow, AssetAllocation,
    Timeline, PeriodFilter, PeriodType, LedgerError, LedgerReadError,
)
from .normalize import parse_ledger, normalize_transactions, read_ledger_frame
from .loader import discover_csvs, load_ledger
