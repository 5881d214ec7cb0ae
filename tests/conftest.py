"""Shared fixtures: raw broker-export CSV builders."""

import csv
import io

import pytest

from portfolio_timeline.config import COLUMN_MAP


RAW_COLUMNS = list(COLUMN_MAP)

# Internal name → raw export header, so tests can write rows with short keys
_RAW_BY_FIELD = {v: k for k, v in COLUMN_MAP.items()}


def _render(rows: list[dict]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=RAW_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for r in rows:
        writer.writerow({_RAW_BY_FIELD[k]: v for k, v in r.items()})
    return buf.getvalue()


@pytest.fixture
def make_csv():
    """Build ledger CSV text from rows keyed by internal field names."""
    return _render


@pytest.fixture
def basic_rows():
    """Deposit + buy on day 1, a zero-quantity price mark on day 2."""
    return [
        {"timestamp": "2023-01-02 09:00:00", "category": "deposits", "transfer_kind": "CASH_CREDIT",
         "amount": "1000", "cash_balance_after": "1000"},
        {"timestamp": "2023-01-02 10:00:00", "category": "trades", "transfer_kind": "ASSET_TRADE_BUY",
         "amount": "500", "cash_balance_after": "500", "asset_name": "X",
         "asset_quantity": "5", "asset_price": "100"},
        {"timestamp": "2023-01-03 10:00:00", "category": "trades", "transfer_kind": "",
         "asset_name": "X", "asset_quantity": "0", "asset_price": "110"},
    ]


@pytest.fixture
def basic_csv(make_csv, basic_rows):
    return make_csv(basic_rows)


@pytest.fixture
def full_rows():
    """Two months of activity across two assets with dividend, fee and withdrawal."""
    return [
        {"timestamp": "2023-01-30 09:00:00", "category": "deposits", "transfer_kind": "CASH_CREDIT",
         "amount": "2000", "cash_balance_after": "2000"},
        {"timestamp": "2023-01-30 10:00:00", "category": "trades", "transfer_kind": "ASSET_TRADE_BUY",
         "amount": "1000", "cash_balance_after": "1000", "asset_name": "Alpha",
         "asset_quantity": "10", "asset_price": "100"},
        {"timestamp": "2023-01-31 10:00:00", "category": "trades", "transfer_kind": "ASSET_TRADE_BUY",
         "amount": "500", "cash_balance_after": "500", "asset_name": "Beta",
         "asset_quantity": "25", "asset_price": "20"},
        {"timestamp": "2023-02-15 08:00:00", "category": "dividends", "transfer_kind": "CASH_CREDIT",
         "amount": "12.5", "cash_balance_after": "512.5", "asset_name": "Alpha"},
        {"timestamp": "2023-03-01 12:00:00", "category": "trades", "transfer_kind": "ASSET_TRADE_SELL",
         "amount": "600", "cash_balance_after": "1112.5", "asset_name": "Alpha",
         "asset_quantity": "5", "asset_price": "120", "realized_pnl": "100"},
        {"timestamp": "2023-03-01 12:00:01", "category": "fees", "transfer_kind": "CASH_DEBIT",
         "amount": "-2.5", "cash_balance_after": "1110"},
        {"timestamp": "2023-03-02 09:00:00", "category": "withdrawals", "transfer_kind": "CASH_DEBIT",
         "amount": "300", "cash_balance_after": "810"},
    ]


@pytest.fixture
def full_csv(make_csv, full_rows):
    return make_csv(full_rows)
