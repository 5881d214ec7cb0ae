"""
Portfolio Timeline — Configuration: paths, column mapping, thresholds.
"""
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths (override with PORTFOLIO_DATA_DIR env var for cloud deployment)
# ---------------------------------------------------------------------------
_data_dir = Path(os.environ.get("PORTFOLIO_DATA_DIR", str(Path.home() / "Portfolio Timeline")))
BASE_FOLDER = _data_dir
INBOX_FOLDER = _data_dir / "inbox"
REPORTS_FOLDER = _data_dir / "reports"

# ---------------------------------------------------------------------------
# File-discovery patterns (keywords matched case-insensitively in filename).
# An empty list accepts every CSV in the inbox.
# ---------------------------------------------------------------------------
LEDGER_KEYWORDS: list[str] = []

# ---------------------------------------------------------------------------
# Column mapping from raw broker export → internal names
# ---------------------------------------------------------------------------
COLUMN_MAP = {
    "Transaction Time (CET)": "timestamp",
    "Transaction Category": "category",
    "Transaction Type": "type",
    "Transfer Type": "transfer_kind",
    "Transaction Amount": "amount",
    "Transaction Currency": "currency",
    "Cash Balance Amount": "cash_balance_after",
    "Asset Id": "asset_id",
    "Asset Name": "asset_name",
    "Asset Quantity": "asset_quantity",
    "Asset Price": "asset_price",
    "Profit And Loss Amount": "realized_pnl",
}

# Numeric columns that default to 0.0 when empty
NUMERIC_COLS = ["amount", "realized_pnl"]

# Numeric columns that stay None when empty
OPTIONAL_NUMERIC_COLS = ["cash_balance_after", "asset_quantity", "asset_price"]

# ISO-8601 covers "2022-01-06 15:13:49.453000", "2022-01-06T15:13:49" and "2022-01-06"
TIMESTAMP_FORMAT = "ISO8601"

# ---------------------------------------------------------------------------
# Category / transfer-type normalization (keys are lower-cased raw values)
# ---------------------------------------------------------------------------
CATEGORY_NORMALIZATION = {
    "deposits": "deposit",
    "deposit": "deposit",
    "withdrawals": "withdrawal",
    "withdrawal": "withdrawal",
    "trades": "trade",
    "trade": "trade",
    "dividends": "dividend",
    "dividend": "dividend",
    "fees": "fee",
    "fee": "fee",
}

TRANSFER_KIND_MAP = {
    "cash_credit": "cash-credit",
    "cash_debit": "cash-debit",
    "asset_trade_buy": "asset-buy",
    "asset_trade_sell": "asset-sell",
}

# ---------------------------------------------------------------------------
# Holding thresholds
# ---------------------------------------------------------------------------
# Positions at or below this quantity count as closed in allocation summaries
ALLOCATION_MIN_QUANTITY = 1e-3

# Negative residue smaller than this is float noise from buy/sell netting
ROUNDING_TOLERANCE = 1e-9

# ---------------------------------------------------------------------------
# Report presentation
# ---------------------------------------------------------------------------
CURRENCY_SYMBOL = os.environ.get("PORTFOLIO_CURRENCY_SYMBOL", "€")
