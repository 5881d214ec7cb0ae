"""Tests for portfolio_timeline/data/store.py and analytics/summary.py."""

import datetime as dt

import pytest

from portfolio_timeline.analytics.summary import (
    SNAPSHOT_COLUMNS, cash_flow_to_frame, cash_flow_totals, holdings_to_frame, kpi_summary,
)
from portfolio_timeline.data.schemas import PeriodFilter, PeriodType
from portfolio_timeline.data.store import PortfolioStore


@pytest.fixture
def store(full_csv):
    return PortfolioStore().load_text(full_csv, name="full.csv")


def test_new_store_is_empty():
    store = PortfolioStore()
    assert not store.is_loaded
    assert store.day_count() == 0
    assert store.latest() is None
    assert store.allocation() == []
    assert store.date_range() == "N/A"


def test_load_text_replays(store):
    assert store.is_loaded
    assert store.sources == ["full.csv"]
    assert store.transaction_count() == 7
    assert store.dropped_rows == 0
    assert store.day_count() == 32
    assert store.years_available() == [2023]
    assert store.date_range() == "2023-01-30 to 2023-03-02"


def test_load_text_with_nothing_valid(make_csv):
    store = PortfolioStore().load_text(make_csv([{"timestamp": "garbage", "amount": "1"}]))
    assert store.is_loaded
    assert store.dropped_rows == 1
    assert store.timeline.is_empty


def test_load_from_folder(tmp_path, full_csv):
    (tmp_path / "ledger.csv").write_text(full_csv)
    store = PortfolioStore().load(tmp_path)
    assert store.sources == ["ledger.csv"]
    assert store.day_count() == 32


def test_period_slices(store):
    feb = PeriodFilter(PeriodType.MONTH, year=2023, month=2)
    assert len(store.snapshots(feb)) == 28
    assert store.latest(feb).date == dt.date(2023, 2, 28)
    assert [b.month for b in store.cash_flow(feb)] == ["2023-02"]
    assert store.date_range(feb) == "2023-02-01 to 2023-02-28"


def test_latest_falls_back_to_final_snapshot(store):
    empty_period = PeriodFilter(PeriodType.YEAR, year=2019)
    assert store.snapshots(empty_period) == []
    assert store.latest(empty_period) == store.timeline.final


def test_allocation_for_period_uses_period_end(store):
    jan = PeriodFilter(PeriodType.MONTH, year=2023, month=1)
    rows = store.allocation(jan)
    assert [r.name for r in rows] == ["Alpha", "Beta"]
    assert rows[0].current_value == 1000
    assert store.allocation() == list(store.timeline.asset_summary)


def test_snapshot_frame(store):
    df = store.snapshot_frame()
    assert list(df.columns) == SNAPSHOT_COLUMNS
    assert len(df) == 32


def test_kpi_summary(store):
    k = kpi_summary(store.latest())
    assert k["net_value"] == 1910
    assert k["total_return"] == pytest.approx(220)
    assert k["return_pct"] == pytest.approx(220 / 1700 * 100)


def test_kpi_summary_without_snapshot():
    k = kpi_summary(None)
    assert k["return_pct"] == 0.0
    assert k["date"] is None


def test_kpi_return_pct_without_invested_capital(make_csv):
    store = PortfolioStore().load_text(make_csv([
        {"timestamp": "2023-01-02 10:00:00", "category": "dividends", "amount": "5",
         "cash_balance_after": "5"},
    ]))
    k = kpi_summary(store.latest())
    assert k["total_invested"] == 0
    assert k["total_return"] != 0
    assert k["return_pct"] == 0.0


def test_cash_flow_totals(store):
    t = cash_flow_totals(store.cash_flow())
    assert t == {"deposits": 2000, "withdrawals": 300, "dividends": 12.5, "net_flow": 1700, "months": 3}


def test_frames_for_export(store):
    assert list(cash_flow_to_frame(store.cash_flow())["month"]) == ["2023-01", "2023-02", "2023-03"]
    holdings = holdings_to_frame(store.snapshots())
    assert set(holdings["asset"]) == {"Alpha", "Beta"}
    assert holdings_to_frame([]).empty
