"""
Portfolio Report — KPIs, daily timeline, monthly cash flow and allocation for a period.
"""
from __future__ import annotations

from pathlib import Path

import pandas as pd

from portfolio_timeline.data.store import PortfolioStore
from portfolio_timeline.data.schemas import PeriodFilter
from portfolio_timeline.analytics.common import sanitize_for_json
from portfolio_timeline.analytics.summary import kpi_summary, cash_flow_totals
from portfolio_timeline.excel.writer import Column, ExcelWriter, Kpi


TIMELINE_COLS = [
    Column("date", "date", "Date"),
    Column("cash_balance", "currency", "Cash"),
    Column("assets_value", "currency", "Assets"),
    Column("total_value", "currency", "Net Value"),
    Column("total_invested", "currency", "Net Invested"),
    Column("total_realized_pnl", "signed", "Realized P&L"),
    Column("total_unrealized_pnl", "signed", "Unrealized P&L"),
    Column("total_dividends", "currency", "Dividends"),
    Column("total_fees", "currency", "Fees"),
]

CASH_FLOW_COLS = [
    Column("month", "text", "Month"),
    Column("deposits", "currency", "Deposits"),
    Column("withdrawals", "currency", "Withdrawals"),
    Column("dividends", "currency", "Dividends"),
    Column("net_flow", "signed", "Net Flow"),
]

ALLOCATION_COLS = [
    Column("name", "text", "Asset"),
    Column("quantity", "quantity", "Quantity"),
    Column("current_value", "currency", "Est. Value"),
    Column("allocation", "percent", "Allocation"),
]


def generate_json(store: PortfolioStore, period: PeriodFilter | None = None) -> dict:
    snapshots = store.snapshots(period)
    cash_flow = store.cash_flow(period)
    latest = store.latest(period)

    return sanitize_for_json({
        "period": period.label if period else "All Time",
        "date_range": store.date_range(period),
        "kpis": kpi_summary(latest),
        "cash_flow_totals": cash_flow_totals(cash_flow),
        "timeline": [s.to_dict() for s in snapshots],
        "cash_flow": [b.to_dict() for b in cash_flow],
        "allocation": [a.to_dict() for a in store.allocation(period)],
        "warnings": list(store.timeline.warnings),
    })


def build_workbook(store: PortfolioStore, period: PeriodFilter | None = None) -> ExcelWriter:
    data = generate_json(store, period)
    k = data["kpis"]
    ew = ExcelWriter()

    # Summary
    ws = ew.add_sheet("Summary")
    ew.write_title(ws, "PORTFOLIO ANALYSIS",
                   f"{data['period']}  |  {data['date_range']}  |  Generated {pd.Timestamp.now():%B %d, %Y}")

    row = ew.write_section(ws, 5, "NET VALUE")
    row = ew.write_kpis(ws, row, [
        Kpi(k["net_value"], "NET PORTFOLIO VALUE"),
        Kpi(k["cash_balance"], "CASH"),
        Kpi(k["assets_value"], "ASSETS"),
        Kpi(k["total_invested"], "NET INVESTED"),
    ])

    row = ew.write_section(ws, row, "RESULT")
    row = ew.write_kpis(ws, row, [
        Kpi(k["total_return"], "TOTAL NET RETURN", signed=True),
        Kpi(k["return_pct"], "RETURN %", "percent", signed=True),
        Kpi(k["realized_pnl"], "REALIZED P&L", signed=True),
        Kpi(k["unrealized_pnl"], "UNREALIZED P&L", signed=True),
    ])
    row = ew.write_kpis(ws, row, [
        Kpi(k["dividends"], "DIVIDENDS"),
        Kpi(k["fees"], "FEES"),
    ])

    if data["warnings"]:
        row = ew.write_section(ws, row, "DATA WARNINGS")
        ew.write_notes(ws, row, data["warnings"])

    # Data sheets (Excel wants real dates, not ISO strings)
    timeline_rows = [{**s, "date": pd.Timestamp(s["date"]).date()} for s in data["timeline"]]
    ew.write_table(ew.add_sheet("Daily Timeline"), 1, TIMELINE_COLS, timeline_rows)
    ew.write_table(ew.add_sheet("Monthly Cash Flow"), 1, CASH_FLOW_COLS, data["cash_flow"],
                   totals=["deposits", "withdrawals", "dividends", "net_flow"])
    ew.write_table(ew.add_sheet("Allocation"), 1, ALLOCATION_COLS, data["allocation"],
                   totals=["current_value", "allocation"])

    return ew


def generate_excel(
    store: PortfolioStore,
    output_path: str | Path,
    period: PeriodFilter | None = None,
) -> Path:
    return build_workbook(store, period).save(output_path)
