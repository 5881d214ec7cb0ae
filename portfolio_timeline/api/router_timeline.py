"""
Timeline endpoints — daily snapshots, monthly cash flow, allocation, KPI summary, Excel export.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from portfolio_timeline.data.store import PortfolioStore
from portfolio_timeline.data.schemas import PeriodFilter
from portfolio_timeline.api.dependencies import get_store, parse_period
from portfolio_timeline.api.response_models import KpiResponse, AllocationResponse, AllocationRow
from portfolio_timeline.analytics.common import sanitize_for_json
from portfolio_timeline.analytics.summary import kpi_summary, cash_flow_totals
from portfolio_timeline.reports.portfolio_report import build_workbook

router = APIRouter(prefix="/api", tags=["timeline"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _label(period: PeriodFilter | None) -> str:
    return period.label if period else "All Time"


def _safe_json(data: dict) -> JSONResponse:
    return JSONResponse(content=sanitize_for_json(data))


@router.get("/snapshots")
def snapshots(
    include_holdings: bool = Query(False, description="Embed per-asset holdings in each day"),
    store: PortfolioStore = Depends(get_store),
    period: PeriodFilter | None = Depends(parse_period),
):
    """Daily snapshots for the period, oldest first."""
    rows = []
    for s in store.snapshots(period):
        row = s.to_dict()
        if not include_holdings:
            row.pop("holdings")
        rows.append(row)
    return _safe_json({"period": _label(period), "count": len(rows), "snapshots": rows})


@router.get("/cash-flow")
def cash_flow(
    store: PortfolioStore = Depends(get_store),
    period: PeriodFilter | None = Depends(parse_period),
):
    """Monthly deposits / withdrawals / dividends for the period."""
    buckets = store.cash_flow(period)
    return _safe_json({
        "period": _label(period),
        "totals": cash_flow_totals(buckets),
        "months": [b.to_dict() for b in buckets],
    })


@router.get("/allocation", response_model=AllocationResponse)
def allocation(
    store: PortfolioStore = Depends(get_store),
    period: PeriodFilter | None = Depends(parse_period),
):
    """Open positions at the end of the period, largest allocation first."""
    latest = store.latest(period)
    return AllocationResponse(
        period=_label(period),
        date=latest.date.isoformat() if latest else None,
        assets=[AllocationRow(**a.to_dict()) for a in store.allocation(period)],
    )


@router.get("/summary", response_model=KpiResponse)
def summary(
    store: PortfolioStore = Depends(get_store),
    period: PeriodFilter | None = Depends(parse_period),
):
    """Headline KPIs as of the last day of the period."""
    return KpiResponse(period=_label(period), **sanitize_for_json(kpi_summary(store.latest(period))))


@router.get("/report/excel")
def report_excel(
    store: PortfolioStore = Depends(get_store),
    period: PeriodFilter | None = Depends(parse_period),
):
    """Download the portfolio report workbook for the period."""
    content = build_workbook(store, period).to_bytes()
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="Portfolio_Report.xlsx"'},
    )
