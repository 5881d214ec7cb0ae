#!/usr/bin/env python3
"""
Portfolio Timeline CLI — Unified entry point for summaries, Excel export, and API server.

USAGE:
  python -m portfolio_timeline.cli summary                          # Summarize every CSV in the inbox
  python -m portfolio_timeline.cli summary ledger.csv               # Summarize one export
  python -m portfolio_timeline.cli summary ledger.csv --year 2023 --quarter 2
  python -m portfolio_timeline.cli summary ledger.csv --months      # Include monthly cash flow

  python -m portfolio_timeline.cli export ledger.csv                # Excel report to reports folder
  python -m portfolio_timeline.cli export ledger.csv --output report.xlsx --year 2024

  python -m portfolio_timeline.cli serve                            # Start API server
  python -m portfolio_timeline.cli serve --port 8000
"""
from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from portfolio_timeline.config import INBOX_FOLDER, REPORTS_FOLDER
from portfolio_timeline.data.schemas import LedgerError, PeriodFilter, PeriodType
from portfolio_timeline.data.store import PortfolioStore
from portfolio_timeline.analytics.summary import kpi_summary, cash_flow_totals


def _build_period(args) -> PeriodFilter | None:
    """Build a PeriodFilter from CLI args (most specific of month/quarter/year wins)."""
    year = getattr(args, "year", None)
    quarter = getattr(args, "quarter", None)
    month = getattr(args, "month", None)
    if month is not None:
        return PeriodFilter(PeriodType.MONTH, year=year, month=month)
    if quarter is not None:
        return PeriodFilter(PeriodType.QUARTER, year=year, quarter=quarter)
    if year is not None:
        return PeriodFilter(PeriodType.YEAR, year=year)
    return None


def _load(args) -> PortfolioStore:
    return PortfolioStore().load(Path(args.source) if args.source else INBOX_FOLDER)


def cmd_summary(args) -> int:
    """Print KPIs, cash flow totals and allocation for a period."""
    print("\n" + "=" * 70)
    print("  PORTFOLIO TIMELINE — SUMMARY")
    print("=" * 70)

    store = _load(args)
    if store.day_count() == 0:
        print("\n  No data found in the ledger.\n")
        return 0

    period = _build_period(args)
    latest = store.latest(period)
    k = kpi_summary(latest)

    print(f"\n  Period: {period.label if period else 'All Time'}  ({store.date_range(period)})")
    if period and not store.snapshots(period):
        print(f"  No data for selected period — showing {latest.date}")
    print()
    print(f"  {'Net portfolio value':<24}{k['net_value']:>16,.2f}   (cash {k['cash_balance']:,.2f} + assets {k['assets_value']:,.2f})")
    print(f"  {'Net invested':<24}{k['total_invested']:>16,.2f}")
    print(f"  {'Total net return':<24}{k['total_return']:>16,.2f}   ({k['return_pct']:.2f}%)")
    print(f"  {'Realized P&L':<24}{k['realized_pnl']:>16,.2f}")
    print(f"  {'Unrealized P&L':<24}{k['unrealized_pnl']:>16,.2f}")
    print(f"  {'Dividends':<24}{k['dividends']:>16,.2f}")
    print(f"  {'Fees':<24}{k['fees']:>16,.2f}")

    buckets = store.cash_flow(period)
    t = cash_flow_totals(buckets)
    print(f"\n  CASH FLOW ({t['months']} months): deposits {t['deposits']:,.2f}  |  "
          f"withdrawals {t['withdrawals']:,.2f}  |  dividends {t['dividends']:,.2f}  |  net {t['net_flow']:,.2f}")
    if args.months:
        for b in buckets:
            print(f"    {b.month}  {b.deposits:>12,.2f}  {b.withdrawals:>12,.2f}  {b.dividends:>10,.2f}  {b.net_flow:>12,.2f}")

    allocation = store.allocation(period)
    print(f"\n  ALLOCATION ({len(allocation)} open positions, as of {latest.date}):\n")
    if not allocation:
        print("    No active assets held at the end of this period.")
    for i, a in enumerate(allocation, 1):
        print(f"  {i:<4}{a.name[:36]:<38}{a.quantity:>14,.4f}{a.current_value:>16,.2f}{a.allocation:>8.1f}%")

    for w in store.timeline.warnings:
        print(f"\n  Warning: {w}")
    print()
    return 0


def cmd_export(args) -> int:
    """Write the Excel portfolio report."""
    from portfolio_timeline.reports.portfolio_report import generate_excel

    print("\n" + "=" * 70)
    print("  PORTFOLIO TIMELINE — EXCEL EXPORT")
    print("=" * 70)
    print(f"  Started: {datetime.now():%Y-%m-%d %H:%M:%S}")

    store = _load(args)
    period = _build_period(args)

    if args.output:
        output = Path(args.output)
    else:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output = REPORTS_FOLDER / f"Portfolio_Report_{timestamp}.xlsx"

    path = generate_excel(store, output, period)
    print(f"\n  Report saved to: {path}\n")
    return 0


def cmd_serve(args) -> int:
    """Start the FastAPI server."""
    import uvicorn

    print(f"\n  Starting Portfolio Timeline API on http://{args.host}:{args.port}\n")
    uvicorn.run("portfolio_timeline.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _add_period_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--year", type=int, help="Calendar year, e.g. 2023")
    p.add_argument("--quarter", type=int, choices=[1, 2, 3, 4], help="Quarter (every year unless --year)")
    p.add_argument("--month", type=int, choices=range(1, 13), metavar="{1..12}", help="Month (every year unless --year)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-timeline",
        description="Replay a brokerage ledger into a daily portfolio timeline",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_sum = sub.add_parser("summary", help="Print KPIs, cash flow and allocation")
    p_sum.add_argument("source", nargs="?", help="Ledger CSV or folder (default: inbox)")
    p_sum.add_argument("--months", action="store_true", help="List every monthly cash-flow bucket")
    _add_period_args(p_sum)
    p_sum.set_defaults(func=cmd_summary)

    p_exp = sub.add_parser("export", help="Write the Excel portfolio report")
    p_exp.add_argument("source", nargs="?", help="Ledger CSV or folder (default: inbox)")
    p_exp.add_argument("--output", "-o", help="Output .xlsx path")
    _add_period_args(p_exp)
    p_exp.set_defaults(func=cmd_export)

    p_srv = sub.add_parser("serve", help="Start the API server")
    p_srv.add_argument("--host", default="127.0.0.1")
    p_srv.add_argument("--port", type=int, default=8000)
    p_srv.add_argument("--reload", action="store_true")
    p_srv.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except LedgerError as exc:
        print(f"\n  Error: {exc}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
