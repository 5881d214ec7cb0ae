"""
Pydantic response schemas for the API.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    rows: int
    transactions: int
    dropped_rows: int
    days: int
    months: int
    sources: list[str]
    warnings: list[str]


class PeriodsResponse(BaseModel):
    years: list[int]
    quarters: list[str]
    first_day: Optional[str] = None
    last_day: Optional[str] = None


class KpiResponse(BaseModel):
    period: str
    date: Optional[str] = None
    net_value: float
    cash_balance: float
    assets_value: float
    total_invested: float
    realized_pnl: float
    unrealized_pnl: float
    dividends: float
    fees: float
    total_return: float
    return_pct: float


class AllocationRow(BaseModel):
    name: str
    quantity: float
    current_value: float
    allocation: float


class AllocationResponse(BaseModel):
    period: str
    date: Optional[str] = None
    assets: list[AllocationRow]


class UploadResponse(BaseModel):
    status: str
    name: str
    transactions: int
    dropped_rows: int
    days: int
