"""
Cell-level helpers: number formats by column kind, header/body/total styling, KPI cards.

Column kinds: text, date, currency, signed (currency coloured by sign),
percent, quantity.
"""
from __future__ import annotations

from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from portfolio_timeline.config import CURRENCY_SYMBOL
from portfolio_timeline.excel.styles import (
    HEADER_FONT, HEADER_FILL, HEADER_BORDER,
    DATA_FONT, TOTAL_FONT, GAIN_FONT, LOSS_FONT,
    THIN_BORDER, TOTAL_BORDER,
    ALTERNATE_FILL, TOTAL_FILL,
    KPI_VALUE_FONT, KPI_LABEL_FONT, POSITIVE_KPI_FONT, NEGATIVE_KPI_FONT,
    CENTER, LEFT, RIGHT,
)

_CURRENCY = f'"{CURRENCY_SYMBOL}"#,##0.00;-"{CURRENCY_SYMBOL}"#,##0.00'

NUMBER_FORMATS = {
    "currency": _CURRENCY,
    "signed": _CURRENCY,
    "percent": '0.0"%"',
    "quantity": "#,##0.####",
    "date": "yyyy-mm-dd",
}

SUMMABLE_KINDS = ("currency", "signed", "percent", "quantity")


def style_header(ws: Worksheet, row: int, labels: list[str]) -> None:
    for col, label in enumerate(labels, 1):
        cell = ws.cell(row=row, column=col, value=label)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = CENTER
        cell.border = HEADER_BORDER


def write_cell(ws: Worksheet, row: int, col: int, value, kind: str = "text", total: bool = False) -> None:
    """Write one body (or total) cell, striping even rows."""
    cell = ws.cell(row=row, column=col, value=value)
    cell.border = TOTAL_BORDER if total else THIN_BORDER
    cell.alignment = LEFT if kind == "text" else RIGHT
    if kind in NUMBER_FORMATS:
        cell.number_format = NUMBER_FORMATS[kind]

    if kind == "signed" and isinstance(value, (int, float)) and value:
        cell.font = GAIN_FONT if value > 0 else LOSS_FONT
    else:
        cell.font = TOTAL_FONT if total else DATA_FONT

    if total:
        cell.fill = TOTAL_FILL
    elif row % 2 == 0:
        cell.fill = ALTERNATE_FILL


def fit_columns(ws: Worksheet, min_width: int = 10, max_width: int = 48) -> None:
    """Size every column to its longest rendered value."""
    for idx, cells in enumerate(ws.iter_cols(), 1):
        longest = max((len(str(c.value)) for c in cells if c.value is not None), default=0)
        ws.column_dimensions[get_column_letter(idx)].width = min(max(longest + 2, min_width), max_width)


def kpi_card(
    ws: Worksheet,
    row: int,
    col: int,
    value,
    label: str,
    kind: str = "currency",
    signed: bool = False,
) -> None:
    """Big number with a small caption underneath; signed cards go green/red."""
    value_cell = ws.cell(row=row, column=col, value=value)
    if signed:
        value_cell.font = POSITIVE_KPI_FONT if value >= 0 else NEGATIVE_KPI_FONT
    else:
        value_cell.font = KPI_VALUE_FONT
    value_cell.alignment = CENTER
    if kind in NUMBER_FORMATS:
        value_cell.number_format = NUMBER_FORMATS[kind]

    label_cell = ws.cell(row=row + 1, column=col, value=label)
    label_cell.font = KPI_LABEL_FONT
    label_cell.alignment = CENTER
