"""
ExcelWriter — builds the styled report workbook sheet by sheet.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Iterable, Mapping, NamedTuple, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from portfolio_timeline.excel.styles import TITLE_FONT, SUBTITLE_FONT, SECTION_FONT, WARNING_FONT
from portfolio_timeline.excel.formatters import (
    SUMMABLE_KINDS, style_header, write_cell, fit_columns, kpi_card,
)


class Column(NamedTuple):
    key: str
    kind: str
    label: str


class Kpi(NamedTuple):
    value: float
    label: str
    kind: str = "currency"
    signed: bool = False


class ExcelWriter:
    """Thin stateful wrapper over an openpyxl Workbook."""

    def __init__(self) -> None:
        self.wb = Workbook()
        self.wb.remove(self.wb.active)

    def add_sheet(self, title: str) -> Worksheet:
        return self.wb.create_sheet(title=title)

    # ------------------------------------------------------------------
    # Headings
    # ------------------------------------------------------------------

    def write_title(self, ws: Worksheet, title: str, subtitle: str, width: int = 8) -> int:
        """Merged title and subtitle across the first `width` columns. Returns next free row."""
        for row, text, font in ((1, title, TITLE_FONT), (2, subtitle, SUBTITLE_FONT)):
            ws.cell(row=row, column=1, value=text).font = font
            ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=width)
        for col in range(1, width + 1):
            ws.column_dimensions[get_column_letter(col)].width = 18
        return 4

    def write_section(self, ws: Worksheet, row: int, title: str) -> int:
        ws.cell(row=row, column=1, value=title).font = SECTION_FONT
        return row + 2

    def write_kpis(self, ws: Worksheet, row: int, cards: Sequence[Kpi], spacing: int = 2) -> int:
        """One row of KPI cards, `spacing` columns apart. Returns next free row."""
        for i, card in enumerate(cards):
            kpi_card(ws, row, 1 + i * spacing, card.value, card.label, card.kind, card.signed)
        return row + 3

    def write_notes(self, ws: Worksheet, row: int, notes: Iterable[str]) -> int:
        for note in notes:
            ws.cell(row=row, column=1, value=note).font = WARNING_FONT
            row += 1
        return row + 1

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def write_table(
        self,
        ws: Worksheet,
        start_row: int,
        columns: Sequence[Column],
        records: Iterable[Mapping],
        totals: Sequence[str] = (),
    ) -> int:
        """Header, one row per record, and an optional TOTAL row summing `totals` keys.

        Missing or None values are written as blanks. Returns the row after the table.
        """
        style_header(ws, start_row, [c.label for c in columns])

        row = start_row + 1
        sums = dict.fromkeys(totals, 0.0)
        for record in records:
            for col, column in enumerate(columns, 1):
                value = record.get(column.key)
                write_cell(ws, row, col, value, column.kind)
                if column.key in sums and isinstance(value, (int, float)):
                    sums[column.key] += value
            row += 1

        if totals and row > start_row + 1:
            for col, column in enumerate(columns, 1):
                if col == 1:
                    write_cell(ws, row, col, "TOTAL", total=True)
                elif column.key in sums and column.kind in SUMMABLE_KINDS:
                    write_cell(ws, row, col, sums[column.key], column.kind, total=True)
                else:
                    write_cell(ws, row, col, None, total=True)
            row += 1

        fit_columns(ws)
        ws.freeze_panes = f"A{start_row + 1}"
        return row

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.wb.save(path)
        return path

    def to_bytes(self) -> bytes:
        """Serialized workbook for HTTP downloads."""
        buf = io.BytesIO()
        self.wb.save(buf)
        return buf.getvalue()
