"""Excel styling, formatting, and writing utilities."""
from .formatters import style_header, write_cell, fit_columns, kpi_card
from .writer import Column, ExcelWriter, Kpi
