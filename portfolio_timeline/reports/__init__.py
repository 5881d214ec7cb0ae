"""Exportable reports built from the portfolio timeline."""
