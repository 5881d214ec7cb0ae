"""
Zero-safe ratios and JSON cleanup shared by the summaries, API and report.
"""
from __future__ import annotations

import datetime as dt
import math
from collections.abc import Mapping

import numpy as np
import pandas as pd


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """numerator / denominator, or default when the denominator is 0/NaN or the result is not finite."""
    if denominator == 0 or pd.isna(denominator):
        return default
    result = numerator / denominator
    return result if math.isfinite(result) else default


def pct_of_total(part: float, total: float) -> float:
    return safe_divide(part, total) * 100


def sanitize_for_json(obj):
    """Recursively turn records, numpy scalars and dates into plain JSON values.

    Records (anything with ``to_dict``) are expanded; NaN/inf floats become 0.0
    so a bad price can never break a response.
    """
    if hasattr(obj, "to_dict") and not isinstance(obj, (type, pd.DataFrame, pd.Series)):
        obj = obj.to_dict()
    if isinstance(obj, Mapping):
        return {str(k): sanitize_for_json(v) for k, v in obj.items() if k is not None}
    if isinstance(obj, (list, tuple, np.ndarray)):
        return [sanitize_for_json(v) for v in obj]
    if isinstance(obj, np.generic):
        obj = obj.item()
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else 0.0
    if isinstance(obj, (dt.date, dt.datetime)):
        return obj.isoformat()
    return obj
