"""Field normalization shared by grouping and display.

Every categorical label that ends up in a group key or a table cell goes
through ``normalize_value`` so the two can never disagree.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from ops_app.core.config import UNKNOWN


def records_frame(records) -> pd.DataFrame:
    """Return a fresh DataFrame for a DataFrame or an iterable of mappings."""
    if records is None:
        return pd.DataFrame()
    if isinstance(records, pd.DataFrame):
        return records.copy()
    rows = list(records) if isinstance(records, Iterable) else []
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame([dict(r) for r in rows if isinstance(r, Mapping)])


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if pd.api.types.is_scalar(value):
        return bool(pd.isna(value))
    return False


def normalize_value(value: Any, default: Any = UNKNOWN) -> Any:
    """Return ``value`` unless it is null, NaN, blank, or not a scalar.

    Examples
    --------
    >>> normalize_value("High")
    'High'
    >>> normalize_value(None)
    'Unknown'
    >>> normalize_value("  ", "Unassigned")
    'Unassigned'
    >>> normalize_value(["High"])
    'Unknown'
    """
    if is_missing(value) or not pd.api.types.is_scalar(value):
        return default
    return value


def normalize(record: Mapping[str, Any], field: str, default: Any = UNKNOWN) -> Any:
    getter = getattr(record, "get", None)
    if getter is None:
        return default
    return normalize_value(getter(field), default)


def normalize_column(frame: pd.DataFrame, field: str, default: Any = UNKNOWN) -> pd.Series:
    if field not in frame.columns:
        return pd.Series([default] * len(frame), index=frame.index, dtype=object)
    return frame[field].map(lambda v: normalize_value(v, default)).astype(object)


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce ``value`` to a finite float, falling back to ``default``."""
    if is_missing(value):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def numeric_column(frame: pd.DataFrame, field: str, default: float = 0.0) -> pd.Series:
    if field not in frame.columns:
        return pd.Series([default] * len(frame), index=frame.index, dtype=float)
    return frame[field].map(lambda v: to_number(v, default)).astype(float)


def lower_column(frame: pd.DataFrame, field: str, default: str = "") -> pd.Series:
    return normalize_column(frame, field, default).astype(str).str.strip().str.lower()
