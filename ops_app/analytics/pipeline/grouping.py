"""Grouping/bucketing engine.

Group keys are built from ``KeyPart`` definitions: a categorical field (run
through the normalizer) or a time bucket derived from a date field. A single
part yields scalar keys, several parts yield tuple keys. Composite keys stay
tuples all the way through, so no separator character can collide with the
data.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

from ops_app.analytics.pipeline.normalize import normalize_column, records_frame
from ops_app.analytics.pipeline.timestamps import Period, period_key, period_start_column
from ops_app.core.config import UNKNOWN

GroupKey = Any


@dataclass(frozen=True, slots=True)
class KeyPart:
    label: str
    field: str
    default: Any = UNKNOWN
    period: Period | None = None

    def column(self, frame: pd.DataFrame) -> pd.Series:
        if self.period is None:
            return normalize_column(frame, self.field, self.default)
        starts = period_start_column(frame, self.field, self.period)
        keys = starts.map(lambda ts: self.default if pd.isna(ts) else period_key(ts, self.period))
        return keys.astype(object)


def by_field(field: str, default: Any = UNKNOWN, *, label: str | None = None) -> KeyPart:
    return KeyPart(label or field, field, default)


def by_day(field: str, *, label: str = "date", default: Any = UNKNOWN) -> KeyPart:
    return KeyPart(label, field, default, Period.DAY)


def by_week(field: str, *, label: str = "week", default: Any = UNKNOWN) -> KeyPart:
    return KeyPart(label, field, default, Period.WEEK)


def by_month(field: str, *, label: str = "month", default: Any = UNKNOWN) -> KeyPart:
    return KeyPart(label, field, default, Period.MONTH)


def key_frame(frame: pd.DataFrame, parts: Sequence[KeyPart]) -> pd.DataFrame:
    """One column per key part, aligned with ``frame``."""
    return pd.DataFrame({part.label: part.column(frame) for part in parts}, index=frame.index)


def group_by(records, parts: Sequence[KeyPart]) -> dict[GroupKey, pd.DataFrame]:
    """Partition records by key, preserving first-seen key order.

    Rows keep their original relative order inside each group.
    """
    if not parts:
        raise ValueError("group_by needs at least one key part")
    frame = records_frame(records)
    if frame.empty:
        return {}
    keys = key_frame(frame, parts)
    grouped = frame.groupby([keys[part.label] for part in parts], sort=False, dropna=False)
    out: dict[GroupKey, pd.DataFrame] = {}
    for key, group in grouped:
        if len(parts) == 1 and isinstance(key, tuple):
            key = key[0]
        out[key] = group.copy()
    return out


def key_labels(parts: Sequence[KeyPart]) -> list[str]:
    return [part.label for part in parts]


def key_values(key: GroupKey, parts: Sequence[KeyPart]) -> dict[str, Any]:
    values = key if len(parts) > 1 else (key,)
    return dict(zip(key_labels(parts), values, strict=True))
