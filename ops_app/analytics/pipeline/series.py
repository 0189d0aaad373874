"""Time-series builder.

Every series row carries three period columns:

``period``
    Sortable key (``YYYY-MM-DD`` or ``YYYY-MM``).
``period_start``
    Naive local timestamp of the period start; this is the sort key.
``label``
    Display label such as ``Jan-24``. Never parsed back.

Records whose date does not parse are left out of every series. Periods
without records are omitted unless a ``fill_range`` is given.
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from ops_app.analytics.pipeline.aggregate import StatSpec, aggregate_row, stat_columns
from ops_app.analytics.pipeline.grouping import KeyPart, key_frame, key_labels
from ops_app.analytics.pipeline.normalize import normalize_column, records_frame
from ops_app.analytics.pipeline.timestamps import Period, period_key, period_label, period_start_column, periods_between
from ops_app.core.config import UNKNOWN
from ops_app.core.models import DateRange

PERIOD_COLUMNS = ["period", "period_start", "label"]


def _period_fields(start: pd.Timestamp, period: Period) -> dict:
    return {
        "period": period_key(start, period),
        "period_start": start,
        "label": period_label(start, period),
    }


def _dated(frame: pd.DataFrame, date_field: str, period: Period) -> tuple[pd.DataFrame, pd.Series]:
    if frame.empty:
        return frame, pd.Series(dtype="datetime64[ns]")
    starts = period_start_column(frame, date_field, period)
    keep = starts.notna()
    return frame[keep], starts[keep]


def build_series(
    records,
    date_field: str,
    period: Period,
    stats: Sequence[StatSpec],
    *,
    fill_range: DateRange | None = None,
    working_days_only: bool = False,
) -> pd.DataFrame:
    """Aggregate records per day/week/month, in chronological order.

    Parameters
    ----------
    records : DataFrame or iterable of mappings
        Already-filtered records.
    date_field : str
        Field bucketed into periods.
    period : Period
        Bucket size.
    stats : sequence of StatSpec
        Statistics computed for each period.
    fill_range : DateRange, optional
        When given, every period in the range gets a row; empty periods get
        the zero value of each statistic.
    working_days_only : bool
        With a daily ``fill_range``, only Monday to Friday are filled.

    Returns
    -------
    pd.DataFrame
        ``period``, ``period_start``, ``label`` followed by the statistic
        columns, sorted by ``period_start``.
    """
    columns = PERIOD_COLUMNS + stat_columns(stats)
    frame, starts = _dated(records_frame(records), date_field, period)

    rows: dict[pd.Timestamp, dict] = {}
    if not frame.empty:
        for start, group in frame.groupby(starts, sort=True):
            rows[start] = {**_period_fields(start, period), **aggregate_row(group, stats)}

    if fill_range is not None and not fill_range.is_empty:
        empty = frame.head(0)
        for start in periods_between(fill_range.start, fill_range.end, period, working_days_only=working_days_only):
            if start not in rows:
                rows[start] = {**_period_fields(start, period), **aggregate_row(empty, stats)}

    if not rows:
        return pd.DataFrame(columns=columns)
    out = pd.DataFrame([rows[start] for start in sorted(rows)], columns=columns)
    return out.reset_index(drop=True)


def series_by(
    records,
    date_field: str,
    period: Period,
    column_field: str,
    *,
    default: str = UNKNOWN,
    name: str = "count",
) -> pd.DataFrame:
    """Long-form counts per (period, category), chronological then first-seen."""
    columns = PERIOD_COLUMNS + [column_field, name]
    frame, starts = _dated(records_frame(records), date_field, period)
    if frame.empty:
        return pd.DataFrame(columns=columns)
    categories = normalize_column(frame, column_field, default)
    rows = []
    for start, group in frame.groupby(starts, sort=True):
        counts = categories.loc[group.index].value_counts(sort=False)
        for category in pd.unique(categories.loc[group.index]):
            rows.append({**_period_fields(start, period), column_field: category, name: int(counts[category])})
    return pd.DataFrame(rows, columns=columns)


def pivot_series(
    records,
    date_field: str,
    period: Period,
    column_field: str,
    *,
    default: str = UNKNOWN,
) -> pd.DataFrame:
    """Wide table: one row per period, one count column per category.

    Category columns appear in first-seen order; missing combinations are 0.
    """
    long = series_by(records, date_field, period, column_field, default=default)
    if long.empty:
        return pd.DataFrame(columns=PERIOD_COLUMNS)
    categories = list(pd.unique(long[column_field]))
    wide = long.pivot_table(
        index="period_start",
        columns=column_field,
        values="count",
        aggfunc="sum",
        fill_value=0,
    )
    wide = wide.reindex(columns=categories, fill_value=0).sort_index()
    wide.columns = [str(c) for c in wide.columns]
    meta = pd.DataFrame([_period_fields(start, period) for start in wide.index])
    return pd.concat([meta, wide.reset_index(drop=True).astype(int)], axis=1)


def period_matrix(
    records,
    row_parts: Sequence[KeyPart],
    date_field: str,
    period: Period = Period.MONTH,
) -> pd.DataFrame:
    """Counts per row key with one column per period label, chronological.

    Rows keep first-seen order; undated records are left out.
    """
    labels = key_labels(row_parts)
    frame, starts = _dated(records_frame(records), date_field, period)
    if frame.empty:
        return pd.DataFrame(columns=labels)
    keys = key_frame(frame, row_parts)
    keys["_period_start"] = starts
    counts = keys.groupby(labels + ["_period_start"], sort=False, dropna=False).size()
    wide = counts.unstack("_period_start", fill_value=0)
    first_seen = keys[labels].drop_duplicates()
    if len(labels) > 1:
        row_order = pd.MultiIndex.from_frame(first_seen)
    else:
        row_order = pd.Index(first_seen[labels[0]], name=labels[0])
    wide = wide.reindex(index=row_order, columns=sorted(wide.columns), fill_value=0)
    wide.columns = [period_label(start, period) for start in wide.columns]
    return wide.reset_index().astype({label: object for label in labels})
