"""Generic metrics pipeline: filter, normalize, group, aggregate, series."""

from ops_app.analytics.pipeline.aggregate import (
    RESOLUTION_BUCKETS,
    BucketScheme,
    StatKind,
    StatSpec,
    Unit,
    aggregate,
    count_by,
    summarize,
    top_n,
)
from ops_app.analytics.pipeline.filters import filter_records
from ops_app.analytics.pipeline.grouping import KeyPart, by_day, by_field, by_month, by_week, group_by
from ops_app.analytics.pipeline.normalize import normalize, normalize_column, normalize_value, records_frame, to_number
from ops_app.analytics.pipeline.series import build_series, period_matrix, pivot_series, series_by
from ops_app.analytics.pipeline.timestamps import Period, parse_timestamp

__all__ = [
    "RESOLUTION_BUCKETS",
    "BucketScheme",
    "KeyPart",
    "Period",
    "StatKind",
    "StatSpec",
    "Unit",
    "aggregate",
    "build_series",
    "by_day",
    "by_field",
    "by_month",
    "by_week",
    "count_by",
    "filter_records",
    "group_by",
    "normalize",
    "normalize_column",
    "normalize_value",
    "parse_timestamp",
    "period_matrix",
    "pivot_series",
    "records_frame",
    "series_by",
    "summarize",
    "to_number",
    "top_n",
]
