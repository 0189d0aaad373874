"""Aggregator: reduce groups of records to scalar statistics.

Statistics are declared with ``StatSpec`` so every dashboard shares one
implementation of count/sum/mean/max/rate/distribution. All reductions are
total: empty groups and unparsable values degrade to 0 instead of NaN.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

from ops_app.analytics.pipeline.grouping import KeyPart, group_by, key_labels, key_values
from ops_app.analytics.pipeline.normalize import numeric_column, records_frame
from ops_app.core.config import RESOLUTION_BUCKETS_MINUTES

Predicate = Callable[[pd.DataFrame], pd.Series]


class StatKind(str, Enum):
    COUNT = "count"
    SUM = "sum"
    MEAN = "mean"
    MAX = "max"
    RATE = "rate"
    DISTRIBUTION = "distribution"


class Unit(str, Enum):
    NONE = ""
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    PERCENT = "percent"


@dataclass(frozen=True, slots=True)
class BucketScheme:
    """Named half-open ranges ``[lower, next_lower)``; the last one is open-ended.

    The first lower bound should be ``-inf`` so that no value can fall below
    the scheme.
    """

    bounds: tuple[tuple[str, float], ...] = tuple(RESOLUTION_BUCKETS_MINUTES)

    def __post_init__(self):
        lowers = [lower for _, lower in self.bounds]
        if not lowers or lowers != sorted(lowers) or len(set(lowers)) != len(lowers):
            raise ValueError("bucket lower bounds must be strictly increasing")

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.bounds]

    def assign(self, values: pd.Series) -> pd.Series:
        edges = [lower for _, lower in self.bounds] + [np.inf]
        return pd.cut(values.astype(float), bins=edges, labels=self.names, right=False)

    def counts(self, values: pd.Series) -> dict[str, int]:
        assigned = self.assign(values).value_counts()
        return {name: int(assigned.get(name, 0)) for name in self.names}


RESOLUTION_BUCKETS = BucketScheme()


@dataclass(frozen=True, slots=True)
class StatSpec:
    """Declarative statistic.

    ``predicate`` restricts the rows a count/sum/mean/max/distribution looks
    at; for ``rate`` it selects the numerator rows out of the whole group.
    """

    name: str
    kind: StatKind
    field: str | None = None
    predicate: Predicate | None = None
    buckets: BucketScheme | None = None
    unit: Unit = Unit.NONE
    skip_missing: bool = False

    def __post_init__(self):
        if self.kind in (StatKind.SUM, StatKind.MEAN, StatKind.MAX, StatKind.DISTRIBUTION) and not self.field:
            raise ValueError(f"{self.kind.value} statistic '{self.name}' needs a field")
        if self.kind is StatKind.RATE and self.predicate is None:
            raise ValueError(f"rate statistic '{self.name}' needs a predicate")

    @classmethod
    def count(cls, name: str = "count", *, predicate: Predicate | None = None) -> StatSpec:
        return cls(name, StatKind.COUNT, predicate=predicate)

    @classmethod
    def total(cls, name: str, field: str, *, unit: Unit = Unit.NONE, predicate: Predicate | None = None) -> StatSpec:
        return cls(name, StatKind.SUM, field, predicate=predicate, unit=unit)

    @classmethod
    def mean(
        cls,
        name: str,
        field: str,
        *,
        unit: Unit = Unit.NONE,
        predicate: Predicate | None = None,
        skip_missing: bool = False,
    ) -> StatSpec:
        return cls(name, StatKind.MEAN, field, predicate=predicate, unit=unit, skip_missing=skip_missing)

    @classmethod
    def maximum(
        cls,
        name: str,
        field: str,
        *,
        unit: Unit = Unit.NONE,
        predicate: Predicate | None = None,
        skip_missing: bool = False,
    ) -> StatSpec:
        return cls(name, StatKind.MAX, field, predicate=predicate, unit=unit, skip_missing=skip_missing)

    @classmethod
    def rate(cls, name: str, predicate: Predicate) -> StatSpec:
        return cls(name, StatKind.RATE, predicate=predicate, unit=Unit.PERCENT)

    @classmethod
    def distribution(
        cls,
        name: str,
        field: str,
        buckets: BucketScheme = RESOLUTION_BUCKETS,
        *,
        unit: Unit = Unit.MINUTES,
    ) -> StatSpec:
        return cls(name, StatKind.DISTRIBUTION, field, buckets=buckets, unit=unit)

    @property
    def columns(self) -> list[str]:
        if self.kind is StatKind.DISTRIBUTION:
            return (self.buckets or RESOLUTION_BUCKETS).names
        return [self.name]


def _mask(frame: pd.DataFrame, predicate: Predicate | None) -> pd.Series:
    if predicate is None or frame.empty:
        return pd.Series(True, index=frame.index)
    return predicate(frame).reindex(frame.index).fillna(False).astype(bool)


def _values(frame: pd.DataFrame, stat: StatSpec) -> pd.Series:
    if stat.skip_missing:
        return numeric_column(frame, stat.field, default=np.nan).dropna()
    return numeric_column(frame, stat.field)


def aggregate(group, stat: StatSpec) -> Any:
    """Reduce one group of records to the value described by ``stat``.

    Returns an ``int`` for counts, a ``float`` for sum/mean/max/rate, and a
    ``{bucket name: count}`` dict for distributions.
    """
    frame = records_frame(group)
    mask = _mask(frame, stat.predicate)

    if stat.kind is StatKind.RATE:
        total = len(frame)
        if total == 0:
            return 0.0
        return float(mask.sum()) / total * 100.0

    rows = frame[mask]
    if stat.kind is StatKind.COUNT:
        return int(len(rows))
    if stat.kind is StatKind.DISTRIBUTION:
        return (stat.buckets or RESOLUTION_BUCKETS).counts(numeric_column(rows, stat.field))

    values = _values(rows, stat)
    if values.empty:
        return 0.0
    if stat.kind is StatKind.SUM:
        return float(values.sum())
    if stat.kind is StatKind.MEAN:
        return float(values.sum()) / len(values)
    return float(values.max())


def aggregate_row(group, stats: Sequence[StatSpec]) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for stat in stats:
        value = aggregate(group, stat)
        if stat.kind is StatKind.DISTRIBUTION:
            row.update(value)
        else:
            row[stat.name] = value
    return row


def stat_columns(stats: Sequence[StatSpec]) -> list[str]:
    columns: list[str] = []
    for stat in stats:
        columns.extend(stat.columns)
    return columns


def summarize(records, parts: Sequence[KeyPart], stats: Sequence[StatSpec]) -> pd.DataFrame:
    """One row per group (first-seen order): key columns then statistic columns.

    Parameters
    ----------
    records : DataFrame or iterable of mappings
        Already-filtered records.
    parts : sequence of KeyPart
        Group key definition.
    stats : sequence of StatSpec
        Statistics computed for every group. Distributions expand into one
        column per bucket.

    Returns
    -------
    pd.DataFrame
        Empty frame with the same columns when there are no records.
    """
    columns = key_labels(parts) + stat_columns(stats)
    groups = group_by(records, parts)
    if not groups:
        return pd.DataFrame(columns=columns)
    rows = [{**key_values(key, parts), **aggregate_row(group, stats)} for key, group in groups.items()]
    return pd.DataFrame(rows, columns=columns)


def count_by(records, parts: Sequence[KeyPart], name: str = "count") -> pd.DataFrame:
    return summarize(records, parts, [StatSpec.count(name)])


def top_n(frame: pd.DataFrame, column: str, n: int) -> pd.DataFrame:
    """Rows with the ``n`` largest values of ``column``; ties keep input order."""
    if frame.empty or column not in frame.columns:
        return frame.head(0).reset_index(drop=True)
    ordered = frame.sort_values(column, ascending=False, kind="stable")
    return ordered.head(max(n, 0)).reset_index(drop=True)
