"""Domain data models for filters and fetched records."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

Record = Mapping[str, Any]


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar-day range."""

    start: date
    end: date

    def __post_init__(self):
        object.__setattr__(self, "start", _as_date(self.start))
        object.__setattr__(self, "end", _as_date(self.end))

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    @property
    def is_empty(self) -> bool:
        return self.end < self.start


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Dashboard filter selection.

    An empty selection set leaves that dimension unfiltered, and a missing
    ``date_range`` leaves the date dimension unfiltered.
    """

    date_range: DateRange | None = None
    selected_teams: frozenset[str] = field(default_factory=frozenset)
    selected_projects: frozenset[str] = field(default_factory=frozenset)
    selected_users: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        start=None,
        end=None,
        *,
        teams: Iterable[str] | None = None,
        projects: Iterable[str] | None = None,
        users: Iterable[str] | None = None,
    ) -> FilterSpec:
        date_range = DateRange(start, end) if start is not None and end is not None else None
        return cls(
            date_range=date_range,
            selected_teams=frozenset(teams or ()),
            selected_projects=frozenset(projects or ()),
            selected_users=frozenset(users or ()),
        )


@dataclass(frozen=True, slots=True)
class RecordSources:
    """Raw record sets fetched for one dashboard refresh."""

    incidents: list[dict[str, Any]] = field(default_factory=list)
    work_logs: list[dict[str, Any]] = field(default_factory=list)
    users: list[dict[str, Any]] = field(default_factory=list)
    team_members: list[dict[str, Any]] = field(default_factory=list)
    shifts: list[dict[str, Any]] = field(default_factory=list)
    projects: list[dict[str, Any]] = field(default_factory=list)
    team_project_assignments: list[dict[str, Any]] = field(default_factory=list)
    jira_issues: list[dict[str, Any]] = field(default_factory=list)
    jira_user_mappings: list[dict[str, Any]] = field(default_factory=list)
