"""Data-store REST client (PostgREST dialect, as exposed by Supabase)."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

import requests

from .config import FETCH_TIMEOUT_SECONDS, STORE_PAGE_SIZE
from .errors import FetchError
from .models import FilterSpec

logger = logging.getLogger(__name__)

# Filter key suffix -> PostgREST operator.
_OPERATORS = {
    "_gte": "gte",
    "_lte": "lte",
    "_gt": "gt",
    "_lt": "lt",
    "_neq": "neq",
    "_like": "like",
    "_ilike": "ilike",
    "_in": "in",
}


def _literal(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _in_list(values: Iterable[Any]) -> str:
    quoted = []
    for value in values:
        text = _literal(value)
        if any(ch in text for ch in ',()"'):
            text = '"' + text.replace('"', '\\"') + '"'
        quoted.append(text)
    return "in.(" + ",".join(quoted) + ")"


def encode_filters(filters: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Translate ``{column_op: value}`` filters into PostgREST query params.

    ``start_time_gte`` becomes ``start_time=gte.<value>``; list values and the
    ``_in`` suffix become ``in.(...)``; anything else is an equality test.
    ``None`` values and empty lists are skipped.

    >>> encode_filters({"shift_date_gte": "2024-01-01", "user_email": ["a@x"]})
    [('shift_date', 'gte.2024-01-01'), ('user_email', 'in.(a@x)')]
    """
    params: list[tuple[str, str]] = []
    for key, value in (filters or {}).items():
        if value is None:
            continue
        column, operator = key, "eq"
        for suffix, op in _OPERATORS.items():
            if key.endswith(suffix):
                column, operator = key[: -len(suffix)], op
                break
        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                continue
            params.append((column, _in_list(sorted(value, key=str) if isinstance(value, (set, frozenset)) else value)))
        elif operator == "in":
            params.append((column, _in_list([value])))
        else:
            params.append((column, f"{operator}.{_literal(value)}"))
    return params


class DataStoreAPI:
    """Read-only client for the dashboard tables.

    Every request uses ``FETCH_TIMEOUT_SECONDS``; transport errors and HTTP
    error statuses surface as ``FetchError``.
    """

    def __init__(
        self,
        url: str,
        key: str,
        *,
        session: requests.Session | None = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        page_size: int = STORE_PAGE_SIZE,
    ):
        self.base = url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self.page_size = page_size
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Accept": "application/json",
            }
        )

    def _get(self, table: str, params: list[tuple[str, str]]) -> list[dict[str, Any]]:
        url = f"{self.base}/{table}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(f"GET {table} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise FetchError(f"GET {table} failed {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise FetchError(f"GET {table} returned invalid JSON") from exc
        if not isinstance(data, list):
            raise FetchError(f"GET {table} returned {type(data).__name__}, expected a list")
        return data

    def select(
        self,
        table: str,
        *,
        select: str = "*",
        filters: Mapping[str, Any] | None = None,
        order: tuple[str, bool] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch every matching row, walking ``limit``/``offset`` pages."""
        base_params = [("select", select), *encode_filters(filters)]
        if order is not None:
            column, ascending = order
            base_params.append(("order", f"{column}.{'asc' if ascending else 'desc'}"))
        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            size = self.page_size if limit is None else min(self.page_size, limit - len(rows))
            if size <= 0:
                break
            page = self._get(table, [*base_params, ("limit", str(size)), ("offset", str(offset))])
            rows.extend(page)
            logger.debug("Fetched %s rows from %s (offset %s)", len(page), table, offset)
            if len(page) < size:
                break
            offset += len(page)
        return rows

    # ------------------ Dashboard Queries ------------------
    def work_logs(self, spec: FilterSpec | None = None) -> list[dict[str, Any]]:
        filters: dict[str, Any] = {}
        if spec is not None:
            if spec.date_range is not None:
                filters["start_time_gte"] = spec.date_range.start.isoformat()
                filters["start_time_lte"] = f"{spec.date_range.end.isoformat()}T23:59:59.999999"
            if spec.selected_users:
                filters["user_email"] = spec.selected_users
        return self.select(
            "work_logs",
            select="*,project:projects(*)",
            filters=filters,
            order=("start_time", False),
        )

    def users(self) -> list[dict[str, Any]]:
        return self.select("users", order=("full_name", True))

    def teams(self) -> list[dict[str, Any]]:
        return self.select("teams", select="*,team_members(*,user:users(*))")

    def projects(self) -> list[dict[str, Any]]:
        return self.select("projects", order=("name", True))

    def team_project_assignments(self) -> list[dict[str, Any]]:
        return self.select("team_project_assignments")

    def shifts(self, spec: FilterSpec | None = None) -> list[dict[str, Any]]:
        filters: dict[str, Any] = {}
        if spec is not None:
            if spec.date_range is not None:
                filters["shift_date_gte"] = spec.date_range.start.isoformat()
                filters["shift_date_lte"] = spec.date_range.end.isoformat()
            if spec.selected_users:
                filters["user_email"] = spec.selected_users
        return self.select("shift_schedules", filters=filters)

    def incidents(self, spec: FilterSpec | None = None) -> list[dict[str, Any]]:
        filters: dict[str, Any] = {}
        if spec is not None:
            if spec.date_range is not None:
                filters["reported_date1_gte"] = spec.date_range.start.isoformat()
                filters["reported_date1_lte"] = f"{spec.date_range.end.isoformat()}T23:59:59.999999"
            if spec.selected_users:
                filters["mapped_user_email"] = spec.selected_users
        return self.select("uploaded_tickets", filters=filters)

    def jira_user_mappings(self) -> list[dict[str, Any]]:
        return self.select("user_jira_mappings")
