"""Sidebar filter widgets shared by the dashboard pages."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

import pytz
import streamlit as st

from ops_app.core.config import DEFAULT_DATE_RANGE_DAYS, TIMEZONE
from ops_app.core.errors import FetchError
from ops_app.core.models import FilterSpec
from ops_app.core.service import DashboardService

logger = logging.getLogger(__name__)

SERVICE_KEY = "dashboard_service"
OPTIONS_KEY = "filter_options"


def default_range(today: date | None = None, days: int = DEFAULT_DATE_RANGE_DAYS) -> tuple[date, date]:
    """Last ``days`` days ending today (UTC), inclusive.

    >>> default_range(date(2024, 3, 31), days=30)
    (datetime.date(2024, 3, 2), datetime.date(2024, 3, 31))
    """
    end = today or datetime.now(pytz.timezone(TIMEZONE)).date()
    return end - timedelta(days=days - 1), end


def get_service() -> DashboardService | None:
    return st.session_state.get(SERVICE_KEY)


def _options(service: DashboardService) -> dict[str, list[str]]:
    cached = st.session_state.get(OPTIONS_KEY)
    if cached is not None:
        return cached
    try:
        options = service.filter_options()
    except FetchError as exc:
        logger.warning("Filter options unavailable: %s", exc)
        options = {"teams": [], "projects": [], "users": []}
    st.session_state[OPTIONS_KEY] = options
    return options


def sidebar_filters(
    service: DashboardService | None,
    key: str,
    *,
    people: bool = True,
    teams: bool = True,
) -> FilterSpec:
    """Render date/team/project/user pickers and return the selection.

    Empty multiselects leave that dimension unfiltered. ``teams=False`` hides
    the team picker for records that have no team.
    """
    start_default, end_default = default_range()
    st.sidebar.subheader("Filters")
    picked = st.sidebar.date_input("Date range", value=(start_default, end_default), key=f"{key}_dates")
    if isinstance(picked, (list, tuple)) and len(picked) == 2:
        start, end = picked
    else:
        # Range picker mid-selection returns a single date.
        start = end = picked[0] if isinstance(picked, (list, tuple)) and picked else start_default
    options = _options(service) if service is not None and service.store is not None else {}
    selected_teams = projects = users = []
    if people and options:
        if teams:
            selected_teams = st.sidebar.multiselect("Teams", options.get("teams", []), key=f"{key}_teams")
        projects = st.sidebar.multiselect("Projects", options.get("projects", []), key=f"{key}_projects")
        users = st.sidebar.multiselect("Users", options.get("users", []), key=f"{key}_users")
    return FilterSpec.build(start, end, teams=selected_teams, projects=projects, users=users)
