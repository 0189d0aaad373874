"""DashboardService: fetches record sources and runs the dashboard assemblers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import timedelta
from typing import Any

from ops_app.analytics.dashboards.incidents import IncidentMetrics, build_incident_metrics
from ops_app.analytics.dashboards.jira_projects import JiraOverview, build_jira_overview
from ops_app.analytics.dashboards.workload import (
    IndividualMetrics,
    ProjectHealthSummary,
    TeamMetrics,
    WorkloadSummary,
    build_individual_metrics,
    build_project_health,
    build_team_metrics,
    build_trends,
    build_workload_metrics,
)

from .config import FETCH_MAX_WORKERS, JIRA_FETCH_BASE_FIELDS
from .errors import FetchError, StaleResultError
from .jira_client import JiraAPI
from .mappers import (
    issues_to_records,
    map_assignments,
    map_incident,
    map_shift,
    map_team_members,
    map_user,
    map_work_log,
    teams_by_email,
)
from .models import FilterSpec, RecordSources
from .store_client import DataStoreAPI

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]

INCIDENTS = "incidents"
TEAMS = "teams"
INDIVIDUALS = "individuals"
WORKLOAD = "workload"
PROJECT_HEALTH = "project_health"
TRENDS = "trends"
JIRA = "jira"

# Raw sources each dashboard needs.
_NEEDS: dict[str, tuple[str, ...]] = {
    INCIDENTS: ("incidents", "projects"),
    TEAMS: ("work_logs", "teams"),
    INDIVIDUALS: ("work_logs", "teams", "users"),
    WORKLOAD: ("work_logs", "teams", "users", "shifts"),
    PROJECT_HEALTH: ("work_logs", "teams", "projects", "team_project_assignments"),
    TRENDS: ("work_logs", "teams"),
    JIRA: ("jira_issues",),
}


class RequestGenerations:
    """Monotonic refresh tokens per dashboard.

    Each refresh takes a new token with ``next``; a result computed under a
    token older than the dashboard's latest one is stale and must be dropped.
    """

    def __init__(self):
        self._latest: dict[str, int] = {}
        self._lock = threading.Lock()

    def next(self, dashboard: str) -> int:
        with self._lock:
            generation = self._latest.get(dashboard, 0) + 1
            self._latest[dashboard] = generation
            return generation

    def latest(self, dashboard: str) -> int:
        with self._lock:
            return self._latest.get(dashboard, 0)

    def is_current(self, dashboard: str, generation: int) -> bool:
        return generation >= self.latest(dashboard)

    def check(self, dashboard: str, generation: int) -> None:
        latest = self.latest(dashboard)
        if generation < latest:
            raise StaleResultError(dashboard, generation, latest)


def jira_jql(project_keys: Iterable[str], spec: FilterSpec | None = None) -> str:
    """JQL for issues in ``project_keys`` created inside the filter's date range.

    The end date is made exclusive by adding one day, so the picker stays
    inclusive.

    >>> jira_jql(["OPS"])
    'project in (OPS) ORDER BY updated DESC'
    """
    keys = sorted({str(k).strip() for k in project_keys if str(k).strip()})
    if not keys:
        raise ValueError("at least one Jira project key is required")
    clauses = [f"project in ({', '.join(keys)})"]
    if spec is not None and spec.date_range is not None:
        end_plus = spec.date_range.end + timedelta(days=1)
        clauses.append(f"created >= '{spec.date_range.start:%Y-%m-%d}'")
        clauses.append(f"created < '{end_plus:%Y-%m-%d}'")
    return " AND ".join(clauses) + " ORDER BY updated DESC"


class DashboardService:
    def __init__(
        self,
        store: DataStoreAPI | None = None,
        jira: JiraAPI | None = None,
        *,
        generations: RequestGenerations | None = None,
        max_workers: int = FETCH_MAX_WORKERS,
    ):
        self.store = store
        self.jira = jira
        self.generations = generations or RequestGenerations()
        self.max_workers = max_workers

    # ------------------ Fetch Methods ------------------
    def _loader(self, name: str, spec: FilterSpec | None, jira_keys: Sequence[str]) -> Callable[[], list]:
        if name == "jira_issues":
            if self.jira is None:
                raise FetchError("Jira is not configured")
            jql = jira_jql(jira_keys, spec)
            return lambda: self.jira.search_enhanced(jql, fields=list(JIRA_FETCH_BASE_FIELDS))
        if self.store is None:
            raise FetchError("Data store is not configured")
        loaders: dict[str, Callable[[], list]] = {
            "incidents": lambda: self.store.incidents(spec),
            "work_logs": lambda: self.store.work_logs(spec),
            "teams": self.store.teams,
            "users": self.store.users,
            "shifts": lambda: self.store.shifts(spec),
            "projects": self.store.projects,
            "team_project_assignments": self.store.team_project_assignments,
            "jira_user_mappings": self.store.jira_user_mappings,
        }
        return loaders[name]

    def fetch_raw(
        self,
        names: Sequence[str],
        spec: FilterSpec | None = None,
        *,
        jira_keys: Sequence[str] = (),
        progress: ProgressCallback | None = None,
    ) -> dict[str, list[dict[str, Any]]]:
        """Fetch the named raw sources concurrently; the first failure is raised."""
        tasks = {name: self._loader(name, spec, jira_keys) for name in dict.fromkeys(names)}
        out: dict[str, list[dict[str, Any]]] = {}
        if progress:
            progress("Loading data", 0, len(tasks))
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {pool.submit(task): name for name, task in tasks.items()}
            for fut in as_completed(futures):
                name = futures[fut]
                try:
                    out[name] = fut.result()
                except FetchError:
                    for other in futures:
                        other.cancel()
                    logger.warning("Fetching %s failed", name)
                    raise
                logger.debug("Fetched %s: %s rows", name, len(out[name]))
                if progress:
                    progress(f"Loaded {name.replace('_', ' ')}", len(out), len(tasks))
        return out

    def fetch_sources(
        self,
        names: Sequence[str],
        spec: FilterSpec | None = None,
        *,
        jira_keys: Sequence[str] = (),
        progress: ProgressCallback | None = None,
    ) -> RecordSources:
        raw = self.fetch_raw(names, spec, jira_keys=jira_keys, progress=progress)
        return map_sources(raw)

    def filter_options(self) -> dict[str, list[str]]:
        """Team, project and user choices for the sidebar filters."""
        raw = self.fetch_raw(["teams", "projects", "users"])
        return {
            "teams": sorted({t["name"] for t in raw["teams"] if t.get("name")}),
            "projects": sorted({p["name"] for p in raw["projects"] if p.get("name")}),
            "users": sorted({u["email"] for u in raw["users"] if u.get("email")}),
        }

    # ------------------ Dashboards ------------------
    def _run(
        self,
        dashboard: str,
        spec: FilterSpec | None,
        compute: Callable[[RecordSources], Any],
        *,
        needs: Sequence[str] | None = None,
        jira_keys: Sequence[str] = (),
        progress: ProgressCallback | None = None,
    ):
        generation = self.generations.next(dashboard)
        sources = self.fetch_sources(needs or _NEEDS[dashboard], spec, jira_keys=jira_keys, progress=progress)
        if progress:
            progress("Calculating metrics", None, None)
        result = compute(sources)
        try:
            self.generations.check(dashboard, generation)
        except StaleResultError as exc:
            logger.debug("Discarding stale result: %s", exc)
            return None
        return result

    def incident_dashboard(self, spec: FilterSpec | None = None, **kw) -> IncidentMetrics | None:
        return self._run(INCIDENTS, spec, lambda s: build_incident_metrics(s.incidents, spec), **kw)

    def team_dashboard(self, spec: FilterSpec | None = None, **kw) -> list[TeamMetrics] | None:
        return self._run(TEAMS, spec, lambda s: build_team_metrics(s.work_logs, s.team_members, spec), **kw)

    def individual_dashboard(self, spec: FilterSpec | None = None, **kw) -> list[IndividualMetrics] | None:
        return self._run(INDIVIDUALS, spec, lambda s: build_individual_metrics(s.work_logs, s.users, spec), **kw)

    def workload_dashboard(self, spec: FilterSpec | None = None, **kw) -> WorkloadSummary | None:
        return self._run(
            WORKLOAD,
            spec,
            lambda s: build_workload_metrics(s.work_logs, s.users, s.shifts, spec),
            **kw,
        )

    def project_health_dashboard(self, spec: FilterSpec | None = None, **kw) -> ProjectHealthSummary | None:
        return self._run(
            PROJECT_HEALTH,
            spec,
            lambda s: build_project_health(s.work_logs, s.projects, s.team_project_assignments, s.team_members, spec),
            **kw,
        )

    def trends_dashboard(self, spec: FilterSpec | None = None, **kw):
        return self._run(TRENDS, spec, lambda s: build_trends(s.work_logs, s.team_members, spec), **kw)

    def jira_dashboard(
        self,
        project_keys: Sequence[str],
        spec: FilterSpec | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> JiraOverview | None:
        return self._run(
            JIRA,
            spec,
            lambda s: build_jira_overview(s.jira_issues, s.jira_user_mappings, spec),
            jira_keys=project_keys,
            needs=_NEEDS[JIRA] + ("jira_user_mappings",) if self.store is not None else None,
            progress=progress,
        )


def map_sources(raw: dict[str, list[dict[str, Any]]]) -> RecordSources:
    """Turn raw store rows and Jira JSON into flat dashboard records."""
    members = map_team_members(raw.get("teams", []))
    team_lookup = teams_by_email(members)
    project_names = {p.get("id"): p.get("name") for p in raw.get("projects", []) if p.get("id") is not None}
    return RecordSources(
        incidents=[map_incident(r, project_names) for r in raw.get("incidents", [])],
        work_logs=[map_work_log(r, team_lookup) for r in raw.get("work_logs", [])],
        users=[map_user(r) for r in raw.get("users", [])],
        team_members=members,
        shifts=[map_shift(r) for r in raw.get("shifts", [])],
        projects=list(raw.get("projects", [])),
        team_project_assignments=map_assignments(
            raw.get("team_project_assignments", []), raw.get("teams"), raw.get("projects")
        ),
        jira_issues=issues_to_records(raw.get("jira_issues", [])),
        jira_user_mappings=list(raw.get("jira_user_mappings", [])),
    )
