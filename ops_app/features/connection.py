"""Build the DashboardService from Streamlit secrets or Setup page input."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ops_app.core.jira_client import JiraAPI
from ops_app.core.service import DashboardService
from ops_app.core.store_client import DataStoreAPI

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConnectionSettings:
    store_url: str = ""
    store_key: str = ""
    jira_server: str = ""
    jira_email: str = ""
    jira_token: str = ""

    @property
    def has_store(self) -> bool:
        return bool(self.store_url and self.store_key)

    @property
    def has_jira(self) -> bool:
        return bool(self.jira_server and self.jira_email and self.jira_token)


def settings_from_secrets(secrets: Mapping) -> ConnectionSettings:
    """Read ``[store]`` and ``[jira]`` sections, falling back to top-level keys."""
    store = secrets.get("store", {}) or {}
    jira = secrets.get("jira", {}) or {}

    def pick(section: Mapping, *names: str) -> str:
        for name in names:
            value = section.get(name) or secrets.get(name)
            if value:
                return str(value)
        return ""

    return ConnectionSettings(
        store_url=pick(store, "STORE_URL", "SUPABASE_URL"),
        store_key=pick(store, "STORE_KEY", "SUPABASE_KEY"),
        jira_server=pick(jira, "JIRA_SERVER"),
        jira_email=pick(jira, "JIRA_EMAIL"),
        jira_token=pick(jira, "JIRA_API_TOKEN", "JIRA_TOKEN"),
    )


def build_service(settings: ConnectionSettings) -> DashboardService:
    """Clients for whichever backends are configured; FetchError if Jira rejects the connection."""
    store = DataStoreAPI(settings.store_url, settings.store_key) if settings.has_store else None
    jira = JiraAPI(settings.jira_server, settings.jira_email, settings.jira_token) if settings.has_jira else None
    logger.info("Dashboard service ready (store=%s, jira=%s)", store is not None, jira is not None)
    return DashboardService(store, jira)
