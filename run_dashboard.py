"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``ops_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from ops_app.app import main
from ops_app.core.config import SETTINGS
from ops_app.core.errors import FetchError
from ops_app.features.connection import build_service, settings_from_secrets
from ops_app.features.filters import SERVICE_KEY

logging.basicConfig(level=SETTINGS.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("ops_app")

st.set_page_config(layout="wide")


def _auto_init_service():
    """Initialize the dashboard service from Streamlit secrets if available."""
    if SERVICE_KEY in st.session_state:
        return
    settings = settings_from_secrets(st.secrets)
    if not (settings.has_store or settings.has_jira):
        st.sidebar.warning("Secrets not found. Please use the Setup page.")
        return
    st.sidebar.info("Secrets found, connecting...")
    try:
        st.session_state[SERVICE_KEY] = build_service(settings)
        st.session_state["jira_server"] = settings.jira_server
        st.sidebar.success("Connection ready.")
    except FetchError as exc:
        logger.warning("Automatic connection failed: %s", exc)
        st.sidebar.error(f"Connection failed: {exc}")


_auto_init_service()

PAGES_DIR = Path(__file__).parent / "ops_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"ops_app.pages.{py.stem}"
    try:
        import_module(mod_name)
    except ImportError as exc:  # pragma: no cover
        logger.error("Failed importing page %s: %s", mod_name, exc)

if __name__ == "__main__":
    main()
