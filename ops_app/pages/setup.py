"""Connection setup page: data-store and Jira credentials."""

from __future__ import annotations

import streamlit as st

from ops_app.app import register_page
from ops_app.core.errors import FetchError
from ops_app.features.connection import ConnectionSettings, build_service, settings_from_secrets
from ops_app.features.filters import OPTIONS_KEY, SERVICE_KEY


@register_page("Setup / Connection")
def setup_page():
    st.title("Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")
    secrets = settings_from_secrets(st.secrets)

    st.subheader("Data store")
    store_url = st.text_input("REST URL", value=st.session_state.get("store_url") or secrets.store_url)
    store_key = st.text_input("API key", type="password", value=secrets.store_key)

    st.subheader("Jira (optional)")
    jira_server = st.text_input("Jira Server URL", value=st.session_state.get("jira_server") or secrets.jira_server)
    jira_email = st.text_input("Email / Username", value=st.session_state.get("jira_email") or secrets.jira_email)
    jira_token = st.text_input("API Token", type="password", value=secrets.jira_token)
    ttl = st.number_input("Jira cache TTL (seconds)", min_value=60, max_value=3600, value=300)

    if st.button("Initialize Connection", type="primary"):
        settings = ConnectionSettings(store_url, store_key, jira_server, jira_email, jira_token)
        if not (settings.has_store or settings.has_jira):
            st.error("Provide data-store or Jira credentials.")
            return
        try:
            service = build_service(settings)
        except FetchError as exc:
            st.error(f"Failed to initialize clients: {exc}")
            return
        if service.jira is not None:
            service.jira._cache_ttl = float(ttl)
        st.session_state["store_url"] = store_url
        st.session_state["jira_server"] = jira_server
        st.session_state["jira_email"] = jira_email
        st.session_state[SERVICE_KEY] = service
        st.session_state.pop(OPTIONS_KEY, None)
        st.session_state.pop("jira_project_choices", None)
        st.success("Connection initialized.")

    service = st.session_state.get(SERVICE_KEY)
    if service is not None:
        st.info(
            f"Service ready. Data store: {'yes' if service.store else 'no'}; "
            f"Jira: {'yes' if service.jira else 'no'}."
        )
