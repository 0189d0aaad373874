"""Streamlit navigation for the dashboard pages.

Pages register themselves with ``@register_page(label)`` when their module is
imported; ``main`` renders the sidebar picker and calls the chosen page.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import streamlit as st

from ops_app.features.filters import SERVICE_KEY

SETUP_PAGE = "Setup / Connection"

PAGES: dict[str, Callable[[], None]] = {}

PREFERRED_ORDER = [
    "Incidents",
    "Team Workload",
    "Project Health",
    "Jira Projects",
    SETUP_PAGE,
]


def register_page(label: str):
    def register(render: Callable[[], None]) -> Callable[[], None]:
        PAGES[label] = render
        return render

    return register


def ordered_pages(labels: Iterable[str]) -> list[str]:
    """Preferred pages first, then the rest alphabetically."""
    labels = list(labels)
    ordered = [name for name in PREFERRED_ORDER if name in labels]
    trailing = sorted(name for name in labels if name not in PREFERRED_ORDER)
    return ordered + trailing


def _landing_index(pages: list[str]) -> int:
    # Open on Setup until a service has been connected.
    if SETUP_PAGE in pages and SERVICE_KEY not in st.session_state:
        return pages.index(SETUP_PAGE)
    return 0


def main():
    st.sidebar.title("Ops Analytics")
    pages = ordered_pages(PAGES)
    if not pages:
        st.info("No dashboard pages are installed.")
        return
    choice = st.sidebar.radio("Dashboard", pages, index=_landing_index(pages))
    PAGES[choice]()


if __name__ == "__main__":
    main()
