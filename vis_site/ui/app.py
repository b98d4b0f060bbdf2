"""
Streamlit UI entrypoint.
"""

from __future__ import annotations

import streamlit as st

from vis_site.config import settings
from vis_site.logging_config import configure_logging, get_logger
from vis_site.ui.pages import (
    render_admin_gate,
    render_admissions_page,
    render_assistant_page,
    render_contact_page,
    render_dashboard_page,
    render_local_admin_page,
    render_parents_page,
    render_rules_page,
)
from vis_site.ui.session import init_session_state, is_admin, start_new_conversation, track_page

logger = get_logger(__name__)

PAGES = {
    "VIS-AI": render_assistant_page,
    "Admissions": render_admissions_page,
    "Contact": render_contact_page,
    "Rules": render_rules_page,
    "Parents": render_parents_page,
}


def main() -> None:
    st.set_page_config(
        page_title=settings.site_name,
        page_icon="🏫",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    configure_logging(log_format="console" if settings.debug_mode else None)
    init_session_state()

    pages = dict(PAGES)
    if is_admin():
        pages["Admin Dashboard"] = render_dashboard_page
        pages["Local Submissions"] = render_local_admin_page

    page = st.sidebar.radio("Go to", list(pages))
    render_admin_gate()

    # Leaving and re-entering the assistant starts a new conversation.
    if track_page(page) and page == "VIS-AI":
        start_new_conversation()

    pages[page]()


if __name__ == "__main__":
    main()
