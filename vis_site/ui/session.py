"""
Session state helpers for the Streamlit UI.

One AdminSessionStore and one chat conversation live in each browser
session's `st.session_state`. The SQLite storage file is shared by the server
process; the store re-reads it before every write.
"""

from __future__ import annotations

import uuid
from typing import Optional

import streamlit as st

from vis_site.admin_store import AdminSessionStore
from vis_site.chat_client import StreamingChatClient
from vis_site.config import settings
from vis_site.dashboard import AdminDashboard
from vis_site.exceptions import MissingAPIKeyError
from vis_site.logging_config import LogContext, get_logger
from vis_site.remote_store import RemoteStore
from vis_site.storage import SQLiteLocalStorage

logger = get_logger(__name__)


@st.cache_resource(show_spinner=False)
def get_local_storage() -> SQLiteLocalStorage:
    return SQLiteLocalStorage(settings.local_storage_path)


def init_session_state() -> None:
    if "_session_id" not in st.session_state:
        st.session_state["_session_id"] = str(uuid.uuid4())
    if "_admin_store" not in st.session_state:
        st.session_state["_admin_store"] = AdminSessionStore(get_local_storage())
    if "_chat_client" not in st.session_state:
        start_new_conversation()
    LogContext.set_session_id(st.session_state["_session_id"])


def get_session_id() -> str:
    return st.session_state.get("_session_id", "default")


def get_admin_store() -> AdminSessionStore:
    return st.session_state["_admin_store"]


def is_admin() -> bool:
    store = st.session_state.get("_admin_store")
    return bool(store and store.is_admin)


def get_chat_client() -> Optional[StreamingChatClient]:
    """None when the hosted backend key is missing; see `get_config_error`."""
    return st.session_state.get("_chat_client")


def get_config_error() -> Optional[str]:
    return st.session_state.get("_config_error")


def start_new_conversation() -> Optional[StreamingChatClient]:
    """Fresh conversation, used on first load and when the assistant page is re-entered."""
    try:
        client = StreamingChatClient.from_settings(settings)
    except MissingAPIKeyError as e:
        logger.error("Chat assistant disabled: %s", e.message)
        st.session_state["_config_error"] = e.message
        client = None
    st.session_state["_chat_client"] = client
    return client


def get_dashboard() -> Optional[AdminDashboard]:
    """Remote dashboard service, or None (with the reason stored) when misconfigured."""
    try:
        return AdminDashboard(RemoteStore.from_settings(settings))
    except MissingAPIKeyError as e:
        st.session_state["_config_error"] = e.message
        return None


def track_page(page: str) -> bool:
    """Record the current page; True when it differs from the previous run's page."""
    previous = st.session_state.get("_current_page")
    st.session_state["_current_page"] = page
    return previous != page
