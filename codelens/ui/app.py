"""Streamlit UI for codelens.

Four views:
1. Debug: paste or upload code, analyze, run tests, practice
2. History: the last five analyses
3. Settings: language, explanation depth, display options
4. Activity: MCP tool calls made by AI agents
"""

from __future__ import annotations

import streamlit as st

from codelens.assistant.orchestrator import DebugAssistant
from codelens.config import Config
from codelens.session.controller import DebugSession
from codelens.storage.db import get_connection
from codelens.storage.history import HistoryStore
from codelens.ui import page_activity, page_debug, page_history, page_settings

PAGES = {
    "Debug": page_debug.render,
    "History": page_history.render,
    "Settings": page_settings.render,
    "Activity": page_activity.render,
}


@st.cache_resource
def _get_connection():
    return get_connection(Config.load().db_path)


@st.cache_resource
def _get_assistant() -> DebugAssistant:
    return DebugAssistant.from_config(Config.load())


def get_session() -> DebugSession:
    if "session" not in st.session_state:
        st.session_state.session = DebugSession(
            assistant=_get_assistant(),
            store=HistoryStore(_get_connection()),
        )
    return st.session_state.session


def main() -> None:
    st.set_page_config(page_title="codelens", page_icon="🔎", layout="wide")
    st.title("codelens")
    st.caption("Find the bug, see the fix, practice the concept")

    session = get_session()
    if session.analysis is not None and session.analysis.is_mock:
        st.sidebar.warning("Demo Mode")

    # Pages may request navigation; apply it before the radio is drawn.
    if "next_page" in st.session_state:
        st.session_state.page = st.session_state.pop("next_page")
    page = st.sidebar.radio("Navigate", list(PAGES), key="page")
    PAGES[page](session)


if __name__ == "__main__":
    main()
