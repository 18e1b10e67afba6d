"""History page: the last few analyses."""

from __future__ import annotations

import streamlit as st

from codelens.session.controller import DebugSession


def render(session: DebugSession) -> None:
    st.header("History")
    st.caption("The five most recent analyses. Open one to view it on the Debug page.")

    if not session.history:
        st.info("No history yet. Analyze some code on the Debug page.")
        return

    if st.button("Clear history", key="history_clear"):
        session.clear_history()
        st.rerun()

    for i, entry in enumerate(session.history):
        badge = " (demo)" if entry.result.is_mock else ""
        title = f"{entry.created_at:%Y-%m-%d %H:%M} · {entry.result.concept_label}{badge}"
        with st.expander(title):
            st.code(entry.code)
            st.caption(f"{len(entry.result.errors)} error(s)")
            col1, col2 = st.columns([1, 1])
            with col1:
                if st.button("Open", key=f"history_open_{entry.id}"):
                    session.select_history(i)
                    st.session_state.next_page = "Debug"
                    st.rerun()
            with col2:
                if st.button("Delete", key=f"history_delete_{entry.id}"):
                    session.delete_history(i)
                    st.rerun()
