"""Agent activity timeline page."""

from __future__ import annotations

import json
from datetime import datetime

import streamlit as st

from codelens.activity import read_activity_log
from codelens.session.controller import DebugSession

TOOL_NAMES = [
    "All",
    "extract_code",
    "analyze_code",
    "generate_practice",
    "simulate_tests",
]

TOOL_COLORS = {
    "extract_code": "violet",
    "analyze_code": "blue",
    "generate_practice": "green",
    "simulate_tests": "orange",
}


def render(session: DebugSession) -> None:
    """Render the MCP tool call timeline."""
    st.header("Agent Activity")
    st.caption("Tool calls AI agents made to the codelens MCP server.")

    col1, col2 = st.columns(2)
    with col1:
        tool_filter = st.selectbox("Tool", TOOL_NAMES, key="activity_tool_filter")
    with col2:
        limit = st.slider("Entries", min_value=10, max_value=100, value=20, key="activity_limit")

    entries = read_activity_log(limit=limit, tool_name=tool_filter if tool_filter != "All" else None)
    if not entries:
        st.info("No activity recorded yet. Activity is logged when agents call codelens MCP tools.")
        return

    errors = sum(1 for e in entries if e.get("error"))
    mocks = sum(1 for e in entries if e.get("is_mock"))
    cols = st.columns(3)
    cols[0].metric("Tool Calls", len(entries))
    cols[1].metric("Errors", errors)
    cols[2].metric("Demo Mode", mocks)

    st.divider()
    for entry in entries:
        _render_entry(entry)


def _render_entry(entry: dict) -> None:
    ts = entry.get("timestamp", "")
    try:
        time_str = datetime.fromisoformat(ts).strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, TypeError):
        time_str = ts[:19] if ts else "unknown"

    tool_name = entry.get("tool_name", "unknown")
    color = TOOL_COLORS.get(tool_name, "gray")
    header = f"**{time_str}** · :{color}[{tool_name}] · {entry.get('duration_ms', 0)}ms"
    if entry.get("error"):
        header += " ❌"
    elif entry.get("is_mock"):
        header += " (demo)"

    with st.expander(header):
        if entry.get("error"):
            st.error(f"Error: {entry['error']}")
        if entry.get("arguments"):
            st.markdown("**Arguments:**")
            st.json(entry["arguments"])
        preview = entry.get("result_preview", "")
        if preview:
            st.markdown("**Result preview:**")
            try:
                st.json(json.loads(preview))
            except (json.JSONDecodeError, TypeError):
                st.code(preview, language="text")
