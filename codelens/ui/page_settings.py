"""Settings page: language, explanation depth and display preferences."""

from __future__ import annotations

import streamlit as st

from codelens.assistant.models import AUTO_DETECT, EXPLANATION_MODES, SUPPORTED_LANGUAGES
from codelens.config import Config
from codelens.session.controller import DebugSession

LANGUAGE_OPTIONS = [AUTO_DETECT, *SUPPORTED_LANGUAGES]


def render(session: DebugSession) -> None:
    st.header("Settings")

    config = Config.load()
    st.subheader("Current configuration")
    if config.anthropic_api_key:
        st.success("Anthropic API key: configured")
    else:
        st.warning("Anthropic API key: not set. Run `codelens init` or set ANTHROPIC_API_KEY.")
    st.caption(f"Model: {config.model} | Database: {config.db_path}")

    prefs = session.preferences
    with st.form("settings_form"):
        language = st.selectbox(
            "Language",
            LANGUAGE_OPTIONS,
            index=LANGUAGE_OPTIONS.index(prefs.language) if prefs.language in LANGUAGE_OPTIONS else 0,
        )
        mode = st.radio(
            "Explanations",
            EXPLANATION_MODES,
            index=EXPLANATION_MODES.index(prefs.mode) if prefs.mode in EXPLANATION_MODES else 0,
            horizontal=True,
        )
        collapse_practice = st.checkbox("Collapse practice after analysis", value=prefs.collapse_practice)
        show_reasoning_steps = st.checkbox("Show reasoning steps", value=prefs.show_reasoning_steps)
        show_detailed_traces = st.checkbox("Show stdout/stderr of test runs", value=prefs.show_detailed_traces)
        submitted = st.form_submit_button("Save")

    if submitted:
        session.update_preferences(
            language=language,
            mode=mode,
            collapse_practice=collapse_practice,
            show_reasoning_steps=show_reasoning_steps,
            show_detailed_traces=show_detailed_traces,
        )
        st.success("Settings saved")
