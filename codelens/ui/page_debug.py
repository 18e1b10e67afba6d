"""Debug page: paste or upload code, analyze, fix, test and practice."""

from __future__ import annotations

import streamlit as st

from codelens.session.controller import DebugSession
from codelens.ui.components import render_analysis, render_execution, render_status
from codelens.report import format_practice

IMAGE_TYPES = ["png", "jpg", "jpeg", "webp", "gif"]


def render(session: DebugSession) -> None:
    """Render the debug page."""
    st.header("Debug")
    if session.math_mode:
        st.caption("Math mode: the input looks like an arithmetic problem.")

    render_status(session.status)
    if session.status is not None and st.button("Dismiss", key="debug_dismiss"):
        session.dismiss_status()
        st.rerun()

    upload = st.file_uploader("Screenshot of code", type=IMAGE_TYPES, key="debug_upload")
    if upload is not None and st.button("Extract code", key="debug_extract"):
        with st.spinner("Reading the image..."):
            session.extract_from_image(upload.getvalue(), upload.type or "image/png")
        st.rerun()

    code = st.text_area("Code", value=session.code, height=260, key="debug_code")
    if code != session.code:
        session.code = code
        session.is_example = False

    col1, col2 = st.columns([1, 1])
    with col1:
        if st.button("Analyze", type="primary", disabled=not session.code.strip()):
            with st.spinner("Analyzing..."):
                session.analyze()
            st.rerun()
    with col2:
        if st.button("Load example"):
            session.load_example()
            st.rerun()

    if session.is_example:
        st.caption(f"Example loaded for {session.language} ({session.mode}).")

    if session.analysis is None:
        return

    st.divider()
    render_analysis(
        session.analysis,
        session.analyzed_code,
        session.language,
        session.preferences.show_reasoning_steps,
    )

    if session.analysis.correction:
        st.subheader("Tests")
        if st.button("Run tests", key="debug_run_tests"):
            with st.spinner("Simulating tests..."):
                session.run_tests()
            st.rerun()
        if session.execution is not None:
            render_execution(session.execution, session.preferences.show_detailed_traces)

    st.divider()
    _render_practice(session)


def _render_practice(session: DebugSession) -> None:
    label = "Hide practice" if session.practice_expanded else "Practice this concept"
    if st.button(label, key="practice_toggle"):
        with st.spinner("Preparing a problem..."):
            session.toggle_practice()
        st.rerun()

    if not session.practice_expanded:
        return

    problem = session.practice.first if session.practice else None
    if problem is None:
        render_status(session.practice_feedback)
        return

    st.subheader(f"Practice #{session.practice_count}")
    if session.practice.is_mock:
        st.caption(":orange[DEMO MODE]")
    st.markdown(problem.prompt)
    if problem.hint:
        with st.expander("Hint"):
            st.markdown(problem.hint)

    answer = st.text_area("Your answer", key=f"practice_answer_{session.practice_count}")
    col1, col2 = st.columns([1, 1])
    with col1:
        if st.button("Check", key="practice_check"):
            session.check_practice(answer)
    with col2:
        if st.button("New problem", key="practice_new"):
            with st.spinner("Preparing a new problem..."):
                session.regenerate_practice()
            st.rerun()

    render_status(session.practice_feedback)
    with st.expander("Solution"):
        st.text(format_practice(problem, show_solution=True))
