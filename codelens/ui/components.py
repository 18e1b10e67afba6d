"""Shared UI components for codelens Streamlit pages."""

from __future__ import annotations

import streamlit as st

from codelens.assistant.models import AnalysisResult, ExecutionResult
from codelens.report import build_diff, confidence_badge, kind_badge
from codelens.session.controller import StatusKind, StatusMessage

STATUS_STYLES = {
    StatusKind.DEMO: "warning",
    StatusKind.LOW_CONFIDENCE: "warning",
    StatusKind.RATE_LIMITED: "warning",
    StatusKind.ERROR: "error",
    StatusKind.SUCCESS: "success",
}

# Streamlit's code highlighter names.
HIGHLIGHT_LANGUAGES = {
    "R": "r",
    "Python": "python",
    "C++": "cpp",
    "JavaScript": "javascript",
    "Java": "java",
}


def status_style(kind: StatusKind) -> str:
    """Name of the st.* call used to show a status banner."""
    return STATUS_STYLES.get(kind, "info")


def highlight_language(language: str) -> str | None:
    return HIGHLIGHT_LANGUAGES.get(language)


def render_status(status: StatusMessage | None) -> None:
    if status is None:
        return
    getattr(st, status_style(status.kind))(status.text)


def render_analysis(result: AnalysisResult, code: str, language: str, show_reasoning: bool) -> None:
    """Render the errors, fix, explanation and diagram of one analysis."""
    if result.is_mock:
        st.caption(":orange[DEMO MODE]")

    st.subheader("Errors")
    if not result.errors:
        st.success("No errors found.")
    for e in result.errors:
        with st.expander(f"{kind_badge(e.kind)} line {e.line} {confidence_badge(e.confidence)}", expanded=True):
            st.markdown(e.root_cause)
            st.caption(f"Confidence: {e.confidence:.0%}")
    if result.error_analysis and result.error_analysis.short_overlay:
        st.info(result.error_analysis.short_overlay)
    st.caption(f"Concept: **{result.concept_label}**")

    if result.correction:
        st.subheader("Fix")
        st.markdown(result.correction.patch_summary)
        tab_fixed, tab_diff = st.tabs(["Corrected code", "Diff"])
        with tab_fixed:
            st.code(result.correction.corrected_code, language=highlight_language(language))
        with tab_diff:
            diff = build_diff(code, result.correction.corrected_code)
            st.code(diff or "No changes.", language="diff")

    if result.explanation:
        st.subheader("Explanation")
        st.markdown(result.explanation.text)

    if show_reasoning and result.reasoning_steps:
        with st.expander("How this was found"):
            for i, step in enumerate(result.reasoning_steps, 1):
                st.markdown(f"{i}. {step}")

    if result.flow_diagram:
        st.subheader("Flow")
        st.code(result.flow_diagram.ascii, language=None)
        if result.flow_diagram.caption:
            st.caption(result.flow_diagram.caption)

    if result.follow_up_suggestion:
        st.markdown(f"**Next step:** {result.follow_up_suggestion}")


def render_execution(result: ExecutionResult, detailed: bool) -> None:
    if result.is_mock:
        st.caption(":orange[DEMO MODE] Tests were not simulated.")
    passed = sum(1 for r in result.test_results if r.status == "pass")
    st.metric("Passed", f"{passed}/{len(result.test_results)}")
    for r in result.test_results:
        icon = "✅" if r.status == "pass" else "❌"
        st.markdown(f"{icon} `{r.id}` output `{r.output}` expected `{r.expected}`")
    if detailed:
        if result.stdout:
            st.text_area("stdout", result.stdout, disabled=True)
        if result.stderr:
            st.text_area("stderr", result.stderr, disabled=True)
