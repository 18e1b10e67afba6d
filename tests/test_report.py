"""Tests for codelens.report and UI component helpers (pure logic, no Streamlit rendering)."""

from __future__ import annotations

from codelens.assistant.fallback import mock_analysis, mock_execution
from codelens.assistant.models import (
    AnalysisResult,
    ErrorAnalysis,
    ExecutionResult,
    PracticeProblem,
    TestCase,
    TestResult,
)
from codelens.report import (
    DEMO_BADGE,
    build_diff,
    confidence_badge,
    format_analysis,
    format_execution,
    format_practice,
    kind_badge,
)
from codelens.session.controller import StatusKind
from codelens.ui.components import highlight_language, status_style


class TestConfidenceBadge:
    def test_high(self):
        assert confidence_badge(0.95) == "\U0001f7e2"

    def test_medium(self):
        assert confidence_badge(0.6) == "\U0001f7e1"

    def test_low(self):
        assert confidence_badge(0.2) == "\U0001f534"


class TestKindBadge:
    def test_known(self):
        assert "RUNTIME" in kind_badge("runtime")

    def test_unknown(self):
        assert "OTHER" in kind_badge("other")


class TestBuildDiff:
    def test_changed_line(self):
        diff = build_diff("a <- 3\nprint(b)", "a <- 3\nb <- 1\nprint(b)")
        assert "--- original" in diff
        assert "+++ corrected" in diff
        assert "+b <- 1" in diff

    def test_identical(self):
        assert build_diff("x", "x") == ""


class TestFormatAnalysis:
    def test_mock_is_badged(self):
        text = format_analysis(mock_analysis("x"), "x")
        assert text.startswith(DEMO_BADGE)
        assert "Concept: API Quota Management" in text
        assert "Next step:" in text

    def test_clean_result(self):
        text = format_analysis(AnalysisResult(error_analysis=ErrorAnalysis([])))
        assert "No errors found." in text

    def test_reasoning_hidden(self):
        text = format_analysis(mock_analysis("x"), show_reasoning=False)
        assert "How this was found:" not in text

    def test_corrected_code_without_original(self):
        text = format_analysis(mock_analysis("x"))
        assert "# SIMULATED CORRECTION" in text


class TestFormatExecution:
    def test_results(self):
        result = ExecutionResult(
            [TestResult("t1", "pass", "6", "6"), TestResult("t2", "fail", "5", "6")],
            stderr="boom",
        )
        text = format_execution(result)
        assert "t1: PASS" in text
        assert "t2: FAIL" in text
        assert "stderr: boom" in text

    def test_mock(self):
        assert DEMO_BADGE in format_execution(mock_execution([TestCase("t1", "", "")]))


class TestFormatPractice:
    def test_solution_hidden_by_default(self):
        problem = PracticeProblem("p1", "What is 2 + 2?", "Add", "4")
        assert "Solution" not in format_practice(problem)
        assert "Solution: 4" in format_practice(problem, show_solution=True)


class TestStatusStyle:
    def test_error(self):
        assert status_style(StatusKind.ERROR) == "error"

    def test_demo_and_rate_limit_are_warnings(self):
        assert status_style(StatusKind.DEMO) == "warning"
        assert status_style(StatusKind.RATE_LIMITED) == "warning"

    def test_success(self):
        assert status_style(StatusKind.SUCCESS) == "success"


class TestHighlightLanguage:
    def test_known(self):
        assert highlight_language("C++") == "cpp"

    def test_auto_detect(self):
        assert highlight_language("Auto-detect") is None
