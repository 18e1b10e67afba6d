"""Tests for codelens.session.controller: UI state transitions with a mocked assistant."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from codelens.assistant.errors import OperationFailedError, PracticeUnavailableError, RateLimitedError
from codelens.assistant.fallback import mock_analysis, mock_execution, mock_extraction, mock_practice
from codelens.assistant.models import (
    AUTO_DETECT,
    AnalysisResult,
    CodeExtraction,
    Correction,
    ErrorAnalysis,
    ErrorDetail,
    Explanation,
    PracticeProblem,
    PracticeResponse,
    TestCase,
)
from codelens.assistant.orchestrator import DebugAssistant
from codelens.session.controller import (
    DEMO_ANALYSIS,
    DEMO_EXTRACTION,
    LOW_CONFIDENCE,
    DebugSession,
    StatusKind,
    build_practice_context,
    check_practice_answer,
    example_snippet,
    is_math_mode,
)
from codelens.storage.history import MAX_HISTORY, Preferences


def _analysis(root_cause: str = "object 'b' not found") -> AnalysisResult:
    return AnalysisResult(
        error_analysis=ErrorAnalysis([ErrorDetail(2, "runtime", root_cause)], "b is missing"),
        correction=Correction("a <- 3\nb <- 1\nprint(b)", "define b", [TestCase("t1", "", "1")]),
        explanation=Explanation("b was never assigned."),
        concept_label="undefined variable or function",
    )


def _practice(prompt: str = "Fix print(x)") -> PracticeResponse:
    return PracticeResponse([PracticeProblem("p1", prompt, "hint", "x <- 1")])


@pytest.fixture
def fake_assistant() -> MagicMock:
    assistant = MagicMock(spec=DebugAssistant)
    assistant.analyze.return_value = _analysis()
    assistant.generate_practice.return_value = _practice()
    return assistant


@pytest.fixture
def session(fake_assistant) -> DebugSession:
    return DebugSession(assistant=fake_assistant)


class TestBuildPracticeContext:
    def test_includes_errors_summary_and_input(self):
        context = build_practice_context(_analysis(), "a <- 3\nprint(b)")
        assert "Identified Errors: object 'b' not found." in context
        assert "Analysis Summary: b was never assigned." in context
        assert context.endswith("Original Input: a <- 3\nprint(b)")

    def test_truncates_long_input(self):
        context = build_practice_context(_analysis(), "x" * 1000)
        assert context.endswith("Original Input: " + "x" * 300)

    def test_overlay_used_without_explanation(self):
        analysis = AnalysisResult(error_analysis=ErrorAnalysis([], "nothing wrong"))
        assert "Analysis Summary: nothing wrong." in build_practice_context(analysis, "x")


class TestIsMathMode:
    def test_arithmetic(self):
        assert is_math_mode("2 + 2 = 5", AUTO_DETECT)

    def test_code_is_not_math(self):
        assert not is_math_mode("x = 1 + 2; print(x)", AUTO_DETECT)

    def test_explicit_language_disables(self):
        assert not is_math_mode("2 + 2 = 5", "Python")

    def test_words_only(self):
        assert not is_math_mode("hello world", AUTO_DETECT)


class TestExampleSnippet:
    def test_auto_detect_uses_r(self):
        language, snippet = example_snippet(AUTO_DETECT, "beginner")
        assert language == "R"
        assert "print(b)" in snippet

    def test_advanced(self):
        language, snippet = example_snippet("Python", "advanced")
        assert language == "Python"
        assert "factorial" in snippet

    def test_unknown_language(self):
        assert "Unknown language" in example_snippet("Cobol", "beginner")[1]


class TestCheckPracticeAnswer:
    def test_empty(self):
        assert check_practice_answer("   ").kind == StatusKind.ERROR

    def test_short_words(self):
        assert check_practice_answer("abc").kind == StatusKind.ERROR

    def test_numeric(self):
        assert check_practice_answer("4").kind == StatusKind.SUCCESS
        assert check_practice_answer("-2.5").kind == StatusKind.SUCCESS

    def test_sentence(self):
        assert check_practice_answer("assign x first").kind == StatusKind.SUCCESS


class TestAnalyze:
    def test_success_sets_result_and_practice(self, session, fake_assistant):
        session.code = "a <- 3\nprint(b)"
        session.analyze()
        assert session.analysis == _analysis()
        assert session.analyzed_code == "a <- 3\nprint(b)"
        assert session.status is None
        assert session.practice_expanded
        assert session.practice == _practice()
        assert session.practice_count == 1
        fake_assistant.analyze.assert_called_once_with("a <- 3\nprint(b)", AUTO_DETECT, "beginner")
        context = fake_assistant.generate_practice.call_args.args[0]
        assert "Original Input: a <- 3" in context

    def test_blank_input_is_ignored(self, session, fake_assistant):
        session.code = "   \n"
        session.analyze()
        fake_assistant.analyze.assert_not_called()

    def test_collapsed_practice_is_not_loaded(self, session, fake_assistant):
        session.update_preferences(collapse_practice=True)
        session.code = "x"
        session.analyze()
        assert not session.practice_expanded
        fake_assistant.generate_practice.assert_not_called()

    def test_mock_result_sets_demo_status(self, session, fake_assistant):
        fake_assistant.analyze.return_value = mock_analysis("x")
        session.code = "x"
        session.analyze()
        assert session.status == DEMO_ANALYSIS

    def test_failure_keeps_previous_result(self, session, fake_assistant):
        session.code = "x"
        session.analyze()
        previous = session.analysis

        fake_assistant.analyze.side_effect = OperationFailedError("Failed to analyze code.")
        session.code = "y"
        session.analyze()
        assert session.analysis is previous
        assert session.status.kind == StatusKind.ERROR
        assert session.status.text == "Failed to analyze code."

    def test_rate_limit_status(self, session, fake_assistant):
        fake_assistant.analyze.side_effect = RateLimitedError()
        session.code = "x"
        session.analyze()
        assert session.status.kind == StatusKind.RATE_LIMITED

    def test_clears_previous_test_run(self, session, fake_assistant):
        session.code = "x"
        session.analyze()
        session.execution = mock_execution([])
        session.analyze()
        assert session.execution is None

    def test_overlapping_call_is_ignored(self, session, fake_assistant):
        session._in_flight.add("analyze")
        session.code = "x"
        session.analyze()
        fake_assistant.analyze.assert_not_called()

    def test_retrigger_while_pending_keeps_first_result(self, session, fake_assistant):
        first = _analysis("first")

        def pending(code, language, mode):
            session.code = "second"
            session.analyze()
            return first

        fake_assistant.analyze.side_effect = pending
        session.code = "first"
        session.analyze()

        assert fake_assistant.analyze.call_count == 1
        assert session.analysis is first
        assert session.analyzed_code == "first"

    def test_in_flight_released_after_failure(self, session, fake_assistant):
        fake_assistant.analyze.side_effect = OperationFailedError("boom")
        session.code = "x"
        session.analyze()
        assert "analyze" not in session._in_flight


class TestHistory:
    def test_in_memory_history_is_capped(self, session):
        for i in range(MAX_HISTORY + 2):
            session.code = f"code {i}"
            session.analyze()
        assert len(session.history) == MAX_HISTORY
        assert session.history[0].code == f"code {MAX_HISTORY + 1}"

    def test_persisted_history(self, fake_assistant, store):
        session = DebugSession(assistant=fake_assistant, store=store)
        session.code = "print(b)"
        session.analyze()
        reloaded = DebugSession(assistant=fake_assistant, store=store)
        assert [e.code for e in reloaded.history] == ["print(b)"]

    def test_select_history(self, session, fake_assistant):
        session.code = "old code"
        session.analyze()
        fake_assistant.analyze.return_value = _analysis("type mismatch")
        session.code = "new code"
        session.analyze()

        session.select_history(1)
        assert session.code == "old code"
        assert session.analysis == _analysis()
        assert session.practice is None
        assert not session.practice_expanded

    def test_delete_and_clear(self, fake_assistant, store):
        session = DebugSession(assistant=fake_assistant, store=store)
        for code in ("a", "b", "c"):
            session.code = code
            session.analyze()
        session.delete_history(0)
        assert [e.code for e in session.history] == ["b", "a"]
        assert len(store.list()) == 2
        session.clear_history()
        assert session.history == []
        assert store.list() == []


class TestExtract:
    def test_sets_code_and_language(self, session, fake_assistant):
        fake_assistant.extract_code.return_value = CodeExtraction("python", "print(x)", confidence=0.9)
        session.extract_from_image(b"img", "image/png")
        assert session.code == "print(x)"
        assert session.language == "Python"
        assert session.status is None

    def test_low_confidence_warns(self, session, fake_assistant):
        fake_assistant.extract_code.return_value = CodeExtraction("unknown", "", confidence=0.2)
        session.extract_from_image(b"img", "image/png")
        assert session.status == LOW_CONFIDENCE
        assert session.language == AUTO_DETECT

    def test_mock_extraction(self, session, fake_assistant):
        fake_assistant.extract_code.return_value = mock_extraction()
        session.extract_from_image(b"img", "image/png")
        assert session.status == DEMO_EXTRACTION
        assert "calculate_average" in session.code

    def test_failure(self, session, fake_assistant):
        fake_assistant.extract_code.side_effect = OperationFailedError("Failed to extract code from image.")
        session.code = "keep me"
        session.extract_from_image(b"img", "image/png")
        assert session.code == "keep me"
        assert session.status.kind == StatusKind.ERROR


class TestRunTests:
    def test_runs_correction_tests(self, session, fake_assistant):
        fake_assistant.run_tests.return_value = mock_execution([TestCase("t1", "", "1")])
        session.code = "x"
        session.analyze()
        session.run_tests()
        fake_assistant.run_tests.assert_called_once_with("a <- 3\nb <- 1\nprint(b)", [TestCase("t1", "", "1")])
        assert session.execution.all_passed

    def test_without_analysis(self, session, fake_assistant):
        session.run_tests()
        fake_assistant.run_tests.assert_not_called()


class TestPractice:
    def test_regenerate_avoids_previous(self, session, fake_assistant):
        session.code = "x"
        session.analyze()
        fake_assistant.generate_practice.return_value = _practice("A different problem")
        session.regenerate_practice()
        assert fake_assistant.generate_practice.call_args.kwargs["previous_prompt"] == "Fix print(x)"
        assert session.practice.first.prompt == "A different problem"
        assert session.practice_count == 2

    def test_regenerate_failure_keeps_problem(self, session, fake_assistant):
        session.code = "x"
        session.analyze()
        fake_assistant.generate_practice.side_effect = PracticeUnavailableError()
        session.regenerate_practice()
        assert session.practice == _practice()
        assert session.practice_count == 1
        assert session.practice_feedback.text == "Could not generate a new problem."

    def test_toggle_loads_lazily(self, session, fake_assistant):
        session.update_preferences(collapse_practice=True)
        session.code = "x"
        session.analyze()
        session.toggle_practice()
        assert session.practice_expanded
        assert session.practice is not None
        session.toggle_practice()
        assert not session.practice_expanded
        assert fake_assistant.generate_practice.call_count == 1

    def test_mock_practice(self, session, fake_assistant):
        fake_assistant.generate_practice.return_value = mock_practice()
        session.code = "x"
        session.analyze()
        assert session.practice.is_mock

    def test_check_answer(self, session):
        assert session.check_practice("4").kind == StatusKind.SUCCESS
        assert session.practice_feedback.kind == StatusKind.SUCCESS


class TestSettings:
    def test_preferences_persist(self, fake_assistant, store):
        session = DebugSession(assistant=fake_assistant, store=store)
        session.update_preferences(language="Java", mode="advanced")
        assert store.get_preferences() == Preferences(language="Java", mode="advanced")

    def test_unknown_preference(self, session):
        with pytest.raises(AttributeError):
            session.update_preferences(theme="dark")

    def test_load_example(self, session):
        session.load_example()
        assert session.is_example
        assert session.language == "R"
        assert "print(b)" in session.code

    def test_editing_clears_example_flag_on_analyze(self, session):
        session.load_example()
        session.analyze()
        assert not session.is_example

    def test_dismiss_status(self, session, fake_assistant):
        fake_assistant.analyze.side_effect = RateLimitedError()
        session.code = "x"
        session.analyze()
        session.dismiss_status()
        assert session.status is None
