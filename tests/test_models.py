"""Tests for codelens.assistant.models."""

from __future__ import annotations

import dataclasses
import json

import pytest

from codelens.assistant.models import (
    AnalysisResult,
    CodeExtraction,
    Correction,
    ErrorAnalysis,
    ErrorDetail,
    ExecutionResult,
    ExtractedLine,
    FlowDiagram,
    PracticeResponse,
    TestCase,
    TestResult,
)


class TestCodeExtraction:
    def test_low_confidence_threshold(self):
        assert CodeExtraction("python", "x", confidence=0.59).is_low_confidence
        assert not CodeExtraction("python", "x", confidence=0.6).is_low_confidence

    def test_to_dict(self):
        data = CodeExtraction("r", "a", [ExtractedLine(1, "a")], 0.9).to_dict()
        assert data["type"] == "code_extraction"
        assert data["lines"] == [{"n": 1, "text": "a"}]
        assert data["isMock"] is False


class TestAnalysisResult:
    def test_frozen(self):
        result = AnalysisResult()
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.concept_label = "x"

    def test_errors_without_analysis(self):
        assert AnalysisResult().errors == []

    def test_to_dict_omits_missing_sections(self):
        data = AnalysisResult().to_dict()
        assert set(data) == {"conceptLabel", "isMock"}

    def test_to_json(self):
        result = AnalysisResult(
            error_analysis=ErrorAnalysis([ErrorDetail(2, "logic", "off by one", 0.7)], "loop bound"),
            correction=Correction("fixed", "use <", [TestCase("t1", "3", "6")]),
            reasoning_steps=["a"],
            follow_up_suggestion="next",
            flow_diagram=FlowDiagram("[a] -> [b]"),
            concept_label="index out of bounds / off-by-one",
        )
        parsed = json.loads(result.to_json())
        assert parsed["errorAnalysis"]["errors"][0]["root_cause"] == "off by one"
        assert parsed["correction"]["tests"][0]["id"] == "t1"
        assert "fixed_lines" not in parsed["correction"]
        assert parsed["flowDiagram"] == {"ascii": "[a] -> [b]", "caption": ""}
        assert parsed["conceptLabel"] == "index out of bounds / off-by-one"


class TestPracticeResponse:
    def test_first_empty(self):
        assert PracticeResponse().first is None


class TestExecutionResult:
    def test_all_passed(self):
        passing = ExecutionResult([TestResult("t1", "pass")])
        failing = ExecutionResult([TestResult("t1", "pass"), TestResult("t2", "fail")])
        assert passing.all_passed
        assert not failing.all_passed
