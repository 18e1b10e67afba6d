"""Contract types shared by the orchestrator, the session controller and the UIs.

Every payload is a frozen value object created fresh per request/response
cycle. ``to_dict`` produces the wire shape the model is asked to return, which
is also how results are persisted in the history store.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Literal

ExplanationMode = Literal["beginner", "advanced"]
ErrorKindLabel = Literal["syntax", "logic", "runtime"]
Grader = Literal["exact", "fuzzy"]
TestStatus = Literal["pass", "fail"]

AUTO_DETECT = "Auto-detect"
SUPPORTED_LANGUAGES = ["R", "Python", "C++", "JavaScript", "Java"]
EXPLANATION_MODES = ("beginner", "advanced")
ERROR_KINDS = ("syntax", "logic", "runtime")
GRADERS = ("exact", "fuzzy")
TEST_STATUSES = ("pass", "fail")

LOW_CONFIDENCE_THRESHOLD = 0.6
DEFAULT_CONCEPT_LABEL = "general logic error"


@dataclass(frozen=True)
class ExtractedLine:
    n: int  # 1-based
    text: str


@dataclass(frozen=True)
class CodeExtraction:
    language: str  # "python" | "java" | "cpp" | "js" | "r" | "unknown"
    text: str
    lines: list[ExtractedLine] = field(default_factory=list)
    confidence: float = 0.0
    is_mock: bool = False

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence < LOW_CONFIDENCE_THRESHOLD

    def to_dict(self) -> dict:
        return {
            "type": "code_extraction",
            "language": self.language,
            "text": self.text,
            "lines": [asdict(line) for line in self.lines],
            "confidence": self.confidence,
            "isMock": self.is_mock,
        }


@dataclass(frozen=True)
class ErrorDetail:
    line: int  # 1-based, points at a statement
    kind: ErrorKindLabel
    root_cause: str
    confidence: float = 1.0


@dataclass(frozen=True)
class ErrorAnalysis:
    errors: list[ErrorDetail] = field(default_factory=list)
    short_overlay: str = ""

    @property
    def is_clean(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "type": "error_analysis",
            "errors": [asdict(e) for e in self.errors],
            "short_overlay": self.short_overlay,
        }


@dataclass(frozen=True)
class TestCase:
    __test__ = False  # not a pytest class

    id: str
    input: str
    expected: str


@dataclass(frozen=True)
class Correction:
    corrected_code: str
    patch_summary: str
    tests: list[TestCase]
    fixed_lines: list[int] | None = None
    exec_safe: bool = False

    def to_dict(self) -> dict:
        data = {
            "type": "correction",
            "corrected_code": self.corrected_code,
            "patch_summary": self.patch_summary,
            "tests": [asdict(t) for t in self.tests],
            "exec_safe": self.exec_safe,
        }
        if self.fixed_lines is not None:
            data["fixed_lines"] = list(self.fixed_lines)
        return data


@dataclass(frozen=True)
class Explanation:
    text: str

    def to_dict(self) -> dict:
        return {"type": "explanation", "text": self.text}


@dataclass(frozen=True)
class FlowDiagram:
    ascii: str
    caption: str = ""


@dataclass(frozen=True)
class PracticeProblem:
    id: str
    prompt: str
    hint: str = ""
    solution: str = ""
    grader: Grader = "exact"


@dataclass(frozen=True)
class PracticeResponse:
    problems: list[PracticeProblem] = field(default_factory=list)
    is_mock: bool = False

    @property
    def first(self) -> PracticeProblem | None:
        return self.problems[0] if self.problems else None

    def to_dict(self) -> dict:
        return {
            "type": "practice",
            "problems": [asdict(p) for p in self.problems],
            "isMock": self.is_mock,
        }


@dataclass(frozen=True)
class TestResult:
    __test__ = False

    id: str
    status: TestStatus
    output: str = ""
    expected: str = ""


@dataclass(frozen=True)
class ExecutionResult:
    test_results: list[TestResult]
    stdout: str = ""
    stderr: str = ""
    is_mock: bool = False

    @property
    def all_passed(self) -> bool:
        return all(r.status == "pass" for r in self.test_results)

    def to_dict(self) -> dict:
        return {
            "type": "execution_result",
            "test_results": [asdict(r) for r in self.test_results],
            "stdout": self.stdout,
            "stderr": self.stderr,
            "isMock": self.is_mock,
        }


@dataclass(frozen=True)
class AnalysisResult:
    error_analysis: ErrorAnalysis | None = None
    correction: Correction | None = None
    explanation: Explanation | None = None
    reasoning_steps: list[str] | None = None
    follow_up_suggestion: str | None = None
    flow_diagram: FlowDiagram | None = None
    concept_label: str = DEFAULT_CONCEPT_LABEL
    is_mock: bool = False

    @property
    def errors(self) -> list[ErrorDetail]:
        return self.error_analysis.errors if self.error_analysis else []

    def to_dict(self) -> dict:
        data: dict = {"conceptLabel": self.concept_label, "isMock": self.is_mock}
        if self.error_analysis is not None:
            data["errorAnalysis"] = self.error_analysis.to_dict()
        if self.correction is not None:
            data["correction"] = self.correction.to_dict()
        if self.explanation is not None:
            data["explanation"] = self.explanation.to_dict()
        if self.reasoning_steps is not None:
            data["reasoningSteps"] = list(self.reasoning_steps)
        if self.follow_up_suggestion is not None:
            data["followUpSuggestion"] = self.follow_up_suggestion
        if self.flow_diagram is not None:
            data["flowDiagram"] = asdict(self.flow_diagram)
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
