"""Turn raw model text into typed contract objects.

The model is told to return bare JSON but occasionally wraps it in code
fences or nests a field one level too deep. Parsing is tolerant of those
known drift patterns and strict about everything else: every ``parse_*``
function returns either ``Ok(value)`` or ``SchemaError(detail)``, never a
best-effort cast.

Tolerated drift (``DRIFT_PATTERNS``):

- ``reasoningSteps`` sent as ``{"reasoningSteps": [...]}`` instead of a list
- ``followUpSuggestion`` sent as ``{"followUpSuggestion": "..."}`` instead of a string
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from codelens.assistant.models import (
    DEFAULT_CONCEPT_LABEL,
    ERROR_KINDS,
    GRADERS,
    TEST_STATUSES,
    AnalysisResult,
    CodeExtraction,
    Correction,
    ErrorAnalysis,
    ErrorDetail,
    ExecutionResult,
    ExtractedLine,
    Explanation,
    FlowDiagram,
    PracticeProblem,
    PracticeResponse,
    TestCase,
    TestResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class SchemaError:
    detail: str


ParseResult = Union[Ok[T], SchemaError]


class _Invalid(Exception):
    """Internal signal for a shape violation, converted to SchemaError."""


# field name -> empty value used when the nested field is missing
DRIFT_PATTERNS: dict[str, Any] = {
    "reasoningSteps": [],
    "followUpSuggestion": "",
}

# Ordered: the first matching bucket wins.
CONCEPT_BUCKETS: list[tuple[Callable[[str], bool], str]] = [
    (
        lambda rc: "undefined" in rc
        or "object not found" in rc
        or "not defined" in rc
        or "cannot find symbol" in rc,
        "undefined variable or function",
    ),
    (
        lambda rc: "range" in rc or "bound" in rc or "index" in rc,
        "index out of bounds / off-by-one",
    ),
    (lambda rc: "division" in rc and "zero" in rc, "division by zero"),
    (lambda rc: "type" in rc, "type mismatch"),
    (lambda rc: "syntax" in rc, "syntax error"),
    (lambda rc: "sequence" in rc or "pattern" in rc, "sequence pattern recognition"),
]

CONCEPT_FALLBACK_CHARS = 40

PLACEHOLDER_TEST = TestCase(id="t1", input="(no input provided)", expected="(no expected output provided)")

_FENCE_OPEN = re.compile(r"^```[\w+-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence if present."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def load_payload(text: str | None) -> ParseResult[dict]:
    """Parse model text as a JSON object."""
    if not text or not text.strip():
        return SchemaError("empty response")

    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON response: {cleaned[:200]}")
        return SchemaError(f"invalid JSON: {e.msg}")

    if not isinstance(data, dict):
        return SchemaError(f"expected a JSON object, got {type(data).__name__}")
    return Ok(data)


def repair_drift(payload: dict) -> dict:
    """Unwrap fields the model double-wrapped. Returns a new dict."""
    repaired = dict(payload)
    for name, empty in DRIFT_PATTERNS.items():
        value = repaired.get(name)
        if isinstance(value, dict):
            logger.debug(f"Unwrapping double-wrapped field {name}")
            repaired[name] = value.get(name) or empty
    return repaired


def derive_concept_label(errors: list[ErrorDetail]) -> str:
    """Classify the first error's root cause into a practice concept."""
    if not errors:
        return DEFAULT_CONCEPT_LABEL

    root_cause = errors[0].root_cause.lower()
    for matches, label in CONCEPT_BUCKETS:
        if matches(root_cause):
            return label
    label = re.sub(r"[^a-zA-Z ]", "", root_cause[:CONCEPT_FALLBACK_CHARS]).strip()
    return label or DEFAULT_CONCEPT_LABEL


# --- Field helpers ---


def _require_dict(value: Any, where: str) -> dict:
    if not isinstance(value, dict):
        raise _Invalid(f"{where} must be an object")
    return value


def _require_list(value: Any, where: str) -> list:
    if not isinstance(value, list):
        raise _Invalid(f"{where} must be an array")
    return value


def _require_str(data: dict, key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise _Invalid(f"{where}.{key} must be a string")
    return value


def _optional_str(data: dict, key: str, default: str = "") -> str:
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise _Invalid(f"{key} must be a string")
    return value


def _int(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise _Invalid(f"{where} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise _Invalid(f"{where} must be an integer")


def _confidence(value: Any, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _Invalid("confidence must be a number")
    return min(1.0, max(0.0, float(value)))


def _choice(value: Any, allowed: tuple[str, ...], default: str, where: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or value.strip().lower() not in allowed:
        raise _Invalid(f"{where} must be one of {', '.join(allowed)}")
    return value.strip().lower()


def _run(build: Callable[[], T]) -> ParseResult[T]:
    try:
        return Ok(build())
    except _Invalid as e:
        logger.warning(f"Response failed schema check: {e}")
        return SchemaError(str(e))


# --- Section builders ---


def _build_lines(text: str) -> list[ExtractedLine]:
    return [ExtractedLine(n=i, text=line) for i, line in enumerate(text.split("\n"), 1)]


def _build_error_analysis(data: Any) -> ErrorAnalysis:
    section = _require_dict(data, "errorAnalysis")
    errors: list[ErrorDetail] = []
    for i, item in enumerate(_require_list(section.get("errors", []), "errorAnalysis.errors")):
        where = f"errorAnalysis.errors[{i}]"
        item = _require_dict(item, where)
        errors.append(
            ErrorDetail(
                line=_int(item.get("line"), f"{where}.line"),
                kind=_choice(item.get("kind"), ERROR_KINDS, "logic", f"{where}.kind"),
                root_cause=_require_str(item, "root_cause", where),
                confidence=_confidence(item.get("confidence"), 1.0),
            )
        )
    return ErrorAnalysis(errors=errors, short_overlay=_optional_str(section, "short_overlay"))


def _build_tests(data: Any) -> list[TestCase]:
    tests: list[TestCase] = []
    used: set[str] = set()
    for i, item in enumerate(_require_list(data if data is not None else [], "correction.tests"), 1):
        item = _require_dict(item, f"correction.tests[{i - 1}]")
        base = _optional_str(item, "id") or f"t{i}"
        test_id, n = base, 1
        while test_id in used:
            n += 1
            test_id = f"{base}-{n}"
        used.add(test_id)
        tests.append(
            TestCase(
                id=test_id,
                input=_optional_str(item, "input"),
                expected=_optional_str(item, "expected"),
            )
        )
    if not tests:
        logger.info("Correction had no tests, adding placeholder test")
        tests.append(PLACEHOLDER_TEST)
    return tests


def _build_correction(data: Any) -> Correction:
    section = _require_dict(data, "correction")
    fixed_lines = section.get("fixed_lines")
    if fixed_lines is not None:
        fixed_lines = [
            _int(n, "correction.fixed_lines[]")
            for n in _require_list(fixed_lines, "correction.fixed_lines")
        ]
    exec_safe = section.get("exec_safe", False)
    if not isinstance(exec_safe, bool):
        raise _Invalid("correction.exec_safe must be a boolean")
    return Correction(
        corrected_code=_require_str(section, "corrected_code", "correction"),
        patch_summary=_optional_str(section, "patch_summary"),
        tests=_build_tests(section.get("tests")),
        fixed_lines=fixed_lines,
        exec_safe=exec_safe,
    )


def _build_explanation(data: Any) -> Explanation:
    if isinstance(data, str):
        return Explanation(text=data)
    section = _require_dict(data, "explanation")
    return Explanation(text=_require_str(section, "text", "explanation"))


def _build_reasoning_steps(data: Any) -> list[str]:
    steps = _require_list(data, "reasoningSteps")
    if not all(isinstance(s, str) for s in steps):
        raise _Invalid("reasoningSteps must contain only strings")
    return list(steps)


def _build_flow_diagram(data: Any) -> FlowDiagram:
    section = _require_dict(data, "flowDiagram")
    return FlowDiagram(
        ascii=_require_str(section, "ascii", "flowDiagram"),
        caption=_optional_str(section, "caption"),
    )


def _build_analysis(payload: dict, concept_label: str | None) -> AnalysisResult:
    error_analysis = None
    if payload.get("errorAnalysis") is not None:
        error_analysis = _build_error_analysis(payload["errorAnalysis"])

    follow_up = payload.get("followUpSuggestion")
    if follow_up is not None and not isinstance(follow_up, str):
        raise _Invalid("followUpSuggestion must be a string")

    errors = error_analysis.errors if error_analysis else []
    return AnalysisResult(
        error_analysis=error_analysis,
        correction=(
            _build_correction(payload["correction"])
            if payload.get("correction") is not None
            else None
        ),
        explanation=(
            _build_explanation(payload["explanation"])
            if payload.get("explanation") is not None
            else None
        ),
        reasoning_steps=(
            _build_reasoning_steps(payload["reasoningSteps"])
            if payload.get("reasoningSteps") is not None
            else None
        ),
        follow_up_suggestion=follow_up,
        flow_diagram=(
            _build_flow_diagram(payload["flowDiagram"])
            if payload.get("flowDiagram") is not None
            else None
        ),
        concept_label=concept_label or derive_concept_label(errors),
        is_mock=bool(payload.get("isMock", False)),
    )


# --- Public parsers ---


def parse_extraction(text: str | None) -> ParseResult[CodeExtraction]:
    """Parse an image-extraction response (schema A)."""
    loaded = load_payload(text)
    if isinstance(loaded, SchemaError):
        return loaded
    payload = loaded.value

    def build() -> CodeExtraction:
        code = _require_str(payload, "text", "code_extraction")
        return CodeExtraction(
            language=_optional_str(payload, "language", "unknown") or "unknown",
            text=code,
            lines=_build_lines(code),
            confidence=_confidence(payload.get("confidence"), 0.0),
        )

    return _run(build)


def parse_analysis(text: str | None) -> ParseResult[AnalysisResult]:
    """Parse the composite analysis response and derive its concept label."""
    loaded = load_payload(text)
    if isinstance(loaded, SchemaError):
        return loaded
    payload = repair_drift(loaded.value)
    payload.pop("conceptLabel", None)
    payload.pop("isMock", None)
    return _run(lambda: _build_analysis(payload, None))


def analysis_from_payload(payload: dict) -> ParseResult[AnalysisResult]:
    """Rebuild a stored ``AnalysisResult.to_dict()`` payload, keeping its label."""
    payload = repair_drift(payload)
    return _run(lambda: _build_analysis(payload, payload.get("conceptLabel") or None))


def parse_practice(text: str | None) -> ParseResult[PracticeResponse]:
    """Parse a practice response (schema G). Only the first problem is kept."""
    loaded = load_payload(text)
    if isinstance(loaded, SchemaError):
        return loaded
    payload = loaded.value

    def build() -> PracticeResponse:
        items = _require_list(payload.get("problems", []), "practice.problems")
        problems: list[PracticeProblem] = []
        for i, item in enumerate(items[:1], 1):
            where = f"practice.problems[{i - 1}]"
            item = _require_dict(item, where)
            prompt = _require_str(item, "prompt", where)
            if not prompt.strip():
                continue
            problems.append(
                PracticeProblem(
                    id=_optional_str(item, "id") or f"p{i}",
                    prompt=prompt,
                    hint=_optional_str(item, "hint"),
                    solution=_optional_str(item, "solution"),
                    grader=_choice(item.get("grader"), GRADERS, "exact", f"{where}.grader"),
                )
            )
        return PracticeResponse(problems=problems)

    return _run(build)


def parse_execution(text: str | None, tests: list[TestCase]) -> ParseResult[ExecutionResult]:
    """Parse a simulated test run (schema D).

    A run with no reported results gets one failing entry per requested test,
    so callers always have at least one row to show.
    """
    loaded = load_payload(text)
    if isinstance(loaded, SchemaError):
        return loaded
    payload = loaded.value

    def build() -> ExecutionResult:
        items = _require_list(payload.get("test_results", []), "execution.test_results")
        results: list[TestResult] = []
        for i, item in enumerate(items, 1):
            where = f"execution.test_results[{i - 1}]"
            item = _require_dict(item, where)
            results.append(
                TestResult(
                    id=_optional_str(item, "id") or f"t{i}",
                    status=_choice(item.get("status"), TEST_STATUSES, "fail", f"{where}.status"),
                    output=_optional_str(item, "output"),
                    expected=_optional_str(item, "expected"),
                )
            )
        if not results:
            logger.info("Execution response had no test results, synthesizing entries")
            results = [
                TestResult(id=t.id, status="fail", output="No result reported", expected=t.expected)
                for t in (tests or [PLACEHOLDER_TEST])
            ]
        return ExecutionResult(
            test_results=results,
            stdout=_optional_str(payload, "stdout"),
            stderr=_optional_str(payload, "stderr"),
        )

    return _run(build)
