"""Deterministic stand-in payloads used when the model quota is exhausted.

Content is fixed so the UI can be exercised (and asserted on) without the
model. Every payload is flagged ``is_mock`` and satisfies the same invariants
as a real response.
"""

from __future__ import annotations

from codelens.assistant.models import (
    AnalysisResult,
    CodeExtraction,
    Correction,
    ErrorAnalysis,
    ErrorDetail,
    ExecutionResult,
    ExtractedLine,
    Explanation,
    PracticeProblem,
    PracticeResponse,
    TestCase,
    TestResult,
)

MOCK_CONCEPT_LABEL = "API Quota Management"

MOCK_EXTRACTION_CODE = """\
def calculate_average(numbers):
    total = 0
    for n in numbers:
        total += n
    # Error: Division by zero if list is empty, also integer division in older Python versions
    return total / 0 if len(numbers) == 0 else total / len(numbers)

print(calculate_average([10, 20, 30]))"""

MOCK_REASONING_STEPS = [
    "Detected API quota limit reached from response headers.",
    "Switched to fallback mock data generator.",
    "Formatted response to match standard API output structure.",
]

DEFAULT_TEST = TestCase(id="default-test", input="Sample input", expected="Sample output")


def mock_extraction() -> CodeExtraction:
    return CodeExtraction(
        language="python",
        text=MOCK_EXTRACTION_CODE,
        lines=[
            ExtractedLine(n=i, text=line)
            for i, line in enumerate(MOCK_EXTRACTION_CODE.split("\n"), 1)
        ],
        confidence=1.0,
        is_mock=True,
    )


def mock_analysis(code: str) -> AnalysisResult:
    """Demo analysis that echoes the first line of the user's input."""
    first_line = code.split("\n")[0] if code else ""
    return AnalysisResult(
        error_analysis=ErrorAnalysis(
            errors=[
                ErrorDetail(
                    line=1,
                    kind="runtime",
                    root_cause="API Quota Exceeded. This is a simulated error for demonstration.",
                    confidence=1.0,
                )
            ],
            short_overlay=(
                "Your API quota has been exceeded. We are showing a demo analysis "
                "result to demonstrate the app's features."
            ),
        ),
        correction=Correction(
            corrected_code=(
                "# SIMULATED CORRECTION\n"
                "# Your original code was:\n"
                f"{first_line}...\n\n"
                'print("Quota exceeded - displaying demo output")'
            ),
            patch_summary="Simulated fix due to API quota limits.",
            fixed_lines=[1, 2, 3],
            tests=[TestCase(id="demo-test", input="demo", expected="demo")],
            exec_safe=True,
        ),
        explanation=Explanation(
            text=(
                "You have exceeded your API usage limits for today. This response is a "
                "placeholder to keep the application UI functional. Please check your "
                "billing details or try again later."
            )
        ),
        reasoning_steps=list(MOCK_REASONING_STEPS),
        follow_up_suggestion="Check your Anthropic Console billing and usage limits.",
        concept_label=MOCK_CONCEPT_LABEL,
        is_mock=True,
    )


def mock_practice() -> PracticeResponse:
    return PracticeResponse(
        problems=[
            PracticeProblem(
                id="mock-p1",
                prompt=(
                    "This is a placeholder practice problem because the API quota was "
                    "exceeded. In a real scenario, this would be a question about your "
                    "code's logic. What is 2 + 2?"
                ),
                hint="It is the sum of two and two.",
                solution="4",
                grader="exact",
            )
        ],
        is_mock=True,
    )


def mock_execution(tests: list[TestCase]) -> ExecutionResult:
    """Report every test as passing; nothing can actually run without the model."""
    return ExecutionResult(
        test_results=[
            TestResult(
                id=t.id,
                status="pass",
                output="Simulated pass (quota exceeded)",
                expected=t.expected,
            )
            for t in (tests or [DEFAULT_TEST])
        ],
        stdout="Execution unavailable (Quota Exceeded)",
        stderr="",
        is_mock=True,
    )
