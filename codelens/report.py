"""Plain-text rendering of assistant results.

Shared by the CLI and the Streamlit UI; nothing here touches a terminal or
a browser.
"""

from __future__ import annotations

import difflib

from codelens.assistant.models import AnalysisResult, ExecutionResult, PracticeProblem

KIND_EMOJI = {
    "syntax": "\U0001f4dd",
    "logic": "\U0001f9e0",
    "runtime": "\U0001f4a5",
}

STATUS_EMOJI = {
    "pass": "✅",
    "fail": "❌",
}

DEMO_BADGE = "[DEMO MODE]"


def confidence_badge(confidence: float) -> str:
    """Traffic-light emoji for a 0..1 confidence score."""
    if confidence >= 0.8:
        return "\U0001f7e2"
    if confidence >= 0.6:
        return "\U0001f7e1"
    return "\U0001f534"


def kind_badge(kind: str) -> str:
    emoji = KIND_EMOJI.get(kind, "❓")
    return f"{emoji} {kind.upper()}"


def build_diff(original: str, corrected: str, context: int = 3) -> str:
    """Unified diff from the submitted code to the corrected code."""
    diff = difflib.unified_diff(
        original.splitlines(),
        corrected.splitlines(),
        fromfile="original",
        tofile="corrected",
        n=context,
        lineterm="",
    )
    return "\n".join(diff)


def format_analysis(result: AnalysisResult, code: str = "", show_reasoning: bool = True) -> str:
    lines: list[str] = []
    if result.is_mock:
        lines.append(f"{DEMO_BADGE} Simulated result, the API quota is exhausted.")
        lines.append("")

    if result.error_analysis is None or result.error_analysis.is_clean:
        lines.append("No errors found.")
    else:
        lines.append(f"Errors ({len(result.errors)}):")
        for e in result.errors:
            lines.append(
                f"  - line {e.line} {kind_badge(e.kind)} {confidence_badge(e.confidence)} {e.root_cause}"
            )
        if result.error_analysis.short_overlay:
            lines.append(f"  {result.error_analysis.short_overlay}")
    lines.append(f"Concept: {result.concept_label}")

    if result.correction:
        lines.append("")
        lines.append(f"Fix: {result.correction.patch_summary}")
        diff = build_diff(code, result.correction.corrected_code) if code else ""
        lines.append(diff or result.correction.corrected_code)

    if result.explanation:
        lines.append("")
        lines.append(result.explanation.text)

    if show_reasoning and result.reasoning_steps:
        lines.append("")
        lines.append("How this was found:")
        lines.extend(f"  {i}. {step}" for i, step in enumerate(result.reasoning_steps, 1))

    if result.flow_diagram:
        lines.append("")
        lines.append(result.flow_diagram.ascii)
        if result.flow_diagram.caption:
            lines.append(f"  {result.flow_diagram.caption}")

    if result.follow_up_suggestion:
        lines.append("")
        lines.append(f"Next step: {result.follow_up_suggestion}")

    return "\n".join(lines)


def format_execution(result: ExecutionResult) -> str:
    lines: list[str] = []
    if result.is_mock:
        lines.append(f"{DEMO_BADGE} Tests were not simulated.")
    for r in result.test_results:
        emoji = STATUS_EMOJI.get(r.status, "")
        lines.append(f"{emoji} {r.id}: {r.status.upper()} output={r.output!r} expected={r.expected!r}")
    if result.stdout:
        lines.append(f"stdout: {result.stdout}")
    if result.stderr:
        lines.append(f"stderr: {result.stderr}")
    return "\n".join(lines)


def format_practice(problem: PracticeProblem, show_solution: bool = False) -> str:
    lines = [problem.prompt]
    if problem.hint:
        lines.append(f"Hint: {problem.hint}")
    if show_solution and problem.solution:
        lines.append(f"Solution: {problem.solution}")
    return "\n".join(lines)
