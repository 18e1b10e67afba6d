"""Session controller: UI state around the debugging assistant.

Owns everything a front end needs between requests (current input, settings,
latest results, practice state, history) and decides when to call the
assistant. Status banners carry an explicit ``StatusKind`` so front ends
never have to infer styling from message text.

The controller is single-user and synchronous. An action that is already in
flight is ignored if triggered again.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from codelens.assistant.errors import AssistantError, ErrorKind
from codelens.assistant.models import (
    AUTO_DETECT,
    DEFAULT_CONCEPT_LABEL,
    AnalysisResult,
    ExecutionResult,
    ExplanationMode,
    PracticeResponse,
)
from codelens.assistant.orchestrator import DebugAssistant
from codelens.storage.history import MAX_HISTORY, HistoryEntry, HistoryStore, Preferences

logger = logging.getLogger(__name__)

CONTEXT_SNIPPET_CHARS = 300
MIN_WORDED_ANSWER = 5

_MATH_SYMBOLS = re.compile(r"[+\-*/^=]")
_DIGITS = re.compile(r"\d")
_CODE_KEYWORDS = re.compile(
    r"(def|class|function|var|let|const|return|import|include|public|static|void|"
    r"console\.|System\.|print|println|if|else|for|while|try|catch|<-|=>|\{|\}|;)"
)
_NUMERIC_ANSWER = re.compile(r"^-?\d+(\.\d+)?$")


class StatusKind(str, Enum):
    DEMO = "demo"
    LOW_CONFIDENCE = "low_confidence"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True)
class StatusMessage:
    kind: StatusKind
    text: str


DEMO_EXTRACTION = StatusMessage(StatusKind.DEMO, "Demo Mode: Quota exceeded. Loaded sample code instead.")
DEMO_ANALYSIS = StatusMessage(StatusKind.DEMO, "Demo Mode: API Quota exceeded. Showing simulated results.")
LOW_CONFIDENCE = StatusMessage(
    StatusKind.LOW_CONFIDENCE,
    "I couldn't confidently find code in this image. Please crop closer or paste manually.",
)

EXAMPLES: dict[str, dict[str, str]] = {
    "R": {
        "beginner": "# R Example - Beginner\na <- 3\nprint(b) # Error: object 'b' not found",
        "advanced": (
            "# R Example - Advanced\n"
            "sum_values <- function(vec) {\n"
            "  total <- 0\n"
            "  # Error: Loop range goes beyond vector length (off-by-one)\n"
            "  for (i in 1:(length(vec) + 1)) {\n"
            "    total <- total + vec[i]\n"
            "  }\n"
            "  return(total)\n"
            "}\n\n"
            "print(sum_values(c(10, 20, 30)))"
        ),
    },
    "Python": {
        "beginner": "# Python Example - Beginner\na = 5\nprint(b) # Error: name 'b' is not defined",
        "advanced": (
            "# Python Example - Advanced\n"
            "def factorial(n):\n"
            "    if n == 0:\n"
            "        # Error: Logic error, 0! should be 1\n"
            "        return 0\n"
            "    return n * factorial(n - 1)\n\n"
            "print(factorial(5))"
        ),
    },
    "C++": {
        "beginner": (
            "// C++ Example - Beginner\n#include <iostream>\nusing namespace std;\n\n"
            "int main() {\n    int a = 3;\n"
            "    cout << b << endl; // Error: 'b' was not declared in this scope\n"
            "    return 0;\n}"
        ),
        "advanced": (
            "// C++ Example - Advanced\n#include <iostream>\n#include <vector>\n"
            "using namespace std;\n\nint main() {\n"
            "    vector<int> numbers = {1, 2, 3};\n"
            "    // Error: Loop condition <= allows access out of bounds\n"
            "    for (size_t i = 0; i <= numbers.size(); ++i) {\n"
            '        cout << numbers[i] << " ";\n    }\n    return 0;\n}'
        ),
    },
    "JavaScript": {
        "beginner": "// JavaScript Example - Beginner\nlet a = 10;\nconsole.log(b); // Error: b is not defined",
        "advanced": (
            "// JavaScript Example - Advanced\nconst items = [1, 2, 3];\n"
            "// Error: Accessing index equal to length returns undefined\n"
            "for (let i = 0; i <= items.length; i++) {\n"
            "  console.log(items[i].toString()); // Fails on last iteration\n}"
        ),
    },
    "Java": {
        "beginner": (
            "// Java Example - Beginner\npublic class Main {\n"
            "    public static void main(String[] args) {\n        int a = 50;\n"
            "        System.out.println(b); // Error: cannot find symbol variable b\n    }\n}"
        ),
        "advanced": (
            "// Java Example - Advanced\nimport java.util.ArrayList;\n\npublic class Main {\n"
            "    public static void main(String[] args) {\n"
            "        ArrayList<String> list = new ArrayList<>();\n"
            '        list.add("Java");\n'
            "        // Error: Accessing index 1 when size is 1 (indices 0..size-1)\n"
            "        System.out.println(list.get(1));\n    }\n}"
        ),
    },
}
EXAMPLE_DEFAULT_LANGUAGE = "R"

# Extraction reports short lower-case tags; map them onto the settings vocabulary.
EXTRACTED_LANGUAGES = {
    "python": "Python",
    "java": "Java",
    "cpp": "C++",
    "c++": "C++",
    "js": "JavaScript",
    "javascript": "JavaScript",
    "r": "R",
}


def build_practice_context(analysis: AnalysisResult, code: str) -> str:
    """Summarize an analysis for the practice prompt."""
    context = ""
    if analysis.errors:
        causes = "; ".join(e.root_cause for e in analysis.errors)
        context += f"Identified Errors: {causes}.\n"
    explanation = ""
    if analysis.explanation and analysis.explanation.text:
        explanation = analysis.explanation.text
    elif analysis.error_analysis:
        explanation = analysis.error_analysis.short_overlay
    if explanation:
        context += f"Analysis Summary: {explanation[:CONTEXT_SNIPPET_CHARS]}.\n"
    context += f"Original Input: {code[:CONTEXT_SNIPPET_CHARS]}"
    return context


def is_math_mode(text: str, language: str) -> bool:
    """True when auto-detecting and the input looks like arithmetic, not code."""
    if language != AUTO_DETECT:
        return False
    has_math = bool(_MATH_SYMBOLS.search(text)) and bool(_DIGITS.search(text))
    return has_math and not _CODE_KEYWORDS.search(text)


def example_snippet(language: str, mode: ExplanationMode) -> tuple[str, str]:
    """Return ``(language, snippet)`` for the built-in example of a language."""
    if language == AUTO_DETECT:
        language = EXAMPLE_DEFAULT_LANGUAGE
    snippets = EXAMPLES.get(language)
    if snippets is None:
        return language, 'print("Hello World") # Unknown language'
    return language, snippets[mode]


def check_practice_answer(answer: str) -> StatusMessage:
    """Light completeness check of a practice answer (no grading)."""
    trimmed = answer.strip()
    if not trimmed:
        return StatusMessage(StatusKind.ERROR, "Please write an answer.")
    if not _NUMERIC_ANSWER.match(trimmed) and len(trimmed) < MIN_WORDED_ANSWER:
        return StatusMessage(StatusKind.ERROR, "Please write a complete answer.")
    return StatusMessage(StatusKind.SUCCESS, "Good job! That looks correct.")


def status_for_error(error: AssistantError) -> StatusMessage:
    if error.kind == ErrorKind.RATE_LIMITED:
        return StatusMessage(StatusKind.RATE_LIMITED, error.message)
    return StatusMessage(StatusKind.ERROR, error.message)


@dataclass
class DebugSession:
    assistant: DebugAssistant
    store: HistoryStore | None = None
    preferences: Preferences = field(default_factory=Preferences)

    code: str = ""
    analysis: AnalysisResult | None = None
    analyzed_code: str = ""
    execution: ExecutionResult | None = None
    practice: PracticeResponse | None = None
    practice_count: int = 0
    practice_expanded: bool = False
    practice_feedback: StatusMessage | None = None
    status: StatusMessage | None = None
    is_example: bool = False
    history: list[HistoryEntry] = field(default_factory=list)

    _in_flight: set[str] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        if self.store is not None:
            self.preferences = self.store.get_preferences()
            self.history = self.store.list()

    # --- Settings ---

    @property
    def language(self) -> str:
        return self.preferences.language

    @property
    def mode(self) -> ExplanationMode:
        return self.preferences.mode  # type: ignore[return-value]

    def update_preferences(self, **changes) -> None:
        for key, value in changes.items():
            if not hasattr(self.preferences, key):
                raise AttributeError(f"Unknown preference: {key}")
            setattr(self.preferences, key, value)
        if self.store is not None:
            self.store.save_preferences(self.preferences)

    @property
    def math_mode(self) -> bool:
        return is_math_mode(self.code, self.language)

    def dismiss_status(self) -> None:
        self.status = None

    def load_example(self) -> None:
        language, snippet = example_snippet(self.language, self.mode)
        self.update_preferences(language=language)
        self.code = snippet
        self.is_example = True

    # --- Actions ---

    def extract_from_image(self, image: bytes, mime_type: str) -> None:
        if not self._begin("extract"):
            return
        self.is_example = False
        self.status = None
        try:
            result = self.assistant.extract_code(image, mime_type)
        except AssistantError as e:
            self.status = status_for_error(e)
            return
        finally:
            self._end("extract")

        if result.is_mock:
            self.status = DEMO_EXTRACTION
        elif result.is_low_confidence:
            self.status = LOW_CONFIDENCE

        self.code = result.text
        language = EXTRACTED_LANGUAGES.get(result.language.lower())
        if language:
            self.update_preferences(language=language)

    def analyze(self) -> None:
        if not self.code.strip() or not self._begin("analyze"):
            return

        self.is_example = False
        self.status = None
        code = self.code

        try:
            result = self.assistant.analyze(code, self.language, self.mode)
        except AssistantError as e:
            self.status = status_for_error(e)
            return
        finally:
            self._end("analyze")

        self.analysis = result
        self.analyzed_code = code
        self.execution = None
        self._reset_practice()
        self._remember(code, result)

        if result.is_mock:
            self.status = DEMO_ANALYSIS

        if self.preferences.collapse_practice:
            self.practice_expanded = False
        else:
            self.practice_expanded = True
            self.load_practice()

    def run_tests(self) -> None:
        if self.analysis is None or self.analysis.correction is None:
            return
        if not self._begin("run_tests"):
            return
        correction = self.analysis.correction
        try:
            self.execution = self.assistant.run_tests(correction.corrected_code, correction.tests)
        except AssistantError as e:
            self.status = status_for_error(e)
        finally:
            self._end("run_tests")

    def toggle_practice(self) -> None:
        if not self.practice_expanded and self.practice is None and self.analysis is not None:
            self.load_practice()
        self.practice_expanded = not self.practice_expanded

    def load_practice(self) -> None:
        if self.analysis is None or not self._begin("practice"):
            return
        self.practice_feedback = None
        try:
            self.practice = self.assistant.generate_practice(
                build_practice_context(self.analysis, self.analyzed_code),
                self.language,
                self.mode,
                self.analysis.concept_label or DEFAULT_CONCEPT_LABEL,
            )
            self.practice_count = 1
        except AssistantError as e:
            self.practice_feedback = status_for_error(e)
        finally:
            self._end("practice")

    def regenerate_practice(self) -> None:
        if self.analysis is None or not self._begin("practice"):
            return
        previous = self.practice.first.prompt if self.practice and self.practice.first else None
        try:
            result = self.assistant.generate_practice(
                build_practice_context(self.analysis, self.analyzed_code),
                self.language,
                self.mode,
                self.analysis.concept_label or DEFAULT_CONCEPT_LABEL,
                previous_prompt=previous,
            )
        except AssistantError as e:
            self.practice_feedback = status_for_error(e)
            return
        finally:
            self._end("practice")

        self.practice = result
        self.practice_feedback = None
        self.practice_count += 1

    def check_practice(self, answer: str) -> StatusMessage:
        self.practice_feedback = check_practice_answer(answer)
        return self.practice_feedback

    # --- History ---

    def select_history(self, index: int) -> None:
        entry = self.history[index]
        self.code = entry.code
        self.analysis = entry.result
        self.analyzed_code = entry.code
        self.execution = None
        self._reset_practice()
        self.practice_expanded = False

    def delete_history(self, index: int) -> None:
        entry = self.history.pop(index)
        if self.store is not None:
            self.store.delete(entry.id)

    def clear_history(self) -> None:
        self.history = []
        if self.store is not None:
            self.store.clear()

    # --- Internals ---

    def _remember(self, code: str, result: AnalysisResult) -> None:
        if self.store is not None:
            entry = self.store.add(code, result)
        else:
            entry = HistoryEntry(id=str(uuid.uuid4()), code=code, result=result, created_at=datetime.now())
        self.history = [entry, *self.history][:MAX_HISTORY]

    def _reset_practice(self) -> None:
        self.practice = None
        self.practice_count = 0
        self.practice_feedback = None

    def _begin(self, action: str) -> bool:
        if action in self._in_flight:
            logger.debug(f"Ignoring {action}: already in flight")
            return False
        self._in_flight.add(action)
        return True

    def _end(self, action: str) -> None:
        self._in_flight.discard(action)
