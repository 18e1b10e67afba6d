"""Request orchestration: one method per user intent.

Each operation builds a prompt, calls the model through ``with_retry``,
normalizes the reply, and maps failures onto user-facing conditions:

- quota exhausted -> the matching deterministic fallback payload
- rate limited (after backoff) -> ``RateLimitedError``
- malformed reply or any other failure -> ``OperationFailedError``

A call either returns a fully normalized result or raises; nothing is
returned half-populated.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import asdict
from typing import Callable, TypeVar

from codelens.assistant import fallback
from codelens.assistant.errors import (
    OperationFailedError,
    PracticeUnavailableError,
    RateLimitedError,
)
from codelens.assistant.models import (
    DEFAULT_CONCEPT_LABEL,
    AnalysisResult,
    CodeExtraction,
    ExecutionResult,
    ExplanationMode,
    PracticeResponse,
    TestCase,
)
from codelens.assistant.normalizer import (
    ParseResult,
    SchemaError,
    parse_analysis,
    parse_execution,
    parse_extraction,
    parse_practice,
)
from codelens.assistant.prompts import (
    ANALYSIS_PROMPT,
    EXECUTION_PROMPT,
    EXTRACTION_PROMPT,
    PRACTICE_AVOID_PROMPT,
    PRACTICE_PROMPT,
    PRACTICE_SCHEMA_PROMPT,
)
from codelens.assistant.resilience import (
    MAX_RETRIES,
    RETRY_BASE_DELAY,
    MaxRetriesExceeded,
    is_quota_exhausted,
    with_retry,
)
from codelens.config import Config
from codelens.llm.client import ImageInput, ModelClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Practice generation is the call most often throttled, so it waits longer.
PRACTICE_MAX_RETRIES = 4
PRACTICE_RETRY_BASE_DELAY = 2.5  # seconds

DEFAULT_TEST = fallback.DEFAULT_TEST


class DebugAssistant:
    """Composes prompts, retries, normalization and fallbacks around the model."""

    def __init__(
        self,
        client: ModelClient,
        max_attempts: int = MAX_RETRIES,
        initial_delay: float = RETRY_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: Config) -> DebugAssistant:
        client = ModelClient(api_key=config.anthropic_api_key, model=config.model)
        return cls(client, max_attempts=max(1, config.max_retries), initial_delay=config.retry_base_delay)

    def extract_code(self, image: bytes, mime_type: str) -> CodeExtraction:
        """Read code or a math expression out of an image.

        Low confidence is not an error; callers check ``is_low_confidence``.
        """
        return self._call(
            "extraction",
            EXTRACTION_PROMPT,
            parse_extraction,
            fallback.mock_extraction,
            "Failed to extract code from image.",
            image=ImageInput(data=image, mime_type=mime_type),
        )

    def analyze(self, code: str, language: str, mode: ExplanationMode) -> AnalysisResult:
        """Run the full analysis: errors, correction, explanation, reasoning, follow-up."""
        prompt = ANALYSIS_PROMPT.format(language=language, mode=mode, code=code)
        return self._call(
            "analysis",
            prompt,
            parse_analysis,
            lambda: fallback.mock_analysis(code),
            "Failed to analyze code.",
        )

    def generate_practice(
        self,
        context: str,
        language: str,
        mode: ExplanationMode,
        concept_label: str = DEFAULT_CONCEPT_LABEL,
        previous_prompt: str | None = None,
    ) -> PracticeResponse:
        """Generate one practice problem targeting ``concept_label``.

        With ``previous_prompt`` the model is told not to repeat it. Uniqueness
        is not verified locally; an empty reply raises ``PracticeUnavailableError``.
        """
        prompt = PRACTICE_PROMPT.format(
            concept_label=concept_label,
            context=context,
            language=language,
            mode=mode,
            request_id=uuid.uuid4().hex,
        )
        if previous_prompt:
            prompt += PRACTICE_AVOID_PROMPT.format(previous_prompt=previous_prompt)
        prompt += PRACTICE_SCHEMA_PROMPT

        result = self._call(
            "practice",
            prompt,
            parse_practice,
            fallback.mock_practice,
            "Failed to generate practice problem.",
            max_attempts=PRACTICE_MAX_RETRIES,
            initial_delay=PRACTICE_RETRY_BASE_DELAY,
        )
        if not result.problems:
            logger.warning("Practice generation returned no problems")
            raise PracticeUnavailableError()
        return result

    def run_tests(self, code: str, tests: list[TestCase]) -> ExecutionResult:
        """Ask the model to simulate running ``code`` against ``tests``."""
        if not tests:
            tests = [DEFAULT_TEST]

        prompt = EXECUTION_PROMPT.format(
            code=code,
            tests_json=json.dumps([asdict(t) for t in tests], indent=2),
        )
        return self._call(
            "execution",
            prompt,
            lambda text: parse_execution(text, tests),
            lambda: fallback.mock_execution(tests),
            "Execution simulation failed.",
        )

    def _call(
        self,
        operation: str,
        prompt: str,
        parse: Callable[[str], ParseResult[T]],
        make_fallback: Callable[[], T],
        failure_message: str,
        image: ImageInput | None = None,
        max_attempts: int | None = None,
        initial_delay: float | None = None,
    ) -> T:
        try:
            text = with_retry(
                lambda: self._client.generate(prompt, image=image),
                max_attempts=max_attempts if max_attempts is not None else self._max_attempts,
                initial_delay=initial_delay if initial_delay is not None else self._initial_delay,
                sleep=self._sleep,
            )
        except MaxRetriesExceeded as e:
            raise RateLimitedError() from e
        except Exception as e:
            if is_quota_exhausted(e):
                logger.warning(f"Quota exceeded in {operation}, returning mock result")
                return make_fallback()
            logger.error(f"{operation.capitalize()} failed: {e}")
            raise OperationFailedError(failure_message) from e

        result = parse(text)
        if isinstance(result, SchemaError):
            logger.error(f"{operation.capitalize()} returned a malformed response: {result.detail}")
            raise OperationFailedError(failure_message)
        return result.value
