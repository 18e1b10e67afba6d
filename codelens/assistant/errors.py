"""User-facing failure conditions raised by the orchestrator.

Raw provider errors never leave the orchestrator; they are chained as the
``__cause__`` of one of these.
"""

from __future__ import annotations

from enum import Enum

RATE_LIMIT_MESSAGE = "Traffic is high. Please wait 10s and try again."


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"
    NO_RESULT = "no_result"


class AssistantError(Exception):
    """Base class: carries a display message and a kind tag."""

    kind = ErrorKind.FAILED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RateLimitedError(AssistantError):
    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = RATE_LIMIT_MESSAGE) -> None:
        super().__init__(message)


class OperationFailedError(AssistantError):
    kind = ErrorKind.FAILED


class PracticeUnavailableError(AssistantError):
    kind = ErrorKind.NO_RESULT

    def __init__(self, message: str = "Could not generate a new problem.") -> None:
        super().__init__(message)
