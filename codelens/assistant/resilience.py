"""Failure classification and retry policy for model calls.

Provider errors are loosely shaped. The classifiers here only rely on a small
duck-typed surface: a message (``message`` or ``str(error)``), an optional
status code (``status_code``, ``status`` or ``code``) and an optional nested
provider body (``body`` or ``error``) such as::

    {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "..."}}
    {"type": "error", "error": {"type": "rate_limit_error", "message": "..."}}

Quota exhaustion is a hard ceiling for the session and is never retried; the
caller substitutes a fallback result. Rate limiting is transient congestion
and is retried with exponential backoff.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 3
RETRY_BASE_DELAY = 2.0  # seconds

QUOTA_MARKERS = ("quota", "billing", "credit balance")
RATE_LIMIT_STATUS = "RESOURCE_EXHAUSTED"
RATE_LIMIT_TYPE = "rate_limit_error"


class MaxRetriesExceeded(Exception):
    """Raised when every attempt hit a rate limit."""

    def __init__(self, attempts: int, last_error: BaseException | None = None) -> None:
        super().__init__(f"Max retries exceeded after {attempts} attempt(s)")
        self.attempts = attempts
        self.last_error = last_error


def _nested_body(error: Any) -> dict:
    """Return the innermost provider error dict, or an empty dict."""
    body = getattr(error, "body", None)
    if body is None:
        body = getattr(error, "error", None)
    if not isinstance(body, dict):
        return {}
    inner = body.get("error")
    if isinstance(inner, dict):
        return inner
    return body


def _message(error: Any) -> str:
    message = getattr(error, "message", None)
    if not isinstance(message, str) or not message:
        message = str(error)
    return message


def _error_text(error: Any) -> str:
    """Flatten top-level and nested messages into one lower-cased string."""
    parts = [_message(error)]
    nested = _nested_body(error)
    for key in ("message", "status", "type"):
        value = nested.get(key)
        if isinstance(value, str):
            parts.append(value)
    return " ".join(parts).lower()


def _status_codes(error: Any) -> list[Any]:
    codes = [getattr(error, attr, None) for attr in ("status_code", "status", "code")]
    nested = _nested_body(error)
    codes.append(nested.get("code"))
    return [c for c in codes if c is not None]


def is_quota_exhausted(error: Any) -> bool:
    """True if the failure reports a hard quota or billing ceiling."""
    if error is None:
        return False
    text = _error_text(error)
    return any(marker in text for marker in QUOTA_MARKERS)


def is_rate_limited(error: Any) -> bool:
    """True if the failure is a transient HTTP 429 / RESOURCE_EXHAUSTED throttle."""
    if error is None:
        return False

    for code in _status_codes(error):
        if code == 429 or code == "429" or code == RATE_LIMIT_STATUS:
            return True

    message = _message(error)
    if "429" in message or RATE_LIMIT_STATUS in message:
        return True

    nested = _nested_body(error)
    if nested:
        if nested.get("status") == RATE_LIMIT_STATUS or nested.get("type") == RATE_LIMIT_TYPE:
            return True
        nested_message = nested.get("message")
        if isinstance(nested_message, str) and "429" in nested_message:
            return True

    return False


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = MAX_RETRIES,
    initial_delay: float = RETRY_BASE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation``, retrying rate-limited failures with exponential backoff.

    Quota failures and unclassified failures are re-raised immediately. When
    the last attempt is rate limited, ``MaxRetriesExceeded`` is raised with
    the provider error chained as its cause.
    """
    delay = initial_delay
    last_error: BaseException | None = None

    for attempt in range(max_attempts):
        try:
            return operation()
        except Exception as e:
            if is_quota_exhausted(e):
                raise
            if not is_rate_limited(e):
                raise
            last_error = e
            if attempt < max_attempts - 1:
                logger.warning(
                    f"Rate limit hit, retrying in {delay}s (attempt {attempt + 1}/{max_attempts})"
                )
                sleep(delay)
                delay *= 2
                continue
            logger.error(f"Rate limited after {max_attempts} attempt(s), giving up")
            raise MaxRetriesExceeded(max_attempts, e) from e

    raise MaxRetriesExceeded(max_attempts, last_error)
