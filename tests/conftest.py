"""Shared test fixtures for codelens."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from codelens.assistant.orchestrator import DebugAssistant
from codelens.storage.db import get_connection
from codelens.storage.history import HistoryStore


class FakeAPIError(Exception):
    """Provider-shaped error: message, optional status code and nested body."""

    def __init__(self, message: str, status_code: int | None = None, body: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


def rate_limit_error() -> FakeAPIError:
    return FakeAPIError(
        "Too many requests",
        status_code=429,
        body={"type": "error", "error": {"type": "rate_limit_error", "message": "Too many requests"}},
    )


def quota_error() -> FakeAPIError:
    return FakeAPIError(
        "Your credit balance is too low to access the Anthropic API.",
        status_code=400,
        body={"type": "error", "error": {"type": "invalid_request_error", "message": "credit balance"}},
    )


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def db_conn(db_path: Path) -> sqlite3.Connection:
    conn = get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def store(db_conn: sqlite3.Connection) -> HistoryStore:
    return HistoryStore(db_conn)


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock()


@pytest.fixture
def assistant(client: MagicMock, sleep: MagicMock) -> DebugAssistant:
    return DebugAssistant(client, max_attempts=3, initial_delay=2.0, sleep=sleep)


@pytest.fixture
def analysis_payload() -> dict:
    return {
        "errorAnalysis": {
            "type": "error_analysis",
            "errors": [
                {
                    "line": 3,
                    "kind": "runtime",
                    "root_cause": "Object 'b' not found: b is not defined",
                    "confidence": 0.95,
                }
            ],
            "short_overlay": "b is never assigned",
        },
        "correction": {
            "type": "correction",
            "corrected_code": "a <- 3\nb <- 4\nprint(b)",
            "patch_summary": "Define b before printing it",
            "fixed_lines": [2],
            "tests": [{"id": "t1", "input": "", "expected": "4"}],
            "exec_safe": True,
        },
        "explanation": {"type": "explanation", "text": "R looks up b and finds nothing."},
        "reasoningSteps": ["Read line 3", "b is not assigned anywhere", "Add an assignment"],
        "followUpSuggestion": "Try printing a variable inside a function.",
    }


@pytest.fixture
def analysis_text(analysis_payload: dict) -> str:
    return json.dumps(analysis_payload)


@pytest.fixture
def practice_text() -> str:
    return json.dumps(
        {
            "type": "practice",
            "problems": [
                {
                    "id": "p1",
                    "prompt": "What does print(x) show if x was never assigned?",
                    "hint": "Think about lookup.",
                    "solution": "An error: object 'x' not found",
                    "grader": "fuzzy",
                }
            ],
        }
    )
