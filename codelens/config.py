"""Configuration loading for codelens.

Config sources (in priority order):
1. Explicit arguments passed to functions
2. Environment variables (ANTHROPIC_API_KEY, CODELENS_MODEL, etc.)
3. .env file in current directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from codelens.assistant.resilience import MAX_RETRIES, RETRY_BASE_DELAY
from codelens.llm.client import DEFAULT_MODEL

load_dotenv()

DEFAULT_DB_PATH = Path("codelens.db")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass
class Config:
    anthropic_api_key: str = ""
    model: str = DEFAULT_MODEL
    db_path: Path = DEFAULT_DB_PATH
    max_retries: int = MAX_RETRIES
    retry_base_delay: float = RETRY_BASE_DELAY  # seconds

    @classmethod
    def load(cls) -> Config:
        return cls(
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            model=os.getenv("CODELENS_MODEL", DEFAULT_MODEL),
            db_path=Path(os.getenv("CODELENS_DB_PATH", str(DEFAULT_DB_PATH))),
            max_retries=_env_int("CODELENS_MAX_RETRIES", MAX_RETRIES),
            retry_base_delay=_env_float("CODELENS_RETRY_DELAY", RETRY_BASE_DELAY),
        )

    def validate(self) -> list[str]:
        """Return a list of missing config issues."""
        issues = []
        if not self.anthropic_api_key:
            issues.append("Anthropic API key not set (ANTHROPIC_API_KEY)")
        if self.max_retries < 1:
            issues.append("CODELENS_MAX_RETRIES must be at least 1")
        return issues
