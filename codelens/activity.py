"""Activity logging for assistant tool calls.

Logs every MCP tool invocation to a JSONL file so humans can see what their
agent asked codelens and what came back. Each line is a JSON object with
timestamp, tool name, arguments, result preview, error, mock flag and duration.

The log file lives alongside codelens.db by default.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

RESULT_PREVIEW_LIMIT = 500
ARGUMENT_PREVIEW_LIMIT = 200


def _resolve_log_path() -> Path:
    """Find the log file path, checking env var then defaulting next to the DB."""
    env_path = os.getenv("CODELENS_LOG_PATH")
    if env_path:
        return Path(env_path)

    db_path = os.getenv("CODELENS_DB_PATH", "codelens.db")
    return Path(db_path).parent / "codelens-activity.jsonl"


def _preview_arguments(arguments: dict) -> dict:
    # Source code and images can be large; keep the log readable.
    preview = {}
    for key, value in arguments.items():
        if isinstance(value, str) and len(value) > ARGUMENT_PREVIEW_LIMIT:
            value = value[:ARGUMENT_PREVIEW_LIMIT] + "..."
        preview[key] = value
    return preview


def log_tool_call(
    tool_name: str,
    arguments: dict,
    result_text: str,
    error: str | None,
    duration_ms: int,
    is_mock: bool = False,
) -> None:
    """Append a tool call entry to the activity log. Never raises."""
    try:
        entry = {
            "timestamp": datetime.now().isoformat(),
            "tool_name": tool_name,
            "arguments": _preview_arguments(arguments),
            "result_preview": result_text[:RESULT_PREVIEW_LIMIT] if result_text else "",
            "error": error,
            "is_mock": is_mock,
            "duration_ms": duration_ms,
        }
        log_path = _resolve_log_path()
        with open(log_path, "a") as f:
            f.write(json.dumps(entry, default=str) + "\n")
    except OSError as e:
        logger.debug(f"Could not write activity log: {e}")


def read_activity_log(
    limit: int = 20,
    tool_name: str | None = None,
    log_path: Path | None = None,
) -> list[dict]:
    """Read recent activity log entries.

    Returns entries in reverse chronological order (most recent first).
    """
    path = log_path or _resolve_log_path()
    if not path.exists():
        return []

    entries: list[dict] = []
    for line in path.read_text().splitlines():
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue

        if tool_name and entry.get("tool_name") != tool_name:
            continue

        entries.append(entry)

    entries.reverse()
    return entries[:limit]
