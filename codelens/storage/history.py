"""Persistence for the analysis history and user preferences."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from dataclasses import asdict, dataclass, fields
from datetime import datetime

from codelens.assistant.models import AUTO_DETECT, AnalysisResult
from codelens.assistant.normalizer import SchemaError, analysis_from_payload

logger = logging.getLogger(__name__)

MAX_HISTORY = 5


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    code: str
    result: AnalysisResult
    created_at: datetime


@dataclass
class Preferences:
    language: str = AUTO_DETECT
    mode: str = "beginner"
    collapse_practice: bool = False
    show_reasoning_steps: bool = True
    show_detailed_traces: bool = False


class HistoryStore:
    """Data access layer for history entries and preferences."""

    def __init__(self, conn: sqlite3.Connection, limit: int = MAX_HISTORY) -> None:
        self._conn = conn
        self._limit = limit

    def add(self, code: str, result: AnalysisResult, created_at: datetime | None = None) -> HistoryEntry:
        """Store an analysis and drop anything beyond the newest ``limit`` entries."""
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            code=code,
            result=result,
            created_at=created_at or datetime.now(),
        )
        self._conn.execute(
            "INSERT INTO history (id, code, result, created_at) VALUES (?, ?, ?, ?)",
            (entry.id, entry.code, json.dumps(result.to_dict()), entry.created_at.isoformat()),
        )
        self._conn.execute(
            """DELETE FROM history WHERE id NOT IN (
                SELECT id FROM history ORDER BY created_at DESC LIMIT ?
            )""",
            (self._limit,),
        )
        self._conn.commit()
        return entry

    def list(self) -> list[HistoryEntry]:
        """Return stored entries, newest first. Unreadable rows are skipped."""
        rows = self._conn.execute(
            "SELECT * FROM history ORDER BY created_at DESC LIMIT ?", (self._limit,)
        ).fetchall()
        entries: list[HistoryEntry] = []
        for row in rows:
            entry = self._row_to_entry(row)
            if entry is not None:
                entries.append(entry)
        return entries

    def delete(self, entry_id: str) -> None:
        self._conn.execute("DELETE FROM history WHERE id = ?", (entry_id,))
        self._conn.commit()

    def clear(self) -> None:
        self._conn.execute("DELETE FROM history")
        self._conn.commit()

    def get_preferences(self) -> Preferences:
        rows = self._conn.execute("SELECT key, value FROM preferences").fetchall()
        stored = {}
        for row in rows:
            try:
                stored[row["key"]] = json.loads(row["value"])
            except json.JSONDecodeError:
                logger.warning(f"Ignoring unreadable preference {row['key']}")
        known = {f.name for f in fields(Preferences)}
        return Preferences(**{k: v for k, v in stored.items() if k in known})

    def save_preferences(self, prefs: Preferences) -> None:
        for key, value in asdict(prefs).items():
            self._conn.execute(
                "INSERT OR REPLACE INTO preferences (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
        self._conn.commit()

    def _row_to_entry(self, row: sqlite3.Row) -> HistoryEntry | None:
        try:
            payload = json.loads(row["result"])
        except json.JSONDecodeError:
            logger.warning(f"Skipping history entry {row['id']}: unreadable result")
            return None
        parsed = analysis_from_payload(payload) if isinstance(payload, dict) else SchemaError("not an object")
        if isinstance(parsed, SchemaError):
            logger.warning(f"Skipping history entry {row['id']}: {parsed.detail}")
            return None
        return HistoryEntry(
            id=row["id"],
            code=row["code"],
            result=parsed.value,
            created_at=datetime.fromisoformat(row["created_at"]),
        )
