"""
SQLite link-state store adapter.

Keeps a single row with the LMS linkage so it survives process restarts.
Collection progress, errors and schedule items are not persisted.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from typing import Any

from inhash.domain.entities import LinkState


def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


class SQLiteLinkStateStore:
    def __init__(self, db_path: str):
        self.db_path = db_path
        conn = self._get_conn()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS lms_link_state (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    is_lms_linked INTEGER NOT NULL,
                    linked_user_id TEXT,
                    linked_at TEXT,
                    warnings_json TEXT NOT NULL DEFAULT '[]',
                    updated_at TEXT NOT NULL
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    def load(self) -> LinkState | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM lms_link_state WHERE id = 1").fetchone()
        finally:
            conn.close()
        if row is None:
            return None

        linked = bool(row["is_lms_linked"])
        return LinkState(
            is_lms_linked=linked,
            collection_progress=100 if linked else 0,
            warnings=tuple(json.loads(row["warnings_json"])),
            linked_user_id=row["linked_user_id"],
            linked_at=datetime.fromisoformat(row["linked_at"]) if row["linked_at"] else None,
        )

    def save(self, state: LinkState) -> None:
        linked_at = state.linked_at if state.is_lms_linked else None
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO lms_link_state (
                    id, is_lms_linked, linked_user_id, linked_at, warnings_json, updated_at
                ) VALUES (1, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    is_lms_linked=excluded.is_lms_linked,
                    linked_user_id=excluded.linked_user_id,
                    linked_at=excluded.linked_at,
                    warnings_json=excluded.warnings_json,
                    updated_at=excluded.updated_at
                """,
                (
                    int(state.is_lms_linked),
                    state.linked_user_id if state.is_lms_linked else None,
                    linked_at.isoformat() if linked_at else None,
                    json.dumps(list(state.warnings) if state.is_lms_linked else []),
                    datetime.now(UTC).isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()
