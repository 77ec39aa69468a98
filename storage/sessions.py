"""Persistence helpers for interview session records."""
from __future__ import annotations

import datetime as dt
import sqlite3
from typing import List, Optional

from pydantic import BaseModel, Field

from .sqlite import get_conn


class StoreConflict(RuntimeError):  # Conditional update lost against a newer version
    def __init__(self, session_id: str, expected_version: int) -> None:
        super().__init__(f"Session {session_id} changed since version {expected_version}")
        self.session_id = session_id
        self.expected_version = expected_version


class SessionRecord(BaseModel):
    session_id: str
    owner_id: str
    persona_id: str
    job_description: str = ""
    resume_text: str = ""
    question_budget: int = Field(ge=1)
    duration_in_seconds: int = Field(ge=0)
    created_at: str
    updated_at: str
    end_time: Optional[str] = None
    current_question_index: int = 0
    segments_schema: int
    segments_json: str
    draft_response: Optional[str] = None
    last_activity_at: Optional[str] = None
    version: int = 0


_COLUMNS = (
    "session_id, owner_id, persona_id, job_description, resume_text, question_budget,"
    " duration_in_seconds, created_at, updated_at, end_time, current_question_index,"
    " segments_schema, segments_json, draft_response, last_activity_at, version"
)


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def _record(row: sqlite3.Row) -> SessionRecord:
    return SessionRecord(**{key: row[key] for key in row.keys()})


def insert_session(record: SessionRecord) -> None:
    """Insert a brand new session row; raises ``sqlite3.IntegrityError`` on duplicates."""

    with get_conn() as conn:
        conn.execute(
            f"INSERT INTO interview_sessions ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.session_id,
                record.owner_id,
                record.persona_id,
                record.job_description,
                record.resume_text,
                record.question_budget,
                record.duration_in_seconds,
                record.created_at,
                record.updated_at,
                record.end_time,
                record.current_question_index,
                record.segments_schema,
                record.segments_json,
                record.draft_response,
                record.last_activity_at,
                record.version,
            ),
        )


def fetch_session(session_id: str) -> Optional[SessionRecord]:
    with get_conn() as conn:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM interview_sessions WHERE session_id = ?",
            (session_id,),
        ).fetchone()
    return _record(row) if row is not None else None


def update_session(record: SessionRecord, expected_version: int) -> int:
    """Write every mutable column in one statement guarded by ``expected_version``.

    Returns the new version. Raises :class:`StoreConflict` when no row with the
    expected version exists any more.
    """

    new_version = expected_version + 1
    with get_conn() as conn:
        cur = conn.execute(
            """UPDATE interview_sessions
               SET end_time = ?, current_question_index = ?, segments_schema = ?, segments_json = ?,
                   draft_response = ?, last_activity_at = ?, updated_at = ?, version = ?
               WHERE session_id = ? AND version = ?""",
            (
                record.end_time,
                record.current_question_index,
                record.segments_schema,
                record.segments_json,
                record.draft_response,
                record.last_activity_at,
                _now(),
                new_version,
                record.session_id,
                expected_version,
            ),
        )
        if cur.rowcount != 1:
            raise StoreConflict(record.session_id, expected_version)
    return new_version


def list_sessions(owner_id: str, limit: int = 50) -> List[SessionRecord]:
    with get_conn() as conn:
        rows = conn.execute(
            f"""SELECT {_COLUMNS} FROM interview_sessions
                WHERE owner_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?""",
            (owner_id, limit),
        ).fetchall()
    return [_record(row) for row in rows]


__all__ = [
    "SessionRecord",
    "StoreConflict",
    "fetch_session",
    "insert_session",
    "list_sessions",
    "update_session",
]
