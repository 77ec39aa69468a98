"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  session_id TEXT PRIMARY KEY,
  owner_id TEXT NOT NULL,
  persona_id TEXT NOT NULL,
  job_description TEXT NOT NULL DEFAULT '',
  resume_text TEXT NOT NULL DEFAULT '',
  question_budget INTEGER NOT NULL,
  duration_in_seconds INTEGER NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  end_time TEXT,
  current_question_index INTEGER NOT NULL DEFAULT 0,
  segments_schema INTEGER NOT NULL,
  segments_json TEXT NOT NULL,
  draft_response TEXT,
  last_activity_at TEXT,
  version INTEGER NOT NULL DEFAULT 0
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_interview_sessions_owner
  ON interview_sessions (owner_id, created_at);
""",
]


def migrate(db_path: str = "data/interview.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
