"""Tests for the SQLite migration."""
from __future__ import annotations

import sqlite3

from config.settings import settings
from storage.migrate import migrate


def test_migrate_is_idempotent():
    migrate(settings.DB_PATH)
    migrate(settings.DB_PATH)
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        columns = {row[1] for row in conn.execute("PRAGMA table_info(interview_sessions)")}
    finally:
        conn.close()
    assert {"segments_schema", "segments_json", "current_question_index", "end_time", "version"} <= columns
