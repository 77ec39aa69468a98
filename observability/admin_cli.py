"""Lightweight CLI helpers for inspecting stored interview sessions."""
from __future__ import annotations

import argparse
import json
import sqlite3

from config.settings import settings


def tail_sessions(limit: int = 20) -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT updated_at, session_id, owner_id, persona_id, current_question_index,
                   question_budget, end_time, version
            FROM interview_sessions
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (limit,),
        )
        for row in cursor.fetchall():
            ts, session_id, owner_id, persona_id, index, budget, end_time, version = row
            status = "ended" if end_time else "active"
            print(
                f"[{ts}] {session_id} owner={owner_id} persona={persona_id} q={index + 1}/{budget} {status} v{version}"
            )
    finally:
        conn.close()


def dump_session(session_id: str) -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT segments_schema, segments_json FROM interview_sessions WHERE session_id = ?",
            (session_id,),
        )
        row = cursor.fetchone()
        if row is None:
            print(f"session {session_id} not found")
            return
        schema, segments_json = row
        print(f"segments_schema={schema}")
        for segment in json.loads(segments_json):
            print(f"{segment['question_id']}: {segment['question']}")
            for turn in segment.get("conversation", []):
                print(f"  {turn['role']}/{turn['message_type']}: {turn['content']}")
    finally:
        conn.close()


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--dump", help="Print the transcript of one session")
    args = parser.parse_args()

    if args.tail_sessions:
        tail_sessions(args.tail_sessions)
    if args.dump:
        dump_session(args.dump)


if __name__ == "__main__":
    main()
