from __future__ import annotations  # Versioned session persistence with per-session serialisation

import json
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from pydantic import TypeAdapter, ValidationError

from observability import log_event
from storage.sessions import (
    SessionRecord,
    StoreConflict,
    fetch_session,
    insert_session,
    list_sessions,
    update_session,
)

from .errors import ConcurrentModification, NotFound, SchemaError
from .models import SEGMENTS_SCHEMA_VERSION, QuestionSegment, Session, invariant_violations, utcnow


logger = logging.getLogger(__name__)

_SEGMENTS = TypeAdapter(List[QuestionSegment])


class QuestionSegmentStore:  # Reads and writes sessions as single atomic records
    def __init__(self) -> None:
        self._locks: Dict[str, List] = {}  # session_id -> [lock, holders and waiters]
        self._guard = threading.Lock()

    def _acquire_entry(self, session_id: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[session_id] = entry
            entry[1] += 1
        return entry[0]

    def _release_entry(self, session_id: str) -> None:
        with self._guard:
            entry = self._locks[session_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[session_id]

    @contextmanager
    def locked(self, session_id: str) -> Iterator[None]:  # Serialise mutations of one session in-process
        lock = self._acquire_entry(session_id)
        try:
            with lock:
                yield
        finally:
            self._release_entry(session_id)

    def create(self, session: Session) -> Session:  # Persist a freshly created session
        _ensure_consistent(session)
        insert_session(_encode(session))
        log_event("session_created", session.session_id, version=session.version)
        return session

    def load(self, session_id: str) -> Session:
        record = fetch_session(session_id)
        if record is None:
            raise NotFound(f"Session {session_id} not found", session_id=session_id)
        session = _decode(record)
        problems = invariant_violations(session)
        if problems:
            raise SchemaError(
                f"Stored session {session_id} is inconsistent: {'; '.join(problems)}",
                session_id=session_id,
            )
        return session

    def save(self, session: Session) -> Session:
        """Write segments, index pointer and end time together.

        ``session.version`` is the version the caller loaded; the returned copy
        carries the new version.
        """

        _ensure_consistent(session)
        try:
            new_version = update_session(_encode(session), expected_version=session.version)
        except StoreConflict as exc:
            log_event("write_conflict", session.session_id, level=logging.WARNING, version=session.version)
            raise ConcurrentModification(
                "The session was modified by another request; reload and retry",
                session_id=session.session_id,
            ) from exc
        return session.model_copy(update={"version": new_version})

    def list_for_owner(self, owner_id: str, limit: int = 50) -> List[Session]:
        return [_decode(record) for record in list_sessions(owner_id, limit=limit)]


def _ensure_consistent(session: Session) -> None:
    problems = invariant_violations(session)
    if problems:
        raise SchemaError(
            f"Refusing to persist inconsistent session: {'; '.join(problems)}",
            session_id=session.session_id,
        )


def _encode(session: Session) -> SessionRecord:
    segments_json = _SEGMENTS.dump_json(session.question_segments).decode("utf-8")
    return SessionRecord(
        session_id=session.session_id,
        owner_id=session.owner_id,
        persona_id=session.persona_id,
        job_description=session.job_description,
        resume_text=session.resume_text,
        question_budget=session.total_question_budget,
        duration_in_seconds=session.duration_in_seconds,
        created_at=session.created_at.isoformat(),
        updated_at=utcnow().isoformat(),
        end_time=session.end_time.isoformat() if session.end_time else None,
        current_question_index=session.current_question_index,
        segments_schema=SEGMENTS_SCHEMA_VERSION,
        segments_json=segments_json,
        draft_response=session.draft_response,
        last_activity_at=session.last_activity_at.isoformat() if session.last_activity_at else None,
        version=session.version,
    )


def _decode(record: SessionRecord) -> Session:
    if record.segments_schema != SEGMENTS_SCHEMA_VERSION:
        raise SchemaError(
            f"Session {record.session_id} uses unknown segment schema {record.segments_schema}",
            session_id=record.session_id,
        )
    try:
        segments = _SEGMENTS.validate_json(record.segments_json)
        return Session(
            session_id=record.session_id,
            owner_id=record.owner_id,
            persona_id=record.persona_id,
            job_description=record.job_description,
            resume_text=record.resume_text,
            question_segments=segments,
            current_question_index=record.current_question_index,
            end_time=record.end_time,
            total_question_budget=record.question_budget,
            duration_in_seconds=record.duration_in_seconds,
            created_at=record.created_at,
            draft_response=record.draft_response,
            last_activity_at=record.last_activity_at,
            version=record.version,
        )
    except (ValidationError, json.JSONDecodeError) as exc:
        logger.error("Undecodable session %s: %s", record.session_id, exc)
        raise SchemaError(
            f"Stored segments for session {record.session_id} could not be decoded",
            session_id=record.session_id,
        ) from exc


__all__ = ["QuestionSegmentStore"]
