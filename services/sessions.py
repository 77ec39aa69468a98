"""Helpers for creating and listing interview sessions."""
from __future__ import annotations

import uuid
from typing import List, Optional

from config.settings import settings
from session_engine import QuestionSegmentStore, Session, SessionValidationError, get_persona


def new_session(
    store: QuestionSegmentStore,
    owner_id: str,
    *,
    persona_id: Optional[str] = None,
    job_description: str = "",
    resume_text: str = "",
    total_question_budget: Optional[int] = None,
    duration_in_seconds: Optional[int] = None,
) -> Session:
    """Create an unstarted session with a generated identifier."""

    if not (owner_id or "").strip():
        raise SessionValidationError("owner_id is required")
    persona = get_persona(persona_id or settings.PERSONA_DEFAULT)
    budget = settings.TOTAL_QUESTION_BUDGET if total_question_budget is None else total_question_budget
    if budget < 1:
        raise SessionValidationError("total_question_budget must be at least 1")
    session = Session(
        session_id=str(uuid.uuid4()),
        owner_id=owner_id,
        persona_id=persona.id,
        job_description=job_description.strip(),
        resume_text=resume_text.strip(),
        total_question_budget=budget,
        duration_in_seconds=settings.DEFAULT_DURATION_SECONDS if duration_in_seconds is None else duration_in_seconds,
    )
    return store.create(session)


def list_sessions(store: QuestionSegmentStore, owner_id: str, limit: int = 50) -> List[Session]:
    """Return the owner's sessions, newest first."""

    return store.list_for_owner(owner_id, limit=limit)
