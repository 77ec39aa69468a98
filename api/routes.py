"""FastAPI routes for interview session control."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, NoReturn

from fastapi import APIRouter, Depends, Header, HTTPException

from api.schemas import (
    CreateSessionReq,
    PersonaSummary,
    SaveReq,
    SessionListResp,
    SessionSummary,
    StartReq,
    SubmitReq,
)
from config.settings import settings
from services.sessions import list_sessions, new_session
from session_engine import (
    QuestionSegmentStore,
    SaveResult,
    Session,
    SessionEngine,
    SessionError,
    SessionStateView,
    StartResult,
    SubmitResult,
    TopicResult,
    list_personas,
)
from session_engine.agents import LlmInterviewer


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview-sessions")

ERROR_STATUS: Dict[str, int] = {
    "not_found": 404,
    "unauthorized": 403,
    "validation_error": 400,
    "generation_failed": 502,
    "session_ended": 409,
    "concurrent_modification": 409,
    "schema_error": 500,
}


@lru_cache(maxsize=1)
def get_store() -> QuestionSegmentStore:
    return QuestionSegmentStore()


@lru_cache(maxsize=1)
def get_engine() -> SessionEngine:
    interviewer = LlmInterviewer.from_config(Path(settings.APP_CONFIG_PATH))
    return SessionEngine(interviewer, get_store())


def caller_id(x_user_id: str = Header(..., min_length=1)) -> str:
    return x_user_id.strip()


def _raise(exc: SessionError) -> NoReturn:
    status = ERROR_STATUS.get(exc.kind, 500)
    if status >= 500:
        logger.error("Session error %s: %s", exc.kind, exc.message)
    raise HTTPException(status_code=status, detail=exc.to_payload()) from exc


def _summary(session: Session) -> SessionSummary:
    return SessionSummary(
        session_id=session.session_id,
        persona_id=session.persona_id,
        created_at=session.created_at,
        end_time=session.end_time,
        question_budget=session.total_question_budget,
        questions_started=session.started_count(),
        is_active=not session.is_ended,
    )


@router.get("/personas", response_model=List[PersonaSummary])
def personas() -> List[PersonaSummary]:
    return [PersonaSummary(id=p.id, name=p.name, description=p.description) for p in list_personas()]


@router.post("", response_model=SessionSummary, status_code=201)
def create(
    req: CreateSessionReq,
    user: str = Depends(caller_id),
    store: QuestionSegmentStore = Depends(get_store),
) -> SessionSummary:
    try:
        session = new_session(
            store,
            user,
            persona_id=req.persona_id,
            job_description=req.job_description,
            resume_text=req.resume_text,
            total_question_budget=req.total_question_budget,
            duration_in_seconds=req.duration_in_seconds,
        )
    except SessionError as exc:
        _raise(exc)
    return _summary(session)


@router.get("", response_model=SessionListResp)
def index(
    user: str = Depends(caller_id),
    store: QuestionSegmentStore = Depends(get_store),
) -> SessionListResp:
    try:
        sessions = list_sessions(store, user)
    except SessionError as exc:
        _raise(exc)
    return SessionListResp(sessions=[_summary(session) for session in sessions])


@router.post("/{session_id}/start", response_model=StartResult)
def start(
    session_id: str,
    req: StartReq,
    user: str = Depends(caller_id),
    engine: SessionEngine = Depends(get_engine),
) -> StartResult:
    try:
        return engine.start_session(
            session_id, user, persona_id=req.persona_id, batch_size=req.batch_size, mode=req.mode
        )
    except SessionError as exc:
        _raise(exc)


@router.post("/{session_id}/responses", response_model=SubmitResult)
def submit(
    session_id: str,
    req: SubmitReq,
    user: str = Depends(caller_id),
    engine: SessionEngine = Depends(get_engine),
) -> SubmitResult:
    try:
        return engine.submit_response(session_id, user, req.user_response)
    except SessionError as exc:
        _raise(exc)


@router.post("/{session_id}/advance", response_model=TopicResult)
def advance(
    session_id: str,
    user: str = Depends(caller_id),
    engine: SessionEngine = Depends(get_engine),
) -> TopicResult:
    try:
        return engine.advance_topic(session_id, user)
    except SessionError as exc:
        _raise(exc)


@router.post("/{session_id}/next", response_model=TopicResult)
def next_question(
    session_id: str,
    user: str = Depends(caller_id),
    engine: SessionEngine = Depends(get_engine),
) -> TopicResult:
    try:
        return engine.move_to_next_pregenerated(session_id, user)
    except SessionError as exc:
        _raise(exc)


@router.get("/{session_id}/state", response_model=SessionStateView)
def state(
    session_id: str,
    user: str = Depends(caller_id),
    engine: SessionEngine = Depends(get_engine),
) -> SessionStateView:
    try:
        return engine.get_active_session_state(session_id, user)
    except SessionError as exc:
        _raise(exc)


@router.post("/{session_id}/save", response_model=SaveResult)
def save(
    session_id: str,
    req: SaveReq,
    user: str = Depends(caller_id),
    engine: SessionEngine = Depends(get_engine),
) -> SaveResult:
    try:
        return engine.save_session(
            session_id, user, current_response=req.current_response, end_session=req.end_session
        )
    except SessionError as exc:
        _raise(exc)
