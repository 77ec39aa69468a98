"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


StartMode = Literal["batch", "single"]


class CreateSessionReq(BaseModel):
    persona_id: Optional[str] = None
    job_description: str = ""
    resume_text: str = ""
    total_question_budget: Optional[int] = Field(default=None, ge=1, le=20)
    duration_in_seconds: Optional[int] = Field(default=None, ge=60)


class StartReq(BaseModel):
    persona_id: Optional[str] = None
    batch_size: Optional[int] = Field(default=None, ge=1, le=20)
    mode: Optional[StartMode] = None


class SubmitReq(BaseModel):
    user_response: str


class SaveReq(BaseModel):
    current_response: Optional[str] = None
    end_session: bool = False


class PersonaSummary(BaseModel):
    id: str
    name: str
    description: str


class SessionSummary(BaseModel):
    session_id: str
    persona_id: str
    created_at: datetime
    end_time: Optional[datetime] = None
    question_budget: int
    questions_started: int
    is_active: bool


class SessionListResp(BaseModel):
    sessions: List[SessionSummary] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    kind: str
    message: str
    retryable: bool = False
