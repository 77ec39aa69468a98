from __future__ import annotations  # Plain result shapes returned by session engine operations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from .models import ConversationTurn


class QuestionView(BaseModel):  # Current question as shown to the candidate
    session_id: str
    question: str
    key_points: List[str] = Field(default_factory=list)
    question_number: int
    total_questions: int
    conversation: List[ConversationTurn] = Field(default_factory=list)


class StartResult(QuestionView):  # Outcome of starting a session
    question_budget: int
    mode: str


class SubmitResult(BaseModel):  # Interviewer reply to a candidate answer
    session_id: str
    follow_up_question: str
    analysis: str
    feedback_points: List[str] = Field(default_factory=list)
    suggested_alternative: str | None = None
    question_number: int
    conversation: List[ConversationTurn] = Field(default_factory=list)
    can_proceed_to_next_topic: bool


class TopicResult(BaseModel):  # Outcome of moving to the next topic
    session_id: str
    is_complete: bool
    message: str | None = None
    question: str | None = None
    key_points: List[str] = Field(default_factory=list)
    question_number: int
    total_questions: int
    conversation: List[ConversationTurn] = Field(default_factory=list)


class SessionStateView(BaseModel):  # Read-only projection of the active segment
    session_id: str
    is_active: bool
    is_started: bool
    question: str | None = None
    key_points: List[str] = Field(default_factory=list)
    conversation: List[ConversationTurn] = Field(default_factory=list)
    question_number: int
    total_questions: int
    question_budget: int
    can_proceed_to_next_topic: bool
    draft_response: str | None = None
    end_time: datetime | None = None


class SaveResult(BaseModel):  # Acknowledgement of a heartbeat or end request
    saved: bool = True
    ended: bool
    timestamp: datetime


__all__ = [
    "QuestionView",
    "SaveResult",
    "SessionStateView",
    "StartResult",
    "SubmitResult",
    "TopicResult",
]
