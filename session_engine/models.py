from __future__ import annotations  # Interview session state models and invariant helpers

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


TOPIC_ADVANCE_MIN_TURNS = 4  # Two user answers plus two interviewer turns on one topic
SEGMENTS_SCHEMA_VERSION = 1  # Tag stored next to the serialized segment list

Role = Literal["ai", "user"]
MessageType = Literal["question", "response"]
QuestionType = Literal["opening", "technical", "behavioral", "followup", "topical"]

BATCH_TYPE_ROTATION: tuple[QuestionType, ...] = ("opening", "technical", "behavioral")


def utcnow() -> datetime:  # Timezone-aware current instant
    return datetime.now(timezone.utc)


def make_question_id(number: int, question_type: str) -> str:  # Stable segment identifier
    return f"q{number}_{question_type}"


class ConversationTurn(BaseModel):  # One message inside a question segment
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    message_type: MessageType
    raw_text: str | None = None
    analysis: str | None = None
    feedback_points: List[str] = Field(default_factory=list)
    suggested_alternative: str | None = None


class QuestionSegment(BaseModel):  # One topic's question and its conversation
    question_id: str
    question_number: int = Field(ge=1)
    question_type: QuestionType
    question: str
    key_points: List[str] = Field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None
    conversation: List[ConversationTurn] = Field(default_factory=list)
    raw_text: str | None = None

    @property
    def is_started(self) -> bool:
        return self.start_time is not None

    @property
    def is_active(self) -> bool:
        return self.start_time is not None and self.end_time is None

    def seed_turn(self, at: datetime) -> ConversationTurn:  # Opening interviewer turn for this segment
        return ConversationTurn(
            role="ai",
            content=self.question,
            timestamp=at,
            message_type="question",
            raw_text=self.raw_text,
        )


class Session(BaseModel):  # Interview session aggregate
    session_id: str
    owner_id: str
    persona_id: str
    job_description: str = ""
    resume_text: str = ""
    question_segments: List[QuestionSegment] = Field(default_factory=list)
    current_question_index: int = Field(default=0, ge=0)
    end_time: datetime | None = None
    total_question_budget: int = Field(default=3, ge=1)
    duration_in_seconds: int = Field(default=1800, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    draft_response: str | None = None
    last_activity_at: datetime | None = None
    version: int = Field(default=0, ge=0)

    @field_validator("persona_id")
    @classmethod
    def _persona_not_blank(cls, value: str) -> str:  # Persona id is always required
        if not value.strip():
            raise ValueError("persona_id must not be blank")
        return value.strip()

    @property
    def is_ended(self) -> bool:
        return self.end_time is not None

    @property
    def is_started(self) -> bool:
        return bool(self.question_segments)

    def current_segment(self) -> Optional[QuestionSegment]:  # Segment under the index pointer, if any
        if not self.question_segments:
            return None
        if self.current_question_index >= len(self.question_segments):
            return None
        return self.question_segments[self.current_question_index]

    def active_segment(self) -> Optional[QuestionSegment]:  # Started and still open segment
        segment = self.current_segment()
        if segment is None or not segment.is_active:
            return None
        return segment

    def started_count(self) -> int:
        return sum(1 for segment in self.question_segments if segment.is_started)


def can_proceed_to_next_topic(segment: Optional[QuestionSegment]) -> bool:  # Topic advancement threshold
    if segment is None:
        return False
    return len(segment.conversation) >= TOPIC_ADVANCE_MIN_TURNS


def close_segment(segment: QuestionSegment, at: datetime) -> None:  # Mark a started segment as finished
    if segment.start_time is not None and segment.end_time is None:
        segment.end_time = at


def start_segment(segment: QuestionSegment, at: datetime) -> None:  # Make a segment current and seed it
    if segment.start_time is None:
        segment.start_time = at
    if not segment.conversation:
        segment.conversation.append(segment.seed_turn(at))


def invariant_violations(session: Session) -> List[str]:
    """Return human readable descriptions of every broken session invariant.

    Checked rules: segment numbering is ``index + 1``, at most one segment is
    active, started segments open with an interviewer question, the index
    pointer stays inside the segment list, segments before the pointer are
    closed and segments after it are unstarted.
    """

    problems: List[str] = []
    segments = session.question_segments
    if not segments:
        if session.current_question_index != 0:
            problems.append("current_question_index must be 0 before the session starts")
        return problems
    if session.current_question_index >= len(segments):
        problems.append(
            f"current_question_index {session.current_question_index} outside {len(segments)} segments"
        )
    active = 0
    for index, segment in enumerate(segments):
        label = segment.question_id or f"#{index}"
        if segment.question_number != index + 1:
            problems.append(f"segment {label} has number {segment.question_number}, expected {index + 1}")
        if segment.is_active:
            active += 1
        if segment.is_started:
            if not segment.conversation:
                problems.append(f"segment {label} started without a conversation")
            elif segment.conversation[0].role != "ai" or segment.conversation[0].message_type != "question":
                problems.append(f"segment {label} does not open with an interviewer question")
        elif segment.end_time is not None:
            problems.append(f"segment {label} closed without being started")
        if index < session.current_question_index and segment.is_active:
            problems.append(f"segment {label} before the current index is still open")
        if index > session.current_question_index and segment.is_started:
            problems.append(f"segment {label} after the current index was already started")
    if active > 1:
        problems.append(f"{active} segments are active at once")
    return problems


__all__ = [
    "BATCH_TYPE_ROTATION",
    "ConversationTurn",
    "MessageType",
    "QuestionSegment",
    "QuestionType",
    "Role",
    "SEGMENTS_SCHEMA_VERSION",
    "Session",
    "TOPIC_ADVANCE_MIN_TURNS",
    "can_proceed_to_next_topic",
    "close_segment",
    "invariant_violations",
    "make_question_id",
    "start_segment",
    "utcnow",
]
