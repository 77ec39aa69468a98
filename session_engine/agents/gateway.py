from __future__ import annotations  # AI gateway contract consumed by the session engine

from typing import List, Protocol, Sequence, Union

from pydantic import BaseModel

from ..models import ConversationTurn, QuestionType
from ..parser import BatchResult, ConversationalResult, FirstQuestionResult, TopicalQuestionResult
from ..personas import Persona


class InterviewContext(BaseModel):  # Everything a generator needs to stay on-role
    session_id: str
    persona: Persona
    job_description: str = ""
    resume_text: str = ""
    question_type: QuestionType | None = None


FirstQuestionOutput = Union[str, FirstQuestionResult]
FollowUpOutput = Union[str, ConversationalResult]
NewTopicOutput = Union[str, TopicalQuestionResult]
BatchOutput = Union[str, BatchResult, List[TopicalQuestionResult]]


class AiGateway(Protocol):
    """Producer of interviewer text.

    Implementations may return raw tagged text, which the engine parses, or
    already-typed results. Any failure may be raised as any exception; the
    engine reports it as ``GenerationFailed``.
    """

    def generate_first_question(self, context: InterviewContext) -> FirstQuestionOutput: ...

    def generate_follow_up(
        self,
        context: InterviewContext,
        history: Sequence[ConversationTurn],
        user_response: str,
    ) -> FollowUpOutput: ...

    def generate_new_topic(
        self,
        context: InterviewContext,
        history: Sequence[ConversationTurn],
        covered_topics: Sequence[str],
    ) -> NewTopicOutput: ...

    def generate_batch(self, context: InterviewContext, count: int) -> BatchOutput: ...


__all__ = [
    "AiGateway",
    "BatchOutput",
    "FirstQuestionOutput",
    "FollowUpOutput",
    "InterviewContext",
    "NewTopicOutput",
]
