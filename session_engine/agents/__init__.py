from __future__ import annotations  # Interviewer agent exports

from .gateway import AiGateway, InterviewContext
from .interviewer import (
    BATCH_KEY,
    FIRST_QUESTION_KEY,
    FOLLOW_UP_KEY,
    INTERVIEWER_KEYS,
    NEW_TOPIC_KEY,
    LlmInterviewer,
    build_system_instruction,
)

__all__ = [
    "AiGateway",
    "BATCH_KEY",
    "FIRST_QUESTION_KEY",
    "FOLLOW_UP_KEY",
    "INTERVIEWER_KEYS",
    "InterviewContext",
    "LlmInterviewer",
    "NEW_TOPIC_KEY",
    "build_system_instruction",
]
