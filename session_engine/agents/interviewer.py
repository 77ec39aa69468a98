from __future__ import annotations  # LLM-backed interviewer producing tagged question text

from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, Optional, Sequence

from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from config import LlmRoute, load_routes
from llm_gateway import HttpClient, text_runnable
from ..models import BATCH_TYPE_ROTATION, ConversationTurn
from ..personas import Persona
from .gateway import InterviewContext
from .toolkit import bullet_list, clamp_text, transcript_messages


FIRST_QUESTION_KEY = "session_engine.first_question"  # Registry keys resolved from app_config.json
FOLLOW_UP_KEY = "session_engine.follow_up"
NEW_TOPIC_KEY = "session_engine.new_topic"
BATCH_KEY = "session_engine.batch"
INTERVIEWER_KEYS = (FIRST_QUESTION_KEY, FOLLOW_UP_KEY, NEW_TOPIC_KEY, BATCH_KEY)

RESPONSE_FORMAT = dedent(  # Tagged layout the response parser understands
    """
    RESPONSE FORMAT. Always use these exact tags and nothing outside them:
    <QUESTION>The interview question, without greeting or preamble</QUESTION>
    <KEY_POINTS>
    - First point the candidate should address
    - Second point the candidate should address
    - Third point the candidate should address
    </KEY_POINTS>
    When replying to an answer, also include:
    <ANALYSIS>Your analysis of the candidate's latest answer</ANALYSIS>
    <FEEDBACK>
    - Specific feedback point
    - Another specific feedback point
    </FEEDBACK>
    <SUGGESTED_ALTERNATIVE>A stronger way the candidate could have answered</SUGGESTED_ALTERNATIVE>
    <FOLLOW_UP>A probing follow-up question on the same topic</FOLLOW_UP>
    """
).strip()

FIRST_QUESTION_TASK = dedent(
    """
    Start the interview. Ask one opening question grounded in the job description and resume.
    Include only the QUESTION and KEY_POINTS sections.
    """
).strip()

FOLLOW_UP_TASK = dedent(
    """
    The candidate just answered:
    {answer}

    Analyse the answer, give concrete feedback and ask one follow-up question that digs deeper into the same topic.
    Include the ANALYSIS, FEEDBACK, SUGGESTED_ALTERNATIVE and FOLLOW_UP sections.
    """
).strip()

NEW_TOPIC_TASK = dedent(
    """
    Move the interview to a new topic. Topics already covered:
    {covered}

    Ask one question on a topic not listed above that is relevant to the role.
    Include only the QUESTION and KEY_POINTS sections.
    """
).strip()

BATCH_TASK = dedent(
    """
    Prepare the full interview up front. Write exactly {count} independent questions, in this order of focus:
    {focus}

    Repeat the QUESTION and KEY_POINTS pair once per question. Do not number the questions.
    """
).strip()


def build_system_instruction(persona: Persona) -> str:  # Persona identity plus the response layout
    return (
        f"You are an AI simulating an interview as a {persona.name}. Conduct a realistic interview based on the"
        " job description and resume provided, taking the conversation history into account.\n\n"
        f"Persona instructions:\n{persona.system_prompt}\n\n{RESPONSE_FORMAT}"
    )


class LlmInterviewer:  # AiGateway implementation over configured LLM routes
    def __init__(self, routes: Dict[str, LlmRoute], *, client: Optional[HttpClient] = None) -> None:
        missing = [key for key in INTERVIEWER_KEYS if key not in routes]
        if missing:
            raise KeyError(f"Interviewer routes missing for: {', '.join(missing)}")
        self._prompt = ChatPromptTemplate.from_messages(
            [
                ("system", "{instructions}"),
                (
                    "human",
                    "Job Description:\n<JD>\n{job_description}\n</JD>\n\n"
                    "Candidate Resume:\n<RESUME>\n{resume_text}\n</RESUME>",
                ),
                MessagesPlaceholder("history", optional=True),
                ("human", "{task}"),
            ]
        )
        self._chains = {key: self._prompt | text_runnable(routes[key], client=client) for key in INTERVIEWER_KEYS}

    @classmethod
    def from_config(cls, path: Path, *, client: Optional[HttpClient] = None) -> "LlmInterviewer":
        return cls(load_routes(path, INTERVIEWER_KEYS), client=client)

    def generate_first_question(self, context: InterviewContext) -> str:
        return self._run(FIRST_QUESTION_KEY, context, FIRST_QUESTION_TASK)

    def generate_follow_up(
        self,
        context: InterviewContext,
        history: Sequence[ConversationTurn],
        user_response: str,
    ) -> str:
        task = FOLLOW_UP_TASK.format(answer=user_response.strip())
        return self._run(FOLLOW_UP_KEY, context, task, history)

    def generate_new_topic(
        self,
        context: InterviewContext,
        history: Sequence[ConversationTurn],
        covered_topics: Sequence[str],
    ) -> str:
        task = NEW_TOPIC_TASK.format(covered=bullet_list(covered_topics))
        return self._run(NEW_TOPIC_KEY, context, task, history)

    def generate_batch(self, context: InterviewContext, count: int) -> str:
        focus = bullet_list(BATCH_TYPE_ROTATION[index % len(BATCH_TYPE_ROTATION)] for index in range(count))
        return self._run(BATCH_KEY, context, BATCH_TASK.format(count=count, focus=focus))

    def _run(
        self,
        key: str,
        context: InterviewContext,
        task: str,
        history: Sequence[ConversationTurn] = (),
    ) -> str:
        payload: Dict[str, Any] = {
            "instructions": build_system_instruction(context.persona),
            "job_description": clamp_text(context.job_description) or "Not provided.",
            "resume_text": clamp_text(context.resume_text) or "Not provided.",
            "history": transcript_messages(history),
            "task": task,
        }
        return self._chains[key].invoke(payload)


__all__ = [
    "BATCH_KEY",
    "FIRST_QUESTION_KEY",
    "FOLLOW_UP_KEY",
    "INTERVIEWER_KEYS",
    "LlmInterviewer",
    "NEW_TOPIC_KEY",
    "RESPONSE_FORMAT",
    "build_system_instruction",
]
