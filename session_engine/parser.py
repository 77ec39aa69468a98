"""Tagged-text parser turning raw interviewer model output into typed results.

The interviewer model is prompted to wrap each part of its answer in markers
such as ``<QUESTION>...</QUESTION>`` or ``<KEY_POINTS>...</KEY_POINTS>``.
Model output is not guaranteed to be well formed, so the parser is lenient:

* the first occurrence of each section wins;
* a section that is never closed runs until the next recognised marker;
* sections that are empty or contain only ``N/A`` count as missing;
* missing list sections fall back to labelled placeholder guidance;
* missing question text is reported with :class:`MissingSectionError`
  instead of being invented.

:class:`ParseError` is raised only for empty text or text without a single
recognised marker.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Sequence, Tuple

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

SECTION_TAGS: Tuple[str, ...] = (
    "QUESTION",
    "KEY_POINTS",
    "ANALYSIS",
    "FEEDBACK",
    "FOLLOW_UP",
    "SUGGESTED_ALTERNATIVE",
    "NEW_TOPIC",
)
LIST_TAGS = frozenset({"KEY_POINTS", "FEEDBACK"})

DEFAULT_LABEL = "[default]"
DEFAULT_KEY_POINTS: Tuple[str, ...] = (
    f"{DEFAULT_LABEL} Focus on your specific role and contributions",
    f"{DEFAULT_LABEL} Highlight technologies and tools you used",
    f"{DEFAULT_LABEL} Discuss challenges faced and how you overcame them",
)
DEFAULT_FEEDBACK: Tuple[str, ...] = (f"{DEFAULT_LABEL} No specific feedback provided.",)
DEFAULT_ANALYSIS = f"{DEFAULT_LABEL} No analysis provided for this answer."

_MARKER = re.compile(r"<\s*(/?)\s*(" + "|".join(SECTION_TAGS) + r")\s*>", re.IGNORECASE)
_BULLET = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")
_PLACEHOLDERS = {"n/a", "na", "none", "n.a."}
_QUESTION_OPENERS = ("QUESTION", "NEW_TOPIC")  # Section tags that begin a batch block


class ParseError(ValueError):  # Raw text carried no usable tagged content
    pass


class MissingSectionError(ParseError):  # Mandatory question text absent or empty
    def __init__(self, section: str, raw_text: str) -> None:
        super().__init__(f"Model output is missing the <{section}> section")
        self.section = section
        self.raw_text = raw_text


class FirstQuestionResult(BaseModel):  # Opening question of a session
    question_text: str
    key_points: List[str] = Field(default_factory=list)
    raw_text: str
    defaulted: List[str] = Field(default_factory=list)


class ConversationalResult(BaseModel):  # Follow-up turn after a user answer
    analysis: str
    feedback_points: List[str] = Field(default_factory=list)
    follow_up_question: str
    suggested_alternative: str | None = None
    raw_text: str
    defaulted: List[str] = Field(default_factory=list)


class TopicalQuestionResult(BaseModel):  # Fresh topic question with guidance
    question_text: str
    key_points: List[str] = Field(default_factory=list)
    raw_text: str
    defaulted: List[str] = Field(default_factory=list)


class BatchResult(BaseModel):  # Independent pre-generated questions
    questions: List[TopicalQuestionResult] = Field(default_factory=list)
    raw_text: str = ""


def is_placeholder(value: str) -> bool:  # True for labelled fallback strings
    return value.startswith(DEFAULT_LABEL)


def extract_sections(raw_text: str) -> Dict[str, str]:
    """Map recognised section names to their stripped contents."""

    markers = list(_MARKER.finditer(raw_text))
    sections: Dict[str, str] = {}
    for index, marker in enumerate(markers):
        closing, tag = marker.group(1), marker.group(2).upper()
        if closing or tag in sections:
            continue
        end = len(raw_text)
        for later in markers[index + 1:]:
            later_tag = later.group(2).upper()
            if later.group(1):
                if later_tag == tag:
                    end = later.start()
                    break
                continue
            end = later.start()  # unclosed section stops at the next opening marker
            break
        sections[tag] = raw_text[marker.end():end].strip()
    return sections


def split_list(content: str) -> List[str]:  # Break a list section into trimmed items
    items: List[str] = []
    for line in content.splitlines():
        item = _BULLET.sub("", line).strip()
        if item and not _is_empty(item):
            items.append(item)
    return items


def parse_first_question(raw_text: str) -> FirstQuestionResult:
    sections = _sections_or_fail(raw_text)
    question = _text(sections, "QUESTION")
    if question is None:
        raise MissingSectionError("QUESTION", raw_text)
    key_points, defaulted = _list_or_default(sections, "KEY_POINTS", DEFAULT_KEY_POINTS)
    return FirstQuestionResult(
        question_text=question,
        key_points=key_points,
        raw_text=raw_text,
        defaulted=defaulted,
    )


def parse_conversational(raw_text: str) -> ConversationalResult:
    sections = _sections_or_fail(raw_text)
    follow_up = _text(sections, "FOLLOW_UP") or _text(sections, "QUESTION")
    if follow_up is None:
        raise MissingSectionError("FOLLOW_UP", raw_text)
    defaulted: List[str] = []
    analysis = _text(sections, "ANALYSIS")
    if analysis is None:
        analysis = DEFAULT_ANALYSIS
        defaulted.append("analysis")
    feedback, feedback_defaulted = _list_or_default(sections, "FEEDBACK", DEFAULT_FEEDBACK)
    if feedback_defaulted:
        defaulted.append("feedback_points")
    return ConversationalResult(
        analysis=analysis,
        feedback_points=feedback,
        follow_up_question=follow_up,
        suggested_alternative=_text(sections, "SUGGESTED_ALTERNATIVE"),
        raw_text=raw_text,
        defaulted=defaulted,
    )


def parse_topical(raw_text: str) -> TopicalQuestionResult:
    sections = _sections_or_fail(raw_text)
    question = _text(sections, "QUESTION") or _text(sections, "NEW_TOPIC")
    if question is None:
        raise MissingSectionError("QUESTION", raw_text)
    key_points, defaulted = _list_or_default(sections, "KEY_POINTS", DEFAULT_KEY_POINTS)
    return TopicalQuestionResult(
        question_text=question,
        key_points=key_points,
        raw_text=raw_text,
        defaulted=defaulted,
    )


def parse_batch(raw_text: str) -> BatchResult:
    """Split text at each ``<QUESTION>`` or ``<NEW_TOPIC>`` opener and parse every block as a topic.

    Blocks whose question text is missing are dropped with a warning; the
    caller decides whether the remaining count is acceptable.
    """

    _sections_or_fail(raw_text)
    starts = [
        marker.start()
        for marker in _MARKER.finditer(raw_text)
        if not marker.group(1) and marker.group(2).upper() in _QUESTION_OPENERS
    ]
    questions: List[TopicalQuestionResult] = []
    for index, start in enumerate(starts):
        end = starts[index + 1] if index + 1 < len(starts) else len(raw_text)
        block = raw_text[start:end].strip()
        try:
            questions.append(parse_topical(block))
        except MissingSectionError:
            logger.warning("Dropping batch block %d without question text", index + 1)
    return BatchResult(questions=questions, raw_text=raw_text)


def _sections_or_fail(raw_text: str) -> Dict[str, str]:
    if raw_text is None or not raw_text.strip():
        raise ParseError("Model output is empty")
    sections = extract_sections(raw_text)
    if not sections:
        raise ParseError("Model output contains no recognised sections")
    return sections


def _is_empty(value: str) -> bool:
    return not value.strip() or value.strip().lower() in _PLACEHOLDERS


def _text(sections: Dict[str, str], tag: str) -> str | None:
    value = sections.get(tag)
    if value is None or _is_empty(value):
        return None
    return " ".join(value.split()) if tag in {"QUESTION", "FOLLOW_UP", "NEW_TOPIC"} else value


def _list_or_default(
    sections: Dict[str, str], tag: str, fallback: Sequence[str]
) -> Tuple[List[str], List[str]]:
    items = split_list(sections.get(tag, ""))
    if items:
        return items, []
    logger.info("Section <%s> missing or empty; using default guidance", tag)
    return list(fallback), [tag.lower()]


__all__ = [
    "BatchResult",
    "ConversationalResult",
    "DEFAULT_ANALYSIS",
    "DEFAULT_FEEDBACK",
    "DEFAULT_KEY_POINTS",
    "DEFAULT_LABEL",
    "FirstQuestionResult",
    "MissingSectionError",
    "ParseError",
    "SECTION_TAGS",
    "TopicalQuestionResult",
    "extract_sections",
    "is_placeholder",
    "parse_batch",
    "parse_conversational",
    "parse_first_question",
    "parse_topical",
    "split_list",
]
