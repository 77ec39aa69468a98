"""Interview session state machine.

A session moves ``Unstarted -> Active -> Completed``. Every mutating
operation runs one read-modify-write cycle under the per-session lock of the
:class:`QuestionSegmentStore`, and writes segments, index pointer and end time
back in a single versioned update. The AI gateway is the only blocking
collaborator; its raw text goes through the response parser before any state
is touched.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Literal, Optional, Sequence

from config.settings import settings
from observability import log_event, span

from .agents.gateway import AiGateway, InterviewContext
from .errors import GenerationFailed, SessionEnded, SessionError, SessionValidationError, Unauthorized
from .models import (
    BATCH_TYPE_ROTATION,
    ConversationTurn,
    QuestionSegment,
    QuestionType,
    Session,
    can_proceed_to_next_topic,
    close_segment,
    make_question_id,
    start_segment,
    utcnow,
)
from .parser import (
    BatchResult,
    ConversationalResult,
    FirstQuestionResult,
    ParseError,
    TopicalQuestionResult,
    parse_batch,
    parse_conversational,
    parse_first_question,
    parse_topical,
)
from .personas import get_persona
from .results import SaveResult, SessionStateView, StartResult, SubmitResult, TopicResult
from .store import QuestionSegmentStore


logger = logging.getLogger(__name__)

StartMode = Literal["batch", "single"]

COMPLETION_MESSAGE = "Interview completed! You worked through {count} question{plural}."


class SessionEngine:
    def __init__(
        self,
        gateway: AiGateway,
        store: Optional[QuestionSegmentStore] = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._gateway = gateway
        self._store = store or QuestionSegmentStore()
        self._clock = clock

    # ------------------------------------------------------------------ lifecycle

    def start_session(
        self,
        session_id: str,
        caller_id: str,
        *,
        persona_id: Optional[str] = None,
        batch_size: Optional[int] = None,
        mode: Optional[StartMode] = None,
    ) -> StartResult:
        """Populate the first segment, or every budgeted segment in batch mode."""

        mode = mode or settings.START_MODE
        if mode not in ("batch", "single"):
            raise SessionValidationError(f"Unknown start mode '{mode}'", session_id=session_id)
        size = settings.BATCH_SIZE if batch_size is None else batch_size
        if size < 1:
            raise SessionValidationError("batch_size must be at least 1", session_id=session_id)

        with self._store.locked(session_id):
            session = self._load_owned(session_id, caller_id)
            _ensure_open(session)
            if session.question_segments:
                raise SessionValidationError("Session has already been started", session_id=session_id)
            if persona_id:
                session.persona_id = get_persona(persona_id).id

            if mode == "batch":
                segments = self._batch_segments(session, size)
                session.total_question_budget = size
            else:
                segments = [self._first_segment(session)]

            now = self._clock()
            start_segment(segments[0], now)
            session.question_segments = segments
            session.current_question_index = 0
            session.last_activity_at = now
            saved = self._store.save(session)

        first = saved.question_segments[0]
        log_event(
            "session_started",
            session_id,
            operation=mode,
            segment=first.question_id,
            question_number=first.question_number,
            version=saved.version,
        )
        return StartResult(
            session_id=session_id,
            question=first.question,
            key_points=list(first.key_points),
            question_number=first.question_number,
            total_questions=len(saved.question_segments),
            conversation=list(first.conversation),
            question_budget=saved.total_question_budget,
            mode=mode,
        )

    def submit_response(self, session_id: str, caller_id: str, user_response: str) -> SubmitResult:
        """Record the candidate answer and append the interviewer's follow-up.

        When generation fails the candidate's own turn is still persisted and
        ``GenerationFailed`` is raised; no interviewer turn is written.
        """

        with self._store.locked(session_id):
            session = self._load_owned(session_id, caller_id)
            _ensure_open(session)
            text = (user_response or "").strip()
            if not text:
                raise SessionValidationError("Response must not be empty", session_id=session_id)
            segment = session.active_segment()
            if segment is None:
                raise SessionValidationError("There is no active question to answer", session_id=session_id)

            history = _transcript(session)
            now = self._clock()
            segment.conversation.append(
                ConversationTurn(role="user", content=text, timestamp=now, message_type="response")
            )
            session.draft_response = None
            session.last_activity_at = now

            try:
                reply = self._generate(
                    session_id,
                    "generate_follow_up",
                    lambda: self._gateway.generate_follow_up(self._context(session), history, text),
                    _coerce_follow_up,
                )
            except GenerationFailed:
                self._store.save(session)
                log_event(
                    "response_kept_without_reply",
                    session_id,
                    level=logging.WARNING,
                    segment=segment.question_id,
                )
                raise

            segment.conversation.append(
                ConversationTurn(
                    role="ai",
                    content=reply.follow_up_question,
                    timestamp=self._clock(),
                    message_type="response",
                    raw_text=reply.raw_text,
                    analysis=reply.analysis,
                    feedback_points=list(reply.feedback_points),
                    suggested_alternative=reply.suggested_alternative,
                )
            )
            saved = self._store.save(session)

        active = saved.question_segments[saved.current_question_index]
        can_proceed = can_proceed_to_next_topic(active)
        log_event(
            "response_submitted",
            session_id,
            segment=active.question_id,
            question_number=active.question_number,
            outcome="can_proceed" if can_proceed else "continue",
            version=saved.version,
        )
        return SubmitResult(
            session_id=session_id,
            follow_up_question=reply.follow_up_question,
            analysis=reply.analysis,
            feedback_points=list(reply.feedback_points),
            suggested_alternative=reply.suggested_alternative,
            question_number=active.question_number,
            conversation=list(active.conversation),
            can_proceed_to_next_topic=can_proceed,
        )

    def advance_topic(self, session_id: str, caller_id: str) -> TopicResult:
        """Close the active topic and generate a fresh one, or finish once the budget is used."""

        with self._store.locked(session_id):
            session = self._load_owned(session_id, caller_id)
            _ensure_open(session)
            current = _require_started(session)
            pending = len(session.question_segments) - session.current_question_index - 1
            if pending > 0:
                raise SessionValidationError(
                    f"{pending} pre-generated question(s) remain; move to the next one instead",
                    session_id=session_id,
                )

            if session.started_count() >= session.total_question_budget:
                return self._complete(session, current)

            covered = [segment.question for segment in session.question_segments]
            history = _transcript(session)
            topic = self._generate(
                session_id,
                "generate_new_topic",
                lambda: self._gateway.generate_new_topic(self._context(session, "topical"), history, covered),
                _coerce_topical,
            )

            now = self._clock()
            close_segment(current, now)
            number = len(session.question_segments) + 1
            segment = QuestionSegment(
                question_id=make_question_id(number, "topical"),
                question_number=number,
                question_type="topical",
                question=topic.question_text,
                key_points=list(topic.key_points),
                raw_text=topic.raw_text,
            )
            start_segment(segment, now)
            session.question_segments.append(segment)
            session.current_question_index = len(session.question_segments) - 1
            session.draft_response = None
            session.last_activity_at = now
            saved = self._store.save(session)

        log_event(
            "topic_advanced",
            session_id,
            segment=segment.question_id,
            question_number=number,
            version=saved.version,
        )
        return TopicResult(
            session_id=session_id,
            is_complete=False,
            question=segment.question,
            key_points=list(segment.key_points),
            question_number=number,
            total_questions=len(saved.question_segments),
            conversation=list(segment.conversation),
        )

    def move_to_next_pregenerated(self, session_id: str, caller_id: str) -> TopicResult:
        """Step to the next pre-generated segment without calling the AI gateway."""

        with self._store.locked(session_id):
            session = self._load_owned(session_id, caller_id)
            _ensure_open(session)
            current = _require_started(session)
            next_index = session.current_question_index + 1
            if next_index >= len(session.question_segments):
                return self._complete(session, current)

            now = self._clock()
            close_segment(current, now)
            segment = session.question_segments[next_index]
            start_segment(segment, now)
            session.current_question_index = next_index
            session.draft_response = None
            session.last_activity_at = now
            saved = self._store.save(session)

        log_event(
            "pregenerated_advanced",
            session_id,
            segment=segment.question_id,
            question_number=segment.question_number,
            version=saved.version,
        )
        return TopicResult(
            session_id=session_id,
            is_complete=False,
            question=segment.question,
            key_points=list(segment.key_points),
            question_number=segment.question_number,
            total_questions=len(saved.question_segments),
            conversation=list(segment.conversation),
        )

    def get_active_session_state(self, session_id: str, caller_id: str) -> SessionStateView:
        session = self._load_owned(session_id, caller_id)
        segment = session.current_segment()
        return SessionStateView(
            session_id=session_id,
            is_active=not session.is_ended,
            is_started=session.is_started,
            question=segment.question if segment else None,
            key_points=list(segment.key_points) if segment else [],
            conversation=list(segment.conversation) if segment else [],
            question_number=segment.question_number if segment else 0,
            total_questions=len(session.question_segments),
            question_budget=session.total_question_budget,
            can_proceed_to_next_topic=can_proceed_to_next_topic(segment),
            draft_response=session.draft_response,
            end_time=session.end_time,
        )

    def save_session(
        self,
        session_id: str,
        caller_id: str,
        *,
        current_response: Optional[str] = None,
        end_session: bool = False,
    ) -> SaveResult:
        """Heartbeat/draft save, or user-initiated termination when ``end_session`` is set."""

        with self._store.locked(session_id):
            session = self._load_owned(session_id, caller_id)
            _ensure_open(session)
            now = self._clock()
            if current_response is not None:
                session.draft_response = current_response
            session.last_activity_at = now
            if end_session:
                active = session.active_segment()
                if active is not None:
                    close_segment(active, now)
                session.end_time = now
            saved = self._store.save(session)

        log_event(
            "session_ended" if end_session else "session_saved",
            session_id,
            outcome="user_ended" if end_session else "draft",
            version=saved.version,
        )
        return SaveResult(saved=True, ended=end_session, timestamp=now)

    # ------------------------------------------------------------------ helpers

    def _load_owned(self, session_id: str, caller_id: str) -> Session:
        session = self._store.load(session_id)
        if session.owner_id != caller_id:
            log_event("unauthorized_access", session_id, level=logging.WARNING, operation="load")
            raise Unauthorized("You do not have access to this session", session_id=session_id)
        return session

    def _context(self, session: Session, question_type: Optional[QuestionType] = None) -> InterviewContext:
        return InterviewContext(
            session_id=session.session_id,
            persona=get_persona(session.persona_id),
            job_description=session.job_description,
            resume_text=session.resume_text,
            question_type=question_type,
        )

    def _complete(self, session: Session, current: QuestionSegment) -> TopicResult:
        now = self._clock()
        close_segment(current, now)
        session.end_time = now
        session.draft_response = None
        session.last_activity_at = now
        saved = self._store.save(session)
        count = len(saved.question_segments)
        log_event(
            "session_completed",
            session.session_id,
            question_number=current.question_number,
            outcome="budget_exhausted",
            version=saved.version,
        )
        return TopicResult(
            session_id=session.session_id,
            is_complete=True,
            message=COMPLETION_MESSAGE.format(count=count, plural="" if count == 1 else "s"),
            question_number=current.question_number,
            total_questions=count,
        )

    def _first_segment(self, session: Session) -> QuestionSegment:
        first = self._generate(
            session.session_id,
            "generate_first_question",
            lambda: self._gateway.generate_first_question(self._context(session, "opening")),
            _coerce_first,
        )
        return QuestionSegment(
            question_id=make_question_id(1, "opening"),
            question_number=1,
            question_type="opening",
            question=first.question_text,
            key_points=list(first.key_points),
            raw_text=first.raw_text,
        )

    def _batch_segments(self, session: Session, size: int) -> List[QuestionSegment]:
        questions = self._generate(
            session.session_id,
            "generate_batch",
            lambda: self._gateway.generate_batch(self._context(session), size),
            _coerce_batch,
        )
        if len(questions) < size:
            log_event(
                "generation_failed",
                session.session_id,
                level=logging.WARNING,
                operation="generate_batch",
                error=f"short batch {len(questions)}/{size}",
            )
            raise GenerationFailed(
                f"Expected {size} questions but only {len(questions)} could be generated",
                session_id=session.session_id,
            )
        segments: List[QuestionSegment] = []
        for index, item in enumerate(questions[:size]):
            number = index + 1
            question_type = BATCH_TYPE_ROTATION[index % len(BATCH_TYPE_ROTATION)]
            segments.append(
                QuestionSegment(
                    question_id=make_question_id(number, question_type),
                    question_number=number,
                    question_type=question_type,
                    question=item.question_text,
                    key_points=list(item.key_points),
                    raw_text=item.raw_text,
                )
            )
        return segments

    def _generate(self, session_id: str, operation: str, produce, coerce):  # Call the gateway and parse its output
        try:
            with span(session_id, operation):
                output = produce()
            return coerce(output)
        except SessionError as exc:
            if not isinstance(exc, GenerationFailed):
                raise
            log_event("generation_failed", session_id, level=logging.WARNING, operation=operation, error=exc.message)
            raise
        except ParseError as exc:
            log_event("generation_failed", session_id, level=logging.WARNING, operation=operation, error=str(exc))
            raise GenerationFailed(
                "The interviewer reply could not be understood; please try again",
                session_id=session_id,
            ) from exc
        except Exception as exc:  # noqa: BLE001
            logger.exception("AI gateway call %s failed for session %s", operation, session_id)
            log_event("generation_failed", session_id, level=logging.WARNING, operation=operation, error=str(exc))
            raise GenerationFailed(
                "The interviewer is unavailable right now; please try again",
                session_id=session_id,
            ) from exc


def _ensure_open(session: Session) -> None:
    if session.is_ended:
        raise SessionEnded("This interview has already ended", session_id=session.session_id)


def _require_started(session: Session) -> QuestionSegment:
    current = session.current_segment()
    if current is None or not current.is_started:
        raise SessionValidationError("Session has not been started", session_id=session.session_id)
    return current


def _transcript(session: Session) -> List[ConversationTurn]:  # Every turn so far, oldest first
    turns: List[ConversationTurn] = []
    for segment in session.question_segments:
        if segment.is_started:
            turns.extend(segment.conversation)
    return turns


def _coerce_first(output) -> FirstQuestionResult:
    if isinstance(output, str):
        return parse_first_question(output)
    if isinstance(output, FirstQuestionResult):
        return _require_text(output, output.question_text)
    if isinstance(output, TopicalQuestionResult):
        return FirstQuestionResult(**_require_text(output, output.question_text).model_dump())
    raise TypeError(f"Unexpected first question output: {type(output).__name__}")


def _coerce_follow_up(output) -> ConversationalResult:
    if isinstance(output, str):
        return parse_conversational(output)
    if isinstance(output, ConversationalResult):
        return _require_text(output, output.follow_up_question)
    raise TypeError(f"Unexpected follow-up output: {type(output).__name__}")


def _coerce_topical(output) -> TopicalQuestionResult:
    if isinstance(output, str):
        return parse_topical(output)
    if isinstance(output, TopicalQuestionResult):
        return _require_text(output, output.question_text)
    raise TypeError(f"Unexpected topic output: {type(output).__name__}")


def _coerce_batch(output) -> List[TopicalQuestionResult]:
    if isinstance(output, str):
        return parse_batch(output).questions
    if isinstance(output, BatchResult):
        output = output.questions
    if isinstance(output, Sequence):
        return [_coerce_topical(item) for item in output]
    raise TypeError(f"Unexpected batch output: {type(output).__name__}")


def _require_text(result, text: str):
    if not (text or "").strip():
        raise ParseError("Typed interviewer result has no question text")
    return result


__all__ = ["COMPLETION_MESSAGE", "SessionEngine", "StartMode"]
