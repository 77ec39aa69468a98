from datetime import datetime, timezone

import pytest

from session_engine.models import (
    TOPIC_ADVANCE_MIN_TURNS,
    ConversationTurn,
    QuestionSegment,
    Session,
    can_proceed_to_next_topic,
    close_segment,
    invariant_violations,
    make_question_id,
    start_segment,
)


T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _segment(number, qtype="technical", started=False, ended=False):
    segment = QuestionSegment(
        question_id=make_question_id(number, qtype),
        question_number=number,
        question_type=qtype,
        question=f"Question {number}?",
    )
    if started:
        start_segment(segment, T0)
    if ended:
        close_segment(segment, T0)
    return segment


def _session(segments, index=0):
    return Session(
        session_id="s1",
        owner_id="u1",
        persona_id="swe-interviewer-standard",
        question_segments=segments,
        current_question_index=index,
    )


def _turns(count):
    turns = [ConversationTurn(role="ai", content="Q", message_type="question")]
    for n in range(1, count):
        role = "user" if n % 2 else "ai"
        turns.append(ConversationTurn(role=role, content=f"t{n}", message_type="response"))
    return turns[:count]


def test_question_id_format():
    assert make_question_id(2, "technical") == "q2_technical"


def test_start_segment_seeds_single_question_turn():
    segment = _segment(1, "opening", started=True)
    assert segment.start_time == T0
    assert len(segment.conversation) == 1
    assert segment.conversation[0].role == "ai"
    assert segment.conversation[0].message_type == "question"
    assert segment.conversation[0].content == "Question 1?"


def test_start_segment_keeps_existing_conversation():
    segment = _segment(1, started=True)
    start_segment(segment, datetime(2025, 1, 1, tzinfo=timezone.utc))
    assert segment.start_time == T0
    assert len(segment.conversation) == 1


@pytest.mark.parametrize("length", range(0, 8))
def test_threshold_law(length):
    segment = _segment(1, started=True)
    segment.conversation = _turns(length)
    assert can_proceed_to_next_topic(segment) is (length >= TOPIC_ADVANCE_MIN_TURNS)


def test_threshold_without_segment_is_false():
    assert can_proceed_to_next_topic(None) is False


def test_fresh_session_is_consistent():
    assert invariant_violations(_session([])) == []


def test_batch_shaped_session_is_consistent():
    session = _session([_segment(1, "opening", started=True), _segment(2), _segment(3, "behavioral")])
    assert invariant_violations(session) == []
    assert session.active_segment().question_number == 1
    assert session.started_count() == 1


def test_numbering_gap_is_reported():
    session = _session([_segment(1, started=True), _segment(3)])
    assert any("expected 2" in problem for problem in invariant_violations(session))


def test_two_active_segments_are_reported():
    first = _segment(1, started=True)
    second = _segment(2, started=True)
    problems = invariant_violations(_session([first, second], index=1))
    assert any("active at once" in problem for problem in problems)


def test_started_segment_must_open_with_question():
    segment = _segment(1, started=True)
    segment.conversation[0] = ConversationTurn(role="user", content="hi", message_type="response")
    problems = invariant_violations(_session([segment]))
    assert any("interviewer question" in problem for problem in problems)


def test_index_outside_segments_is_reported():
    problems = invariant_violations(_session([_segment(1, started=True)], index=2))
    assert any("outside" in problem for problem in problems)


def test_blank_persona_is_rejected():
    with pytest.raises(ValueError):
        Session(session_id="s", owner_id="u", persona_id="  ")
