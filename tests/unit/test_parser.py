import pytest

from session_engine.parser import (
    DEFAULT_KEY_POINTS,
    MissingSectionError,
    ParseError,
    extract_sections,
    is_placeholder,
    parse_batch,
    parse_conversational,
    parse_first_question,
    parse_topical,
    split_list,
)


def test_topical_question_and_key_points():
    raw = "<QUESTION>Q</QUESTION><KEY_POINTS>\n- A\n- B</KEY_POINTS>"
    result = parse_topical(raw)
    assert result.question_text == "Q"
    assert result.key_points == ["A", "B"]
    assert result.raw_text == raw
    assert result.defaulted == []


def test_untagged_text_is_a_parse_error():
    with pytest.raises(ParseError):
        parse_topical("Tell me about yourself.")


def test_empty_text_is_a_parse_error():
    with pytest.raises(ParseError):
        parse_first_question("   \n")


def test_missing_question_is_distinguishable_from_generic_result():
    raw = "<KEY_POINTS>\n- A\n</KEY_POINTS>"
    with pytest.raises(MissingSectionError) as info:
        parse_topical(raw)
    assert info.value.section == "QUESTION"
    assert info.value.raw_text == raw


def test_missing_key_points_fall_back_to_labelled_defaults():
    result = parse_first_question("<QUESTION>Why this role?</QUESTION>")
    assert result.question_text == "Why this role?"
    assert result.key_points == list(DEFAULT_KEY_POINTS)
    assert all(is_placeholder(point) for point in result.key_points)
    assert result.defaulted == ["key_points"]


def test_na_sections_count_as_missing():
    raw = "<QUESTION>Next?</QUESTION><ANALYSIS>N/A</ANALYSIS><FEEDBACK>N/A</FEEDBACK>"
    result = parse_conversational(raw)
    assert result.follow_up_question == "Next?"
    assert is_placeholder(result.analysis)
    assert all(is_placeholder(point) for point in result.feedback_points)
    assert result.defaulted == ["analysis", "feedback_points"]
    assert result.suggested_alternative is None


def test_conversational_prefers_follow_up_section():
    raw = (
        "<ANALYSIS>Solid.</ANALYSIS>"
        "<FEEDBACK>\n* Mention metrics\n2) Name the team size\n</FEEDBACK>"
        "<QUESTION>Ignored?</QUESTION>"
        "<FOLLOW_UP>How did you measure success?</FOLLOW_UP>"
    )
    result = parse_conversational(raw)
    assert result.follow_up_question == "How did you measure success?"
    assert result.analysis == "Solid."
    assert result.feedback_points == ["Mention metrics", "Name the team size"]
    assert result.defaulted == []


def test_conversational_without_any_question_fails():
    with pytest.raises(MissingSectionError):
        parse_conversational("<ANALYSIS>Good answer.</ANALYSIS>")


def test_first_occurrence_wins():
    sections = extract_sections("<QUESTION>one</QUESTION><QUESTION>two</QUESTION>")
    assert sections["QUESTION"] == "one"


def test_unclosed_section_stops_at_next_marker():
    sections = extract_sections("<QUESTION>What changed?\n<KEY_POINTS>\n- Before\n- After")
    assert sections["QUESTION"] == "What changed?"
    assert split_list(sections["KEY_POINTS"]) == ["Before", "After"]


def test_markers_are_case_insensitive():
    result = parse_topical("<question>Lower?</question><key_points>- x</key_points>")
    assert result.question_text == "Lower?"
    assert result.key_points == ["x"]


def test_new_topic_section_is_accepted_for_topical_questions():
    result = parse_topical("<NEW_TOPIC>Let's talk about testing.</NEW_TOPIC>")
    assert result.question_text == "Let's talk about testing."


def test_split_list_strips_bullets_and_blank_lines():
    assert split_list("- a\n\n• b\n1. c\n  *   d  \n") == ["a", "b", "c", "d"]


def test_batch_splits_blocks_per_question():
    raw = (
        "Here you go:\n"
        "<QUESTION>First?</QUESTION><KEY_POINTS>- a1\n- a2</KEY_POINTS>\n"
        "<QUESTION>Second?</QUESTION>\n"
        "<QUESTION>Third?</QUESTION><KEY_POINTS>- c1</KEY_POINTS>"
    )
    batch = parse_batch(raw)
    assert [q.question_text for q in batch.questions] == ["First?", "Second?", "Third?"]
    assert batch.questions[0].key_points == ["a1", "a2"]
    assert batch.questions[1].defaulted == ["key_points"]
    assert batch.questions[2].key_points == ["c1"]
    assert batch.raw_text == raw


def test_batch_drops_blocks_without_question_text():
    batch = parse_batch("<QUESTION>Real?</QUESTION><QUESTION> </QUESTION>")
    assert [q.question_text for q in batch.questions] == ["Real?"]


def test_batch_without_tags_is_a_parse_error():
    with pytest.raises(ParseError):
        parse_batch("1. What? 2. Why?")


def test_batch_splits_on_new_topic_openers():
    raw = "<NEW_TOPIC>A?</NEW_TOPIC><KEY_POINTS>\n- x</KEY_POINTS><NEW_TOPIC>B?</NEW_TOPIC>"
    batch = parse_batch(raw)
    assert [q.question_text for q in batch.questions] == ["A?", "B?"]
    assert batch.questions[0].key_points == ["x"]
    assert batch.questions[1].defaulted == ["key_points"]
