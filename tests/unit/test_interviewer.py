import json

import pytest

from config import load_routes
from session_engine.agents import INTERVIEWER_KEYS, InterviewContext, LlmInterviewer, build_system_instruction
from session_engine.models import ConversationTurn
from session_engine.personas import get_persona, list_personas


class RecordingClient:
    def __init__(self, content):
        self.content = content
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append(json)
        return _Response({"choices": [{"message": {"content": self.content}}]})


class _Response:
    status_code = 200
    text = ""

    def __init__(self, payload):
        self._payload = payload

    def json(self):
        return self._payload


def _config(tmp_path):
    route = {"name": "r", "base_url": "http://llm", "model": "m", "timeout_s": 3}
    path = tmp_path / "app_config.json"
    path.write_text(
        json.dumps({"llm_routes": {"r": route}, "registry": {key: "r" for key in INTERVIEWER_KEYS}}),
        encoding="utf-8",
    )
    return path


def _context(**overrides):
    data = {
        "session_id": "s1",
        "persona": get_persona("behavioral-interviewer-friendly"),
        "job_description": "Team lead {with braces}",
        "resume_text": "Led a team of six.",
    }
    data.update(overrides)
    return InterviewContext(**data)


def test_three_personas_are_available():
    ids = [persona.id for persona in list_personas()]
    assert ids == ["swe-interviewer-standard", "behavioral-interviewer-friendly", "hr-recruiter-general"]


def test_system_instruction_names_persona_and_tags():
    text = build_system_instruction(get_persona("hr-recruiter-general"))
    assert "General HR Recruiter" in text
    assert "<QUESTION>" in text and "<KEY_POINTS>" in text and "<FOLLOW_UP>" in text


def test_missing_registry_entry_fails(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"llm_routes": {}, "registry": {}}), encoding="utf-8")
    with pytest.raises(KeyError):
        load_routes(path, INTERVIEWER_KEYS)


def test_first_question_prompt_carries_context(tmp_path):
    client = RecordingClient("<QUESTION>Hello?</QUESTION>")
    interviewer = LlmInterviewer.from_config(_config(tmp_path), client=client)
    raw = interviewer.generate_first_question(_context())
    assert raw == "<QUESTION>Hello?</QUESTION>"
    messages = client.requests[0]["messages"]
    assert messages[0]["role"] == "system"
    assert "Friendly Behavioral Interviewer" in messages[0]["content"]
    assert "Team lead {with braces}" in messages[1]["content"]
    assert "opening question" in messages[-1]["content"]


def test_follow_up_includes_history_and_answer(tmp_path):
    client = RecordingClient("<FOLLOW_UP>And then?</FOLLOW_UP>")
    interviewer = LlmInterviewer.from_config(_config(tmp_path), client=client)
    history = [
        ConversationTurn(role="ai", content="Tell me about a conflict.", message_type="question", raw_text="<QUESTION>Tell me about a conflict.</QUESTION>"),
        ConversationTurn(role="user", content="We disagreed on scope.", message_type="response"),
    ]
    interviewer.generate_follow_up(_context(), history, "We compromised.")
    messages = client.requests[0]["messages"]
    roles = [message["role"] for message in messages]
    assert roles == ["system", "user", "assistant", "user", "user"]
    assert messages[2]["content"] == "<QUESTION>Tell me about a conflict.</QUESTION>"
    assert "We compromised." in messages[-1]["content"]


def test_new_topic_lists_covered_topics(tmp_path):
    client = RecordingClient("<QUESTION>New?</QUESTION>")
    interviewer = LlmInterviewer.from_config(_config(tmp_path), client=client)
    interviewer.generate_new_topic(_context(), [], ["Conflict handling", "Team growth"])
    task = client.requests[0]["messages"][-1]["content"]
    assert "- Conflict handling" in task
    assert "- Team growth" in task


def test_batch_prompt_requests_count_and_rotation(tmp_path):
    client = RecordingClient("<QUESTION>One?</QUESTION>")
    interviewer = LlmInterviewer.from_config(_config(tmp_path), client=client)
    interviewer.generate_batch(_context(), 4)
    task = client.requests[0]["messages"][-1]["content"]
    assert "exactly 4 independent questions" in task
    assert task.count("- opening") == 2
