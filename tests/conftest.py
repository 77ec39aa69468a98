import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from session_engine import QuestionSegmentStore, SessionEngine
from services.sessions import new_session


OWNER = "user-1"

FIRST_RAW = (
    "<QUESTION>Walk me through a system you designed end to end.</QUESTION>"
    "<KEY_POINTS>\n- Scope\n- Trade-offs\n- Outcome\n</KEY_POINTS>"
)
FOLLOW_UP_RAW = (
    "<ANALYSIS>Clear structure, light on metrics.</ANALYSIS>"
    "<FEEDBACK>\n- Quantify the impact\n- Name the constraints\n</FEEDBACK>"
    "<SUGGESTED_ALTERNATIVE>Lead with the outcome, then the design.</SUGGESTED_ALTERNATIVE>"
    "<FOLLOW_UP>What would you change if traffic grew tenfold?</FOLLOW_UP>"
)
TOPIC_RAW = (
    "<QUESTION>Tell me about a time you disagreed with a teammate.</QUESTION>"
    "<KEY_POINTS>\n- Situation\n- Action\n- Result\n</KEY_POINTS>"
)


def batch_raw(count: int) -> str:
    return "\n".join(
        f"<QUESTION>Batch question {n}?</QUESTION><KEY_POINTS>\n- Point {n}a\n- Point {n}b\n</KEY_POINTS>"
        for n in range(1, count + 1)
    )


class ScriptedGateway:
    """AI gateway fake returning canned tagged text and recording every call."""

    def __init__(self):
        self.calls = []
        self.first = FIRST_RAW
        self.follow_up = FOLLOW_UP_RAW
        self.topic = TOPIC_RAW
        self.batch = None
        self.fail_with = None

    def _respond(self, name, value):
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with
        return value

    def generate_first_question(self, context):
        return self._respond("first", self.first)

    def generate_follow_up(self, context, history, user_response):
        self.last_history = list(history)
        self.last_response = user_response
        return self._respond("follow_up", self.follow_up)

    def generate_new_topic(self, context, history, covered_topics):
        self.last_covered = list(covered_topics)
        return self._respond("new_topic", self.topic)

    def generate_batch(self, context, count):
        return self._respond("batch", self.batch if self.batch is not None else batch_raw(count))


class StepClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "START_MODE", "batch", raising=False)
    monkeypatch.setattr(settings, "BATCH_SIZE", 3, raising=False)
    monkeypatch.setattr(settings, "TOTAL_QUESTION_BUDGET", 3, raising=False)
    migrate(db_path)
    try:
        yield
    finally:
        td.cleanup()


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def store():
    return QuestionSegmentStore()


@pytest.fixture
def engine(gateway, store):
    return SessionEngine(gateway, store, clock=StepClock())


@pytest.fixture
def session_id(store):
    session = new_session(
        store,
        OWNER,
        persona_id="swe-interviewer-standard",
        job_description="Backend engineer, Python and distributed systems.",
        resume_text="Five years building payment services.",
    )
    return session.session_id
