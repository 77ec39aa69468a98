from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import get_engine, get_store, router
from llm_gateway import LlmGatewayError


HEADERS = {"X-User-Id": "user-1"}


def _client(engine, store) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_store] = lambda: store
    return TestClient(app)


def _create(client, **payload):
    resp = client.post("/api/interview-sessions", json=payload, headers=HEADERS)
    assert resp.status_code == 201
    return resp.json()["session_id"]


def test_batch_interview_end_to_end(engine, store, gateway):
    client = _client(engine, store)
    session_id = _create(client, persona_id="swe-interviewer-standard", job_description="Backend role")

    start = client.post(f"/api/interview-sessions/{session_id}/start", json={"batch_size": 3}, headers=HEADERS)
    assert start.status_code == 200
    body = start.json()
    assert body["question_number"] == 1
    assert body["total_questions"] == 3
    assert body["conversation"][0]["message_type"] == "question"

    for answer in ("First answer", "Second answer"):
        turn = client.post(
            f"/api/interview-sessions/{session_id}/responses",
            json={"user_response": answer},
            headers=HEADERS,
        )
        assert turn.status_code == 200
    assert turn.json()["can_proceed_to_next_topic"] is True

    state = client.get(f"/api/interview-sessions/{session_id}/state", headers=HEADERS).json()
    assert state["is_active"] is True
    assert len(state["conversation"]) == 5

    for expected in (2, 3):
        moved = client.post(f"/api/interview-sessions/{session_id}/next", headers=HEADERS).json()
        assert moved["question_number"] == expected
    done = client.post(f"/api/interview-sessions/{session_id}/next", headers=HEADERS).json()
    assert done["is_complete"] is True
    assert "Interview completed!" in done["message"]
    assert gateway.calls == ["batch", "follow_up", "follow_up"]

    ended = client.post(
        f"/api/interview-sessions/{session_id}/responses",
        json={"user_response": "too late"},
        headers=HEADERS,
    )
    assert ended.status_code == 409
    assert ended.json()["detail"]["kind"] == "session_ended"

    listing = client.get("/api/interview-sessions", headers=HEADERS).json()
    assert [item["session_id"] for item in listing["sessions"]] == [session_id]
    assert listing["sessions"][0]["is_active"] is False


def test_single_mode_advance_and_save(engine, store):
    client = _client(engine, store)
    session_id = _create(client, total_question_budget=2)

    client.post(f"/api/interview-sessions/{session_id}/start", json={"mode": "single"}, headers=HEADERS)
    advanced = client.post(f"/api/interview-sessions/{session_id}/advance", headers=HEADERS).json()
    assert advanced["is_complete"] is False
    assert advanced["question_number"] == 2

    saved = client.post(
        f"/api/interview-sessions/{session_id}/save",
        json={"current_response": "draft"},
        headers=HEADERS,
    ).json()
    assert saved == {"saved": True, "ended": False, "timestamp": saved["timestamp"]}
    assert client.get(f"/api/interview-sessions/{session_id}/state", headers=HEADERS).json()["draft_response"] == "draft"

    final = client.post(f"/api/interview-sessions/{session_id}/advance", headers=HEADERS).json()
    assert final["is_complete"] is True


def test_error_mapping(engine, store, gateway):
    client = _client(engine, store)
    session_id = _create(client)

    missing = client.get("/api/interview-sessions/nope/state", headers=HEADERS)
    assert missing.status_code == 404
    assert missing.json()["detail"] == {"kind": "not_found", "message": "Session nope not found", "retryable": False}

    foreign = client.get(f"/api/interview-sessions/{session_id}/state", headers={"X-User-Id": "other"})
    assert foreign.status_code == 403

    no_header = client.get(f"/api/interview-sessions/{session_id}/state")
    assert no_header.status_code == 422

    gateway.fail_with = LlmGatewayError("down")
    failed = client.post(f"/api/interview-sessions/{session_id}/start", json={}, headers=HEADERS)
    assert failed.status_code == 502
    assert failed.json()["detail"]["retryable"] is True

    gateway.fail_with = None
    client.post(f"/api/interview-sessions/{session_id}/start", json={}, headers=HEADERS)
    blank = client.post(
        f"/api/interview-sessions/{session_id}/responses",
        json={"user_response": "  "},
        headers=HEADERS,
    )
    assert blank.status_code == 400
    assert blank.json()["detail"]["kind"] == "validation_error"

    ended = client.post(f"/api/interview-sessions/{session_id}/save", json={"end_session": True}, headers=HEADERS)
    assert ended.json()["ended"] is True
    again = client.post(f"/api/interview-sessions/{session_id}/save", json={"end_session": True}, headers=HEADERS)
    assert again.status_code == 409


def test_personas_listing(engine, store):
    client = _client(engine, store)
    personas = client.get("/api/interview-sessions/personas").json()
    assert {persona["id"] for persona in personas} == {
        "swe-interviewer-standard",
        "behavioral-interviewer-friendly",
        "hr-recruiter-general",
    }


def test_unknown_persona_on_create_is_404(engine, store):
    client = _client(engine, store)
    resp = client.post("/api/interview-sessions", json={"persona_id": "ghost"}, headers=HEADERS)
    assert resp.status_code == 404
