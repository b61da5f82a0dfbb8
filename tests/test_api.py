"""
HTTP and WebSocket API tests using FastAPI's TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from prepwise.api import dependencies
from prepwise.core.assessment_orchestrator import AssessmentOrchestrator
from main import app


CONFIG = {
    "role": "Frontend Engineer",
    "company": "Acme",
    "skills": ["React", "TypeScript"],
    "proficiency": "intermediate",
    "question_count": 5,
    "question_types": ["technical-coding", "behavioral"],
}


@pytest.fixture
def client(settings, monkeypatch):
    monkeypatch.setattr(dependencies, "_orchestrator", AssessmentOrchestrator(settings=settings))
    with TestClient(app) as test_client:
        yield test_client


def create_session(client, mode="learn", **config_overrides) -> dict:
    config = {**CONFIG, **config_overrides}
    response = client.post("/api/assessment/sessions", json={"config": config, "mode": mode})
    assert response.status_code == 200, response.text
    return response.json()


def complete_session(client, session_id: str, count: int = 5) -> dict:
    client.post(f"/api/assessment/{session_id}/start")
    for i in range(count - 1):
        client.post(f"/api/assessment/{session_id}/submit", json={"answer": f"Answer {i} in detail"})
        client.post(f"/api/assessment/{session_id}/next")
    response = client.post(
        f"/api/assessment/{session_id}/finish", json={"pending_answer": "Last answer"}
    )
    assert response.status_code == 200, response.text
    return response.json()


# ============================================================================
# HEALTH / METADATA
# ============================================================================

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_metadata_lists(client):
    types = client.get("/api/metadata/question-types").json()
    assert len(types) == 8
    coding = next(t for t in types if t["id"] == "technical-coding")
    assert coding["time_limits"]["intermediate"] == 600

    assert len(client.get("/api/metadata/proficiency-levels").json()) == 4

    modes = {m["id"]: m for m in client.get("/api/metadata/modes").json()}
    assert set(modes) == {"learn", "mock", "evaluate"}
    assert not modes["learn"]["timed"]
    assert not modes["evaluate"]["reveals_answers"]


# ============================================================================
# SESSIONS
# ============================================================================

@pytest.mark.parametrize("overrides", [
    {"question_count": 4},
    {"question_count": 31},
    {"skills": []},
    {"skills": ["React", "React"]},
    {"question_types": ["technical-coding", "technical-coding"]},
    {"question_types": ["trivia"]},
    {"role": ""},
])
def test_invalid_config_is_rejected(client, overrides):
    config = {**CONFIG, **overrides}
    response = client.post("/api/assessment/sessions", json={"config": config})
    assert response.status_code == 422


def test_create_learn_session_shows_reference_material(client):
    body = create_session(client, mode="learn")

    assert body["state"] == "not_started"
    assert len(body["questions"]) == 5
    first = body["questions"][0]
    assert first["sample_answer"]
    assert first["time_limit_seconds"] is None


def test_evaluate_session_hides_reference_material(client):
    body = create_session(client, mode="evaluate")
    first = body["questions"][0]
    assert first["sample_answer"] is None
    assert first["links"] == []
    assert first["time_limit_seconds"] == 600


def test_unknown_session_returns_404(client):
    assert client.get("/api/assessment/missing").status_code == 404
    assert client.post("/api/assessment/missing/start").status_code == 404
    assert client.get("/api/report/missing").status_code == 404


def test_illegal_actions_return_409(client):
    session_id = create_session(client)["session_id"]

    assert client.post(f"/api/assessment/{session_id}/next").status_code == 409

    client.post(f"/api/assessment/{session_id}/start")
    response = client.post(f"/api/assessment/{session_id}/previous")
    assert response.status_code == 409

    assert client.post(f"/api/assessment/{session_id}/finish").status_code == 409


def test_navigation_updates_progress(client):
    session_id = create_session(client)["session_id"]
    client.post(f"/api/assessment/{session_id}/start")

    client.post(f"/api/assessment/{session_id}/submit", json={"answer": "First"})
    client.post(f"/api/assessment/{session_id}/next")
    status = client.post(f"/api/assessment/{session_id}/skip").json()

    progress = status["progress"]
    assert progress["current_index"] == 1
    assert progress["answered_count"] == 1
    assert progress["skipped_count"] == 1
    assert [q["status"] for q in progress["questions"][:3]] == ["answered", "skipped", "pending"]

    client.post(f"/api/assessment/{session_id}/next")
    status = client.post(f"/api/assessment/{session_id}/review-skipped").json()
    assert status["progress"]["current_index"] == 1


def test_full_flow_and_report(client):
    session_id = create_session(client)["session_id"]

    assert client.get(f"/api/report/{session_id}").status_code == 409

    finished = complete_session(client, session_id)
    assert finished["state"] == "completed"
    assert finished["summary"]["total_questions"] == 5
    assert finished["summary"]["unanswered"] == 0

    report = client.get(f"/api/report/{session_id}").json()
    assert 0 <= report["score"] <= 100
    assert report["evaluation_source"] == "heuristic"

    summary = client.get(f"/api/report/{session_id}/summary").json()
    assert summary["session_id"] == session_id

    download = client.get(f"/api/report/{session_id}/download")
    assert download.status_code == 200
    disposition = download.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="prepwise-frontend-engineer-')
    document = download.json()
    assert {"session_id", "timestamp", "mode", "config", "questions", "answers", "results"} <= set(document)
    assert len(document["answers"]) == 5


def test_abandoned_session_has_no_report(client):
    session_id = create_session(client, mode="mock")["session_id"]
    client.post(f"/api/assessment/{session_id}/start")
    status = client.post(f"/api/assessment/{session_id}/abandon").json()

    assert status["progress"]["state"] == "abandoned"
    assert client.get(f"/api/report/{session_id}").status_code == 409


# ============================================================================
# WEBSOCKET
# ============================================================================

def test_websocket_session_flow(client):
    session_id = create_session(client)["session_id"]

    with client.websocket_connect(f"/api/assessment/ws/{session_id}") as websocket:
        websocket.send_json({"type": "start"})
        event = websocket.receive_json()
        assert event["type"] == "event"
        assert event["data"]["type"] == "question_advanced"
        status = websocket.receive_json()
        assert status["type"] == "status"
        assert status["data"]["progress"]["state"] == "in_progress"

        websocket.send_json({"type": "previous"})
        assert websocket.receive_json()["type"] == "error"
        assert websocket.receive_json()["type"] == "status"

        websocket.send_json({"type": "bogus"})
        assert websocket.receive_json()["type"] == "error"


def test_websocket_rejects_non_object_messages(client):
    session_id = create_session(client)["session_id"]

    with client.websocket_connect(f"/api/assessment/ws/{session_id}") as websocket:
        websocket.send_json([])
        assert websocket.receive_json()["type"] == "error"
        websocket.send_json("start")
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"type": "sync"})
        status = websocket.receive_json()
        assert status["type"] == "status"
        assert status["data"]["progress"]["state"] == "not_started"


def test_websocket_pushes_deadline_to_idle_client(client, settings, monkeypatch):
    short = settings.model_copy(update={"session_time_limit_seconds": 1})
    monkeypatch.setattr(dependencies, "_orchestrator", AssessmentOrchestrator(settings=short))
    session_id = create_session(client, mode="mock")["session_id"]

    with client.websocket_connect(f"/api/assessment/ws/{session_id}") as websocket:
        websocket.send_json({"type": "start"})
        assert websocket.receive_json()["type"] == "event"
        assert websocket.receive_json()["type"] == "status"

        # Nothing else is sent; the timer drives the rest
        received = []
        for _ in range(10):
            message = websocket.receive_json()
            received.append(message)
            if message["type"] == "results":
                break

    event_types = [m["data"]["type"] for m in received if m["type"] == "event"]
    assert event_types == ["session_deadline", "session_completed"]
    results = received[-1]
    assert results["type"] == "results"
    assert results["data"]["unanswered"] == 5
