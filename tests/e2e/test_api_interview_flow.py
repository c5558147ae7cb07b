import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import get_service, router
from interview_evaluation import AnswerEvaluation
from llm_gateway import LlmGatewayError
from services.interviews import InterviewService
from session_store import InMemorySessionStore


app = FastAPI()
app.include_router(router)
client = TestClient(app)


@pytest.fixture
def store(fake_oracle):
    sessions = InMemorySessionStore()
    app.dependency_overrides[get_service] = lambda: InterviewService(sessions, fake_oracle)
    try:
        yield sessions
    finally:
        app.dependency_overrides.clear()


def _start_interview() -> str:
    resume = client.post("/api/resumes", json={"user_id": "u1", "text": "Ada Lovelace, Python"})
    assert resume.status_code == 201
    start = client.post(
        "/api/interviews/start",
        json={
            "user_id": "u1",
            "resume_id": resume.json()["resume_id"],
            "job_description_text": "Backend Engineer building Go services",
            "company": "Acme",
        },
    )
    assert start.status_code == 201
    body = start.json()
    assert body["job_title"] == "Backend Engineer"
    assert len(body["skill_gap_analysis"]) == 5
    return body["interview_id"]


def test_full_flow(store, fake_oracle):
    fake_oracle.evaluations = [AnswerEvaluation(feedback="Too shallow.", requires_follow_up=True)]
    interview_id = _start_interview()

    first = client.post(f"/api/interviews/{interview_id}/next", json={"user_id": "u1"})
    assert first.status_code == 200
    assert first.json() == {"action": "CONTINUE", "question": "Question 1?", "is_follow_up": False}

    second = client.post(
        f"/api/interviews/{interview_id}/next",
        json={"user_id": "u1", "answer": "Use a cache."},
    )
    assert second.status_code == 200
    body = second.json()
    assert body["is_follow_up"] is True
    assert body["feedback"] == "Too shallow."

    state = client.get(f"/api/interviews/{interview_id}/state", params={"user_id": "u1"})
    assert state.status_code == 200
    assert state.json()["total_questions_asked"] == 2
    assert state.json()["follow_up_count"] == 1

    finish = client.post(f"/api/interviews/{interview_id}/end", json={"user_id": "u1"})
    assert finish.status_code == 200
    assert finish.json()["status"] == "COMPLETED"
    assert finish.json()["evaluation"]["overall_score"] == 72

    again = client.post(f"/api/interviews/{interview_id}/next", json={"user_id": "u1", "answer": "x"})
    assert again.status_code == 400
    assert again.json()["detail"] == "Interview already completed"


def test_resume_listing_is_per_user(store):
    client.post("/api/resumes", json={"user_id": "u1", "text": "resume one"})
    assert len(client.get("/api/resumes/u1").json()) == 1
    assert client.get("/api/resumes/u2").json() == []


def test_blank_resume_rejected(store):
    resp = client.post("/api/resumes", json={"user_id": "u1", "text": "   "})
    assert resp.status_code == 400


def test_unknown_resume_and_interview(store):
    start = client.post(
        "/api/interviews/start",
        json={"user_id": "u1", "resume_id": "missing", "job_description_text": "jd"},
    )
    assert start.status_code == 404
    assert start.json()["detail"] == "Resume not found"

    nxt = client.post("/api/interviews/missing/next", json={"user_id": "u1"})
    assert nxt.status_code == 404
    assert nxt.json()["detail"] == "Interview not found"


def test_expired_session_maps_to_bad_request(store):
    interview_id = _start_interview()
    store.delete(interview_id)
    resp = client.post(f"/api/interviews/{interview_id}/next", json={"user_id": "u1", "answer": "x"})
    assert resp.status_code == 400
    assert "expired" in resp.json()["detail"]


def test_question_failure_maps_to_server_error(store, fake_oracle):
    interview_id = _start_interview()
    fake_oracle.question_error = LlmGatewayError("boom")
    resp = client.post(f"/api/interviews/{interview_id}/next", json={"user_id": "u1"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to generate question"
