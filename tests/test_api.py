import pytest
from fastapi.testclient import TestClient

from interview_app.core.exceptions import ServiceUnavailable
from interview_app.main import create_app

PREFIX = "/api/v1"


@pytest.fixture
def client(controller):
    with TestClient(create_app(controller)) as test_client:
        yield test_client


def create_candidate(client, **fields):
    profile = {"name": "Ada Lovelace", "email": "ada@example.com", "phone": "555-0100"}
    profile.update(fields)
    return client.post(f"{PREFIX}/candidates", json=profile)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_intake_opens_session(client):
    resp = create_candidate(client)

    assert resp.status_code == 200
    body = resp.json()
    assert body["session"]["state"] == "QUESTION_ACTIVE"
    assert body["session"]["remaining_seconds"] == 20
    assert body["session"]["question"]["difficulty"] == "easy"
    assert len(body["candidate"]["questions"]) == 6
    assert body["candidate"]["currentIndex"] == 0


def test_answer_flow(client):
    candidate_id = create_candidate(client).json()["candidate"]["id"]

    resp = client.post(f"{PREFIX}/session/answer", json={"text": "It diffs a tree in memory."})
    assert resp.status_code == 200
    assert resp.json()["question_index"] == 1

    blank = client.post(f"{PREFIX}/session/answer", json={"text": "  "})
    assert blank.status_code == 400

    stored = client.get(f"{PREFIX}/candidates/{candidate_id}").json()
    assert len(stored["answers"]) == 1
    assert stored["answers"][0]["questionId"] == "q1"


def test_draft_pause_and_resume(client):
    create_candidate(client)

    assert client.put(f"{PREFIX}/session/draft", json={"text": "half an answer"}).json()["draft"] == "half an answer"

    paused = client.post(f"{PREFIX}/session/pause").json()
    assert paused["state"] == "PAUSED"
    assert paused["paused"] is True
    assert paused["notices"][0]["message"] == "Interview paused."

    assert client.put(f"{PREFIX}/session/draft", json={"text": "x"}).status_code == 400

    resumed = client.post(f"{PREFIX}/session/resume").json()
    assert resumed["state"] == "QUESTION_ACTIVE"
    assert resumed["remaining_seconds"] == 20


def test_incomplete_profile_then_completion(client):
    body = create_candidate(client, phone="").json()
    candidate_id = body["candidate"]["id"]
    assert body["session"]["state"] == "PROFILE_INCOMPLETE"

    rejected = client.post(f"{PREFIX}/candidates/{candidate_id}/profile", json={"name": "Ada"})
    assert rejected.status_code == 400

    resp = client.post(f"{PREFIX}/candidates/{candidate_id}/profile", json={"phone": "555-0100"})
    assert resp.status_code == 200
    assert resp.json()["state"] == "QUESTION_ACTIVE"


def test_bad_question_set_is_reported(client, backend):
    backend.questions = backend.questions[:5]

    resp = create_candidate(client)

    assert resp.status_code == 502
    roster = client.get(f"{PREFIX}/dashboard/candidates").json()
    assert len(roster) == 1
    assert roster[0]["questions"] == []

    backend.questions = backend.questions + [{"id": "q6", "text": "Why?", "difficulty": "hard"}]
    reopened = client.post(f"{PREFIX}/session/open", json={"candidate_id": roster[0]["id"]})
    assert reopened.status_code == 200
    assert reopened.json()["state"] == "QUESTION_ACTIVE"


def test_generation_outage_is_retryable(client, backend):
    backend.generation_error = ServiceUnavailable("backend down")

    assert create_candidate(client).status_code == 503


def test_open_unknown_candidate(client):
    resp = client.post(f"{PREFIX}/session/open", json={"candidate_id": "nope"})
    assert resp.status_code == 404


def test_resumable_lookup(client):
    assert client.get(f"{PREFIX}/session/resumable").json() == {"candidate": None}

    candidate_id = create_candidate(client).json()["candidate"]["id"]
    client.post(f"{PREFIX}/session/close")

    assert client.get(f"{PREFIX}/session/resumable").json()["candidate"]["id"] == candidate_id


def test_resume_upload(client):
    rejected = client.post(
        f"{PREFIX}/candidates/resume",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert rejected.status_code == 400

    resp = client.post(
        f"{PREFIX}/candidates/resume",
        files={"file": ("grace.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert resp.status_code == 200
    assert resp.json()["candidate"]["name"] == "Grace Hopper"
    assert resp.json()["candidate"]["resumeFile"] == "grace.pdf"


def test_dashboard_search(client):
    create_candidate(client)
    create_candidate(client, name="Alan Turing", email="alan@example.com")

    resp = client.get(f"{PREFIX}/dashboard/candidates", params={"search": "alan", "sort": "name"})

    assert resp.status_code == 200
    assert [c["name"] for c in resp.json()] == ["Alan Turing"]


def test_answer_without_text_submits_draft(client):
    candidate_id = create_candidate(client).json()["candidate"]["id"]
    client.put(f"{PREFIX}/session/draft", json={"text": "Reconciliation of a virtual tree."})

    resp = client.post(f"{PREFIX}/session/answer", json={})
    assert resp.status_code == 200
    assert resp.json()["question_index"] == 1
    assert resp.json()["draft"] == ""

    empty = client.post(f"{PREFIX}/session/answer", json={})
    assert empty.status_code == 400

    stored = client.get(f"{PREFIX}/candidates/{candidate_id}").json()
    assert stored["answers"][0]["responseText"] == "Reconciliation of a virtual tree."
