"""
HTTP tests for the quiz attempt routes
"""

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_current_user
from app.core.security import jwt_manager
from main import app


def login_as(user):
    app.dependency_overrides[get_current_user] = lambda: user


@pytest.fixture
def client(db, student):
    db.refresh(student)
    db.expunge(student)
    login_as(student)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def start(client, quiz_id):
    response = client.post(f"/quizzes/{quiz_id}/attempts/start")
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoints(client):
    assert client.get("/").json()["status"] == "healthy"

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["database"] == "healthy"


def test_requires_authentication(db):
    response = TestClient(app).get("/quiz-attempts/active")
    assert response.status_code == 401


def test_bearer_token_is_accepted(db, student):
    token = jwt_manager.create_access_token(student)

    response = TestClient(app).get(
        "/quiz-attempts/active", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 200
    assert response.json()["has_active_attempt"] is False


def test_invalid_token_is_rejected(db):
    response = TestClient(app).get(
        "/quiz-attempts/active", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_start_answer_resume_submit(client, sample_quiz):
    quiz, questions = sample_quiz
    single, blank = questions["single"], questions["blank"]

    attempt = start(client, quiz.id)
    assert attempt["status"] == "InProgress"
    assert attempt["duration_minutes"] == 30
    assert attempt["sections"][0]["items"]

    answer = client.post(
        f"/quiz-attempts/{attempt['attempt_id']}/answers",
        json={"question_id": single.id, "user_answer": str(single.options[0].id)},
    )
    assert answer.status_code == 200
    assert answer.json() == {
        "attempt_id": attempt["attempt_id"],
        "question_id": single.id,
        "score": 1.0,
    }
    client.post(
        f"/quiz-attempts/{attempt['attempt_id']}/answers",
        json={"question_id": blank.id, "user_answer": "mont blanc"},
    )

    resumed = client.get(f"/quiz-attempts/{attempt['attempt_id']}/resume")
    assert resumed.status_code == 200
    items = resumed.json()["sections"][0]["items"]
    answered = {
        item["question"]["question_id"]
        for item in items
        if item["question"]["is_answered"]
    }
    assert answered == {single.id, blank.id}

    submitted = client.post(f"/quiz-attempts/{attempt['attempt_id']}/submit")
    assert submitted.status_code == 200
    body = submitted.json()
    assert body["status"] == "Submitted"
    assert body["total_score"] == 2.0
    assert body["percentage"] == 40.0
    assert body["is_passed"] is False
    assert "correct_answers" not in body

    again = client.post(f"/quiz-attempts/{attempt['attempt_id']}/submit")
    assert again.status_code == 400
    assert again.json()["detail"]


def test_gated_fields_are_left_out(client, factory):
    quiz = factory.quiz(show_score_immediately=False, show_answers_after_submit=False)
    factory.question(factory.section(quiz), options=[("a", True)])
    attempt = start(client, quiz.id)

    body = client.post(f"/quiz-attempts/{attempt['attempt_id']}/submit").json()

    for field in ("total_score", "max_score", "percentage", "is_passed", "scores_by_question"):
        assert field not in body
    assert body["time_spent_seconds"] >= 0


def test_answer_review_without_scores(client, factory):
    quiz = factory.quiz(show_score_immediately=False, show_answers_after_submit=True)
    question = factory.question(
        factory.section(quiz), options=[("a", True), ("b", False)], points=4
    )
    correct_id = question.options[0].id
    attempt = start(client, quiz.id)
    client.post(
        f"/quiz-attempts/{attempt['attempt_id']}/answers",
        json={"question_id": question.id, "user_answer": correct_id},
    )

    body = client.post(f"/quiz-attempts/{attempt['attempt_id']}/submit").json()

    for field in ("total_score", "max_score", "percentage", "is_passed", "scores_by_question"):
        assert field not in body
    assert len(body["correct_answers"]) == 1
    for review in body["correct_answers"]:
        assert "score" not in review
        assert "is_correct" not in review
        assert review["correct_answer"] == correct_id
        assert [o["is_correct"] for o in review["options"]] == [True, False]


def test_start_closed_quiz(client, factory):
    quiz = factory.quiz(status="Closed")

    response = client.post(f"/quizzes/{quiz.id}/attempts/start")

    assert response.status_code == 403
    assert "closed" in response.json()["detail"]


def test_second_active_attempt_conflicts(client, sample_quiz, factory):
    quiz, _ = sample_quiz
    start(client, quiz.id)
    other = factory.quiz(title="Second")

    response = client.post(f"/quizzes/{other.id}/attempts/start")

    assert response.status_code == 409


def test_unknown_attempt(client):
    assert client.get("/quiz-attempts/424242/resume").status_code == 404


def test_invalid_answer_payload(client, sample_quiz):
    quiz, _ = sample_quiz
    attempt = start(client, quiz.id)

    response = client.post(
        f"/quiz-attempts/{attempt['attempt_id']}/answers",
        json={"question_id": 0, "user_answer": 1},
    )

    assert response.status_code == 422


def test_someone_elses_attempt_is_not_found(client, sample_quiz, factory, db):
    quiz, questions = sample_quiz
    attempt = start(client, quiz.id)
    intruder = factory.user(full_name="Intruder")
    db.expunge(intruder)
    login_as(intruder)

    response = client.post(
        f"/quiz-attempts/{attempt['attempt_id']}/answers",
        json={"question_id": questions["single"].id, "user_answer": 1},
    )

    assert response.status_code == 404


def test_active_attempt_and_history(client, sample_quiz):
    quiz, _ = sample_quiz
    attempt = start(client, quiz.id)

    active = client.get(f"/quizzes/{quiz.id}/attempts/active").json()
    assert active["has_active_attempt"] is True
    assert active["attempt_id"] == attempt["attempt_id"]
    assert 0 < active["time_remaining_seconds"] <= 30 * 60

    history = client.get(f"/quizzes/{quiz.id}/attempts").json()
    assert history["total"] == 1
    assert history["attempts"][0]["attempt_number"] == 1


def test_auto_submit_endpoint_is_admin_only(client, factory, db):
    assert client.post("/admin/quiz-attempts/auto-submit").status_code == 403

    admin = factory.user(full_name="Operator", status="admin")
    db.expunge(admin)
    login_as(admin)

    response = client.post("/admin/quiz-attempts/auto-submit")

    assert response.status_code == 200
    assert response.json() == {"submitted": 0}
