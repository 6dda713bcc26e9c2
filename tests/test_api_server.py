import pytest
from fastapi.testclient import TestClient

from quiz_portal.core.quiz_manager import QuizManager
from quiz_portal.server.api_server import create_api_app

TEACHER = {"X-User-Id": "t-1", "X-User-Role": "teacher", "X-User-Name": "Ms Teacher"}
OTHER_TEACHER = {"X-User-Id": "t-2", "X-User-Role": "teacher"}
STUDENT = {"X-User-Id": "s-1", "X-User-Role": "student", "X-User-Name": "Student Demo"}

QUIZ_BODY = {
    "title": "Math Basics",
    "description": "Basic arithmetic",
    "is_published": True,
    "questions": [
        {"id": "q1", "text": "What is **2 + 2**?", "options": ["3", "4", "5", "6"], "correct_answer": 1},
        {"id": "q2", "text": "What is 10 - 5?", "options": ["3", "4", "5", "6"], "correct_answer": 2},
    ],
}


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_api_app(QuizManager()))


def _create_quiz(client: TestClient, **overrides) -> dict:
    response = client.post("/quizzes", json={**QUIZ_BODY, **overrides}, headers=TEACHER)
    assert response.status_code == 201, response.text
    return response.json()


def test_missing_identity_is_unauthorized(client):
    assert client.get("/quizzes/published").status_code == 401
    assert client.get("/quizzes/published", headers={"X-User-Id": "x", "X-User-Role": "admin"}).status_code == 401


def test_student_cannot_create_quiz(client):
    assert client.post("/quizzes", json=QUIZ_BODY, headers=STUDENT).status_code == 403


def test_create_quiz_validation_error(client):
    body = {**QUIZ_BODY, "questions": [{"text": "Q", "options": ["a", ""], "correct_answer": 0}]}
    response = client.post("/quizzes", json=body, headers=TEACHER)
    assert response.status_code == 422
    assert client.get("/quizzes/mine", headers=TEACHER).json() == []


def test_lookup_by_code_hides_answer_key_from_students(client):
    quiz = _create_quiz(client)

    response = client.get(f"/quizzes/code/{quiz['code'].lower()}", headers=STUDENT)
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == quiz["id"]
    assert "correct_answer" not in body["questions"][0]
    assert "<strong>2 + 2</strong>" in body["questions"][0]["text_html"]


def test_unknown_or_unpublished_code_is_not_found(client):
    draft = _create_quiz(client, is_published=False)
    assert client.get("/quizzes/code/NOPE42", headers=STUDENT).status_code == 404
    assert client.get(f"/quizzes/code/{draft['code']}", headers=STUDENT).status_code == 404
    assert client.get(f"/quizzes/{draft['id']}", headers=STUDENT).status_code == 404
    assert client.get(f"/quizzes/{draft['id']}", headers=TEACHER).status_code == 200


def test_attempt_flow(client):
    quiz = _create_quiz(client)

    started = client.post(f"/quizzes/{quiz['id']}/attempts", headers=STUDENT)
    assert started.status_code == 201
    attempt = started.json()
    assert attempt["score"] is None
    assert attempt["progress_percent"] == 0

    answered = client.put(
        f"/attempts/{attempt['id']}/answers/q1", json={"selected_option": 1}, headers=STUDENT
    )
    assert answered.status_code == 200
    assert answered.json()["progress_percent"] == 50
    assert answered.json()["unanswered_question_ids"] == ["q2"]

    submitted = client.post(f"/attempts/{attempt['id']}/submit", json={}, headers=STUDENT)
    assert submitted.status_code == 200
    assert submitted.json()["score"] == 50
    assert submitted.json()["performance"] == "Average"

    again = client.post(f"/attempts/{attempt['id']}/submit", json={}, headers=STUDENT)
    assert again.status_code == 409
    late = client.put(
        f"/attempts/{attempt['id']}/answers/q2", json={"selected_option": 2}, headers=STUDENT
    )
    assert late.status_code == 409

    mine = client.get("/attempts/mine", headers=STUDENT).json()
    assert mine["in_progress"] == []
    assert [a["id"] for a in mine["completed"]] == [attempt["id"]]


def test_submit_with_answers(client):
    quiz = _create_quiz(client)
    attempt = client.post(f"/quizzes/{quiz['id']}/attempts", headers=STUDENT).json()

    body = {"answers": [{"question_id": "q1", "selected_option": 1}, {"question_id": "q2", "selected_option": 2}]}
    response = client.post(f"/attempts/{attempt['id']}/submit", json=body, headers=STUDENT)
    assert response.json()["score"] == 100


def test_update_and_code_collision(client):
    first = _create_quiz(client)
    second = _create_quiz(client)

    renamed = client.patch(f"/quizzes/{second['id']}", json={"title": "Renamed"}, headers=TEACHER)
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Renamed"
    assert renamed.json()["code"] == second["code"]

    clash = client.patch(f"/quizzes/{second['id']}", json={"code": first["code"]}, headers=TEACHER)
    assert clash.status_code == 409
    foreign = client.patch(f"/quizzes/{second['id']}", json={"title": "x"}, headers=OTHER_TEACHER)
    assert foreign.status_code == 403


def test_delete_cascades(client):
    quiz = _create_quiz(client)
    attempt = client.post(f"/quizzes/{quiz['id']}/attempts", headers=STUDENT).json()

    assert client.delete(f"/quizzes/{quiz['id']}", headers=TEACHER).status_code == 204
    assert client.get(f"/quizzes/{quiz['id']}", headers=TEACHER).status_code == 404
    assert client.get(f"/attempts/{attempt['id']}", headers=STUDENT).status_code == 404


def test_results_and_analytics(client):
    quiz = _create_quiz(client)
    attempt = client.post(f"/quizzes/{quiz['id']}/attempts", headers=STUDENT).json()
    client.post(
        f"/attempts/{attempt['id']}/submit",
        json={"answers": [{"question_id": "q1", "selected_option": 1}]},
        headers=STUDENT,
    )

    results = client.get(f"/quizzes/{quiz['id']}/results", headers=TEACHER).json()
    assert results["summary"]["average_score"] == 50
    assert [b["count"] for b in results["distribution"]] == [0, 0, 1, 0, 0]
    assert results["questions"][0]["correct_percentage"] == 100

    overview = client.get("/quizzes/analytics", headers=TEACHER).json()
    assert overview[0]["completed"] == 1


def test_import_and_export(client):
    text = "Q: Capital of France?\nA: Paris\nB: Rome\nCORRECT: A\n"
    created = client.post("/quizzes/import", json={"title": "Geo", "text": text}, headers=TEACHER)
    assert created.status_code == 201

    exported = client.get(f"/quizzes/{created.json()['id']}/export", headers=TEACHER)
    assert exported.status_code == 200
    assert exported.text == text

    broken = client.post("/quizzes/import", json={"title": "Geo", "text": "Q: x\nA: 1"}, headers=TEACHER)
    assert broken.status_code == 422


def test_too_many_options_is_rejected(client):
    question = {"text": "Pick", "options": [str(n) for n in range(9)], "correct_answer": 0}
    response = client.post("/quizzes", json={**QUIZ_BODY, "questions": [question]}, headers=TEACHER)
    assert response.status_code == 422
    assert client.get("/quizzes/mine", headers=TEACHER).json() == []


def test_export_rejects_text_the_format_cannot_hold(client):
    question = {"text": "Para one\n\nPara two", "options": ["a", "b"], "correct_answer": 0}
    quiz = _create_quiz(client, questions=[question])

    assert client.get(f"/quizzes/{quiz['id']}/export", headers=TEACHER).status_code == 422


def test_students_cannot_start_unpublished_quiz(client):
    draft = _create_quiz(client, is_published=False)

    assert client.post(f"/quizzes/{draft['id']}/attempts", headers=STUDENT).status_code == 404
    assert client.get("/attempts/mine", headers=STUDENT).json() == {"in_progress": [], "completed": []}
    assert client.post(f"/quizzes/{draft['id']}/attempts", headers=TEACHER).status_code == 201


def test_me_reports_profile_headers(client):
    student = client.get(
        "/me",
        headers={**STUDENT, "X-User-Roll-Number": "42", "X-User-Class": "7", "X-User-Section": "B"},
    )
    assert student.status_code == 200
    assert student.json() == {
        "id": "s-1",
        "email": "",
        "name": "Student Demo",
        "role": "student",
        "profile": {"roll_number": "42", "class_name": "7", "section": "B"},
    }

    teacher = client.get("/me", headers={**TEACHER, "X-User-Teacher-Id": "T-100"}).json()
    assert teacher["role"] == "teacher"
    assert teacher["profile"] == {"teacher_id": "T-100"}
    assert client.get("/me").status_code == 401


def test_owner_lists_attempts_on_a_quiz(client):
    quiz = _create_quiz(client)
    open_attempt = client.post(f"/quizzes/{quiz['id']}/attempts", headers=STUDENT).json()
    done = client.post(f"/quizzes/{quiz['id']}/attempts", headers=STUDENT).json()
    client.post(f"/attempts/{done['id']}/submit", json={}, headers=STUDENT)

    listing = client.get(f"/quizzes/{quiz['id']}/attempts", headers=TEACHER)
    assert listing.status_code == 200
    assert [a["id"] for a in listing.json()["in_progress"]] == [open_attempt["id"]]
    assert [a["id"] for a in listing.json()["completed"]] == [done["id"]]
    assert client.get(f"/quizzes/{quiz['id']}/attempts", headers=OTHER_TEACHER).status_code == 403
    assert client.get(f"/quizzes/{quiz['id']}/attempts", headers=STUDENT).status_code == 403


def test_options_are_rendered_inline(client):
    question = {"text": "Pick", "options": ["*plain*", "`code`"], "correct_answer": 0}
    quiz = _create_quiz(client, questions=[question])

    body = client.get(f"/quizzes/{quiz['id']}", headers=STUDENT).json()
    assert body["questions"][0]["options_html"] == ["<em>plain</em>", "<code>code</code>"]


def test_openapi_carries_license(client):
    info = client.get("/openapi.json").json()["info"]
    assert info["license"]["name"] == "MIT License"
