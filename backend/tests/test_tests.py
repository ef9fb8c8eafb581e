"""
Exam Prep Platform - Test scheduling API tests
"""
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient


def _payload(question_ids, **overrides):
    now = datetime.now(timezone.utc)
    payload = {
        "title": "Weekly Test",
        "subject": "Maths",
        "class": 9,
        "topics": ["Algebra"],
        "duration": 45,
        "total_marks": 10,
        "start_time": (now + timedelta(days=1)).isoformat(),
        "end_time": (now + timedelta(days=1, hours=1)).isoformat(),
        "question_ids": question_ids,
    }
    payload.update(overrides)
    return payload


def test_create_test_keeps_question_order(client: TestClient, admin, make_question):
    first = make_question(topic="Algebra")
    second = make_question(topic="Geometry")

    response = client.post("/api/tests", json=_payload([second["id"], first["id"]]),
                           headers=admin["headers"])

    assert response.status_code == 201
    data = response.json()
    assert [q["id"] for q in data["questions"]] == [second["id"], first["id"]]
    assert data["status"] == "upcoming"
    assert data["total_marks"] == 10


def test_create_test_validation(client: TestClient, admin, make_question):
    question = make_question()
    now = datetime.now(timezone.utc)

    too_short = client.post("/api/tests", json=_payload([question["id"]], duration=10),
                            headers=admin["headers"])
    too_long = client.post("/api/tests", json=_payload([question["id"]], duration=181),
                           headers=admin["headers"])
    backwards = client.post("/api/tests", json=_payload(
        [question["id"]], start_time=now.isoformat(),
        end_time=(now - timedelta(hours=1)).isoformat()), headers=admin["headers"])
    zero_marks = client.post("/api/tests", json=_payload([question["id"]], total_marks=0),
                             headers=admin["headers"])

    assert too_short.status_code == 422
    assert too_long.status_code == 422
    assert backwards.status_code == 422
    assert zero_marks.status_code == 422


def test_create_test_with_unknown_question(client: TestClient, admin):
    response = client.post("/api/tests", json=_payload(["missing"]), headers=admin["headers"])
    assert response.status_code == 400


def test_assigned_to_must_be_students(client: TestClient, admin, make_question):
    question = make_question()
    response = client.post("/api/tests", json=_payload([question["id"]], assigned_to=[admin["id"]]),
                           headers=admin["headers"])
    assert response.status_code == 400


def test_students_see_only_assigned_tests(client: TestClient, student, other_student,
                                          make_question, make_test):
    question = make_question()
    mine = make_test([question], assigned_to=[student["id"]], title="Mine")
    make_test([question], assigned_to=[other_student["id"]], title="Theirs")

    response = client.get("/api/tests", headers=student["headers"])

    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == [mine["id"]]
    assert "correct_answer" not in response.json()[0]["questions"][0]


def test_student_cannot_open_unassigned_test(client: TestClient, student, make_question, make_test):
    test = make_test([make_question()])
    response = client.get(f"/api/tests/{test['id']}", headers=student["headers"])
    assert response.status_code == 403


def test_list_tests_by_status(client: TestClient, admin, make_question, make_test):
    question = make_question()
    ongoing = make_test([question], title="Ongoing")
    upcoming = make_test([question], title="Upcoming",
                         start_offset=timedelta(days=1), end_offset=timedelta(days=2))
    done = make_test([question], title="Done",
                     start_offset=timedelta(days=-2), end_offset=timedelta(days=-1))

    def ids(status):
        response = client.get("/api/tests", params={"status": status}, headers=admin["headers"])
        return [t["id"] for t in response.json()]

    assert ids("ongoing") == [ongoing["id"]]
    assert ids("upcoming") == [upcoming["id"]]
    assert ids("completed") == [done["id"]]


def test_update_upcoming_test(client: TestClient, admin, make_question, make_test):
    first = make_question()
    second = make_question(topic="Geometry")
    test = make_test([first], start_offset=timedelta(days=1), end_offset=timedelta(days=2))

    response = client.put(f"/api/tests/{test['id']}",
                          json=_payload([second["id"], first["id"]], title="Renamed"),
                          headers=admin["headers"])

    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"
    assert [q["id"] for q in response.json()["questions"]] == [second["id"], first["id"]]


def test_cannot_update_or_delete_started_test(client: TestClient, admin, make_question, make_test):
    question = make_question()
    test = make_test([question])

    update = client.put(f"/api/tests/{test['id']}", json=_payload([question["id"]]),
                        headers=admin["headers"])
    delete = client.delete(f"/api/tests/{test['id']}", headers=admin["headers"])

    assert update.status_code == 400
    assert delete.status_code == 400


def test_delete_upcoming_test(client: TestClient, admin, make_question, make_test):
    test = make_test([make_question()], start_offset=timedelta(days=1), end_offset=timedelta(days=2))

    response = client.delete(f"/api/tests/{test['id']}", headers=admin["headers"])

    assert response.status_code == 200
    assert client.get(f"/api/tests/{test['id']}", headers=admin["headers"]).status_code == 404


def test_list_tests_rejects_unknown_status(client: TestClient, admin):
    response = client.get("/api/tests", params={"status": "archived"}, headers=admin["headers"])
    assert response.status_code == 400
