"""
Exam Prep Platform - Test Configuration
Pytest fixtures: in-memory database, API client and signed-in users.
"""
import os

# Must be set before examprep.database is imported
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from examprep.database import Base, get_db, set_sqlite_pragma
from examprep.main import app


@pytest.fixture
def engine():
    """A fresh in-memory database shared by every connection in one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", set_sqlite_pragma)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(engine):
    """Test client with get_db pointed at the in-memory database."""
    testing_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = testing_session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _register(client: TestClient, payload: dict) -> dict:
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "id": data["user"]["id"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
    }


@pytest.fixture
def admin(client) -> dict:
    return _register(client, {
        "name": "Asha Admin",
        "email": "admin@example.com",
        "password": "secret123",
        "role": "admin",
    })


@pytest.fixture
def student(client) -> dict:
    return _register(client, {
        "name": "Ravi Student",
        "email": "ravi@example.com",
        "password": "secret123",
        "role": "student",
        "class": 9,
    })


@pytest.fixture
def other_student(client) -> dict:
    return _register(client, {
        "name": "Meera Student",
        "email": "meera@example.com",
        "password": "secret123",
        "role": "student",
        "class": 9,
    })


@pytest.fixture
def sample_question_data() -> dict[str, Any]:
    return {
        "type": "MCQ",
        "text": "What is 2 + 3?",
        "options": [
            {"id": "a", "text": "5", "is_correct": True},
            {"id": "b", "text": "6", "is_correct": False},
        ],
        "correct_answer": "a",
        "marks": 5,
        "difficulty": "easy",
        "subject": "Maths",
        "class": 9,
        "topic": "Algebra",
    }


@pytest.fixture
def make_question(client, admin, sample_question_data):
    """Factory creating a question through the API; returns its JSON."""
    def _make(**overrides):
        payload = {**sample_question_data, **overrides}
        response = client.post("/api/questions", json=payload, headers=admin["headers"])
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_test(client, admin):
    """
    Factory creating a test through the API; returns its JSON.

    By default the window opened 10 minutes ago and closes in an hour.
    """
    def _make(questions, assigned_to=(), start_offset=timedelta(minutes=-10),
              end_offset=timedelta(hours=1), **overrides):
        now = datetime.now(timezone.utc)
        payload = {
            "title": "Unit Test 1",
            "subject": "Maths",
            "class": 9,
            "topics": sorted({q["topic"] for q in questions}),
            "duration": 60,
            "total_marks": sum(q["marks"] for q in questions) or 10,
            "start_time": (now + start_offset).isoformat(),
            "end_time": (now + end_offset).isoformat(),
            "question_ids": [q["id"] for q in questions],
            "assigned_to": list(assigned_to),
        }
        payload.update(overrides)
        response = client.post("/api/tests", json=payload, headers=admin["headers"])
        assert response.status_code == 201, response.text
        return response.json()
    return _make
