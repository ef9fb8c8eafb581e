"""
Exam Prep Platform - Authentication API tests
"""
from fastapi.testclient import TestClient


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_register_returns_token(client: TestClient):
    response = client.post("/api/auth/register", json={
        "name": "Ravi",
        "email": "Ravi@Example.com",
        "password": "secret123",
        "role": "student",
        "class": 8,
    })
    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["email"] == "ravi@example.com"
    assert data["user"]["class"] == 8
    assert "password_hash" not in data["user"]


def test_register_duplicate_email(client: TestClient, student):
    response = client.post("/api/auth/register", json={
        "name": "Someone Else",
        "email": "ravi@example.com",
        "password": "secret123",
    })
    assert response.status_code == 400
    assert "already registered" in response.json()["detail"].lower()


def test_register_rejects_short_password_and_bad_class(client: TestClient):
    short = client.post("/api/auth/register", json={
        "name": "A", "email": "a@example.com", "password": "123",
    })
    bad_class = client.post("/api/auth/register", json={
        "name": "A", "email": "a@example.com", "password": "secret123", "class": 11,
    })
    bad_role = client.post("/api/auth/register", json={
        "name": "A", "email": "a@example.com", "password": "secret123", "role": "principal",
    })
    assert short.status_code == 422
    assert bad_class.status_code == 422
    assert bad_role.status_code == 422


def test_login_success(client: TestClient, student):
    response = client.post("/api/auth/login", json={
        "email": "ravi@example.com", "password": "secret123",
    })
    assert response.status_code == 200
    assert response.json()["user"]["id"] == student["id"]


def test_login_invalid_credentials(client: TestClient, student):
    response = client.post("/api/auth/login", json={
        "email": "ravi@example.com", "password": "wrong-password",
    })
    assert response.status_code == 401


def test_profile_requires_token(client: TestClient):
    assert client.get("/api/auth/profile").status_code == 401
    invalid = client.get("/api/auth/profile", headers={"Authorization": "Bearer not-a-token"})
    assert invalid.status_code == 401


def test_get_and_update_profile(client: TestClient, student):
    response = client.get("/api/auth/profile", headers=student["headers"])
    assert response.status_code == 200
    assert response.json()["name"] == "Ravi Student"

    updated = client.put("/api/auth/profile", json={"name": "Ravi K"}, headers=student["headers"])
    assert updated.status_code == 200
    assert updated.json()["name"] == "Ravi K"


def test_update_profile_email_taken(client: TestClient, student, other_student):
    response = client.put("/api/auth/profile", json={"email": "meera@example.com"},
                          headers=student["headers"])
    assert response.status_code == 400


def test_register_rejects_malformed_emails(client: TestClient):
    for email in ("not-an-email", "a@b..c", "a@-bad-.com", "a@b.c-"):
        response = client.post("/api/auth/register", json={
            "name": "A", "email": email, "password": "secret123",
        })
        assert response.status_code == 422, email


def test_update_profile_rejects_malformed_email(client: TestClient, student):
    response = client.put("/api/auth/profile", json={"email": "ravi@@example.com"},
                          headers=student["headers"])
    assert response.status_code == 422
