# tests/api/test_auth_api.py

from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.security import decode_access_token


def test_register_sets_cookie_and_returns_token(test_client: TestClient):
    response = test_client.post(
        "/auth/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "secret1"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["role"] == "teacher"
    assert "password" not in body["user"]
    assert settings.AUTH_COOKIE_NAME in response.cookies

    claims = decode_access_token(body["access_token"])
    assert claims["sub"] == body["user"]["id"]
    assert claims["email"] == "ada@example.com"


def test_register_duplicate_email(test_client: TestClient):
    payload = {"name": "Ada", "email": "ada@example.com", "password": "secret1"}
    assert test_client.post("/auth/register", json=payload).status_code == 201

    response = test_client.post("/auth/register", json=payload)

    assert response.status_code == 409
    assert response.json()["code"] == "EMAIL_TAKEN"


def test_login(test_client: TestClient):
    test_client.post("/auth/register", json={"name": "Ada", "email": "ada@example.com", "password": "secret1"})
    test_client.cookies.clear()

    response = test_client.post("/auth/login", json={"email": "ada@example.com", "password": "secret1"})
    assert response.status_code == 200
    assert response.json()["message"] == "Login successful"

    response = test_client.post("/auth/login", json={"email": "ada@example.com", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"

    response = test_client.post("/auth/login", json={"email": "nobody@example.com", "password": "secret1"})
    assert response.status_code == 401


def test_me_with_bearer_and_cookie(test_client: TestClient, auth_headers):
    response = test_client.get("/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "owner@example.com"

    test_client.post("/auth/login", json={"email": "owner@example.com", "password": "pass1234"})
    response = test_client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["name"] == "Owner"


def test_me_rejects_missing_or_bad_token(test_client: TestClient):
    assert test_client.get("/auth/me").status_code == 401

    response = test_client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_logout_clears_cookie(test_client: TestClient):
    test_client.post("/auth/register", json={"name": "Ada", "email": "ada@example.com", "password": "secret1"})
    assert test_client.get("/auth/me").status_code == 200

    response = test_client.post("/auth/logout")

    assert response.status_code == 200
    assert test_client.get("/auth/me").status_code == 401
