"""
tests/test_auth_routes.py -- Integration tests for /api/auth/*.

Covers:
  - Successful login sets the session cookie and /me reads it back
  - Wrong password and unknown email get byte-identical 401 bodies
  - Cache-Control: no-store on login responses
  - Logout clears the cookie
  - Failed-login lockout answers 429 with Retry-After

Fixtures used (from conftest.py):
  - api_client: (client, token); the admin identity is stored in the database
"""

from __future__ import annotations

import pytest

from auth.tokens import COOKIE_NAME, decode_session_token
from core.config import get_settings

LOGIN = "/api/auth/login"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"


@pytest.fixture(autouse=True)
def _no_cookies(api_client):
    client, _token = api_client
    client.cookies.clear()
    yield
    client.cookies.clear()


def test_login_success_sets_cookie(api_client):
    client, _token = api_client
    resp = client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    assert resp.json() == {
        "email": ADMIN_EMAIL,
        "name": "Admin User",
        "role": "admin",
        "expiresIn": get_settings().token_expire_seconds,
    }
    assert resp.headers["cache-control"] == "no-store"

    set_cookie = resp.headers["set-cookie"]
    assert f"{COOKIE_NAME}=" in set_cookie
    assert "httponly" in set_cookie.lower()
    assert "samesite=lax" in set_cookie.lower()

    claims = decode_session_token(client.cookies[COOKIE_NAME])
    assert claims["email"] == ADMIN_EMAIL
    assert claims["role"] == "admin"


def test_login_then_me(api_client):
    client, _token = api_client
    client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    resp = client.get("/api/auth/me")
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == ADMIN_EMAIL
    assert data["role"] == "admin"


def test_login_email_is_case_insensitive(api_client):
    client, _token = api_client
    resp = client.post(LOGIN, json={"email": "  ADMIN@example.com", "password": ADMIN_PASSWORD})
    assert resp.status_code == 200


def test_wrong_password_and_unknown_email_look_the_same(api_client):
    client, _token = api_client
    wrong_password = client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": "nope"})
    unknown_email = client.post(LOGIN, json={"email": "ghost@example.com", "password": "nope"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.content == unknown_email.content
    assert wrong_password.json() == {"error": {"code": "bad_credentials", "message": "Invalid credentials."}}
    assert wrong_password.headers["cache-control"] == "no-store"
    assert "set-cookie" not in wrong_password.headers


def test_missing_fields_are_400(api_client):
    client, _token = api_client
    resp = client.post(LOGIN, json={"email": ADMIN_EMAIL})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"


def test_me_requires_authentication(api_client):
    client, _token = api_client
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"


def test_me_with_bearer_token(api_client):
    client, token = api_client
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Admin User"


def test_logout_clears_cookie(api_client):
    client, _token = api_client
    client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert COOKIE_NAME in client.cookies

    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out."}
    assert COOKIE_NAME not in client.cookies


def test_lockout_after_repeated_failures(api_client):
    client, _token = api_client
    max_failures = get_settings().login_max_failures
    for _ in range(max_failures):
        resp = client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": "wrong"})
        assert resp.status_code == 401

    # Even the right password is refused while locked out.
    resp = client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "too_many_attempts"
    assert int(resp.headers["retry-after"]) >= 1


def test_successful_login_resets_failure_count(api_client):
    client, _token = api_client
    max_failures = get_settings().login_max_failures
    for _ in range(max_failures - 1):
        client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": "wrong"})
    assert client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}).status_code == 200
    for _ in range(max_failures - 1):
        client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": "wrong"})
    assert client.post(LOGIN, json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}).status_code == 200
