"""
tests/conftest.py -- Shared test fixtures for the PRG site test suite.

This module provides:
  - make_database(): an isolated mongomock database per caller
  - _patch_lifespan(): wires a test database into app.state through the same
    init_state() production uses, bypassing the real MongoClient
  - api_client: TestClient plus an admin session token for integration tests
  - admin identity constants shared by auth tests

Environment variables must be set before any auth/core import so
get_settings() auto-generates SECRET_KEY in dev mode, accepts the TestClient
host, and sees the test API key.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import (settings are read at import time).
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("ADMIN_API_KEY", "test-legacy-api-key-0123456789")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import mongomock
import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app, init_state
from auth.models import Identity
from auth.store import COLLECTION_NAME as ADMINS_COLLECTION
from auth.store import IdentityStore
from auth.tokens import create_session_token, hash_password
from core.config import get_settings

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"
ADMIN_NAME = "Admin User"
API_KEY = os.environ["ADMIN_API_KEY"]


def make_database():
    """Return a fresh mongomock database. The random name keeps modules isolated."""
    return mongomock.MongoClient()[f"prgsite_test_{uuid.uuid4().hex[:8]}"]


def _patch_lifespan(database):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, database, get_settings())
        yield

    return test_lifespan


@pytest.fixture
def database():
    """An empty mongomock database for store-level unit tests."""
    return make_database()


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> None:
    """slowapi counters and the login throttle are process-wide; start each test clean."""
    limiter.reset()
    throttle = getattr(app.state, "login_throttle", None)
    if throttle is not None:
        throttle.reset()


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, token) for API integration tests.

    The admin identity lives in the database-backed IdentityStore, the same
    provider production uses, so login tests go through the real lookup.
    token is a valid admin session JWT for Authorization: Bearer headers.
    """
    database = make_database()
    admin_id = IdentityStore(database[ADMINS_COLLECTION]).create_identity(
        ADMIN_EMAIL, hash_password(ADMIN_PASSWORD), name=ADMIN_NAME
    )
    token = create_session_token(Identity(id=admin_id, email=ADMIN_EMAIL, name=ADMIN_NAME, role="admin"))

    app.router.lifespan_context = _patch_lifespan(database)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token
