"""
tests/test_health.py -- Integration tests for GET /api/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports the store's ping result
  - No authentication required
"""

from __future__ import annotations

from unittest.mock import MagicMock

from pymongo.errors import PyMongoError

from api.main import VERSION, app
from sessions.store import SessionStore


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _token = api_client
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == VERSION
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] in ("ok", "error")


def test_health_no_auth_required(api_client):
    client, _token = api_client
    resp = client.get("/api/health", headers={})
    assert resp.status_code == 200


def test_health_reports_unreachable_database(api_client, monkeypatch):
    """A failed ping is reported in components, not as a 500."""
    client, _token = api_client
    collection = MagicMock()
    collection.database.command.side_effect = PyMongoError("no servers")
    monkeypatch.setattr(app.state, "session_store", SessionStore(collection))

    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["components"]["database"] == "error"
