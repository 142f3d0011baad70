"""Tests for manage.py operator commands."""

from __future__ import annotations

import bcrypt
import mongomock
import pytest

import manage
from auth.store import COLLECTION_NAME, IdentityStore
from core.config import get_settings


@pytest.fixture
def mongo(monkeypatch):
    client = mongomock.MongoClient()
    monkeypatch.setattr(manage, "MongoClient", lambda *args, **kwargs: client)
    return client


def test_hash_password_prints_bcrypt_hash(capsys):
    assert manage.main(["hash-password", "s3cret-pass"]) == 0
    hashed = capsys.readouterr().out.strip()
    assert hashed.startswith("$2b$12$")
    assert bcrypt.checkpw(b"s3cret-pass", hashed.encode("utf-8"))


def test_create_admin(mongo, capsys):
    assert manage.main(["create-admin", "Jane@Example.com", "long-enough", "--name", "Jane"]) == 0
    assert "Created admin jane@example.com" in capsys.readouterr().out

    store = IdentityStore(mongo[get_settings().mongodb_database][COLLECTION_NAME])
    identity = store.find_by_email("jane@example.com")
    assert identity is not None
    assert identity.name == "Jane"
    assert identity.role == "admin"


def test_create_admin_duplicate(mongo, capsys):
    assert manage.main(["create-admin", "dup@example.com", "long-enough"]) == 0
    assert manage.main(["create-admin", "DUP@example.com", "long-enough"]) == 1
    assert "already exists" in capsys.readouterr().err


def test_create_admin_rejects_short_password(mongo, capsys):
    assert manage.main(["create-admin", "a@example.com", "short"]) == 1
    assert "at least 8 characters" in capsys.readouterr().err


def test_unknown_command_exits():
    with pytest.raises(SystemExit):
        manage.main(["drop-everything"])
