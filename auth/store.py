"""
auth/store.py -- Identity lookup for the admin login.

Two interchangeable providers implement the IdentityProvider protocol:

  StaticIdentityProvider -- a fixed in-memory list, built from the ADMIN_*
      settings. Suitable for a single-admin site and for tests.

  IdentityStore -- the "admins" MongoDB collection. This is the production
      path; manage.py create-admin writes to it.

Emails are normalized (trimmed, lowercased) on the way in and on lookup, so
"Admin@Example.com " and "admin@example.com" are the same principal.

Layer rule: no imports from api/ or sessions/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Protocol

from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from auth.models import Identity

logger = logging.getLogger("prgsite.auth")

COLLECTION_NAME = "admins"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class IdentityProvider(Protocol):
    def find_by_email(self, email: str) -> Identity | None: ...


# ---------------------------------------------------------------------------
# Static provider
# ---------------------------------------------------------------------------


class StaticIdentityProvider:
    """Look up identities from a fixed list held in memory."""

    def __init__(self, identities: Iterable[Identity]) -> None:
        self._by_email = {normalize_email(i.email): i for i in identities}

    @classmethod
    def from_settings(cls, settings) -> "StaticIdentityProvider":
        """Build the single-admin provider from ADMIN_EMAIL / ADMIN_NAME / ADMIN_PASSWORD_HASH.

        An empty ADMIN_PASSWORD_HASH yields a provider with no identities, so
        every login fails rather than accepting a blank password.
        """
        if not settings.admin_password_hash:
            return cls([])
        return cls(
            [
                Identity(
                    id="1",
                    email=normalize_email(settings.admin_email),
                    name=settings.admin_name,
                    role="admin",
                    password_hash=settings.admin_password_hash,
                )
            ]
        )

    def find_by_email(self, email: str) -> Identity | None:
        return self._by_email.get(normalize_email(email))


# ---------------------------------------------------------------------------
# MongoDB-backed provider
# ---------------------------------------------------------------------------


class IdentityStore:
    """Repository for admin identities in MongoDB.

    Usage:
        store = IdentityStore(client[db_name][COLLECTION_NAME])
        store.create_identity("admin@example.com", hash_password("secret"), name="Admin")
        identity = store.find_by_email("admin@example.com")
    """

    def __init__(self, collection: Collection) -> None:
        self.collection = collection
        try:
            self.collection.create_index([("email", ASCENDING)], unique=True)
        except PyMongoError:
            logger.warning("Could not create the admins email index", exc_info=True)

    def create_identity(self, email: str, password_hash: str, name: str = "Admin User", role: str = "admin") -> str:
        """Insert a new identity and return its id.

        Raises pymongo.errors.DuplicateKeyError if the email is already registered.
        """
        result = self.collection.insert_one(
            {
                "email": normalize_email(email),
                "name": name,
                "passwordHash": password_hash,
                "role": role,
                "createdAt": datetime.now(timezone.utc),
            }
        )
        return str(result.inserted_id)

    def find_by_email(self, email: str) -> Identity | None:
        doc = self.collection.find_one({"email": normalize_email(email)})
        return _doc_to_identity(doc) if doc is not None else None


def _doc_to_identity(doc: dict) -> Identity:
    return Identity(
        id=str(doc["_id"]),
        email=doc["email"],
        name=doc.get("name", ""),
        role=doc.get("role", ""),
        password_hash=doc.get("passwordHash"),
    )
