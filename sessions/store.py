"""
sessions/store.py -- MongoDB persistence layer for PRG sessions.

Pattern: Repository + Data Mapper.
SessionStore is the repository; _doc_to_session is the mapper.
Route code never touches pymongo directly.

Every write is a single-document operation, so MongoDB's per-document
atomicity is the only concurrency control. Two concurrent updates to the same
session race and the last write wins.

Indexes (created idempotently on construction; a database that is down at
that moment only logs a warning):
  (academicYear, date)  -- grouped listing sorted by date
  academicYear          -- year filter
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from sessions.errors import InvalidId, NotFound, StoreError, ValidationError
from sessions.models import PRGSession, Presenter
from sessions.validation import MUTABLE_FIELDS, OPTIONAL_FIELDS, normalize_document, validate_document

logger = logging.getLogger("prgsite.sessions")

COLLECTION_NAME = "prg_sessions"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    # BSON dates have millisecond precision; truncate so the value returned
    # from create() matches what a later read returns.
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="milliseconds")


def _parse_id(session_id: str) -> ObjectId:
    if not isinstance(session_id, str) or not ObjectId.is_valid(session_id):
        raise InvalidId()
    return ObjectId(session_id)


def group_by_year(sessions: list[PRGSession]) -> dict[str, list[PRGSession]]:
    """Bucket sessions by academic year, keeping the input order within each bucket."""
    grouped: dict[str, list[PRGSession]] = {}
    for session in sessions:
        grouped.setdefault(session.academic_year, []).append(session)
    return grouped


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for PRGSession documents.

    Usage:
        client = MongoClient(settings.mongodb_uri)
        store = SessionStore(client[settings.mongodb_database][COLLECTION_NAME])
        created = store.create({"date": "16-09-24", ...})
        store.get_by_id(created.id)
    """

    def __init__(self, collection: Collection) -> None:
        self.collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        try:
            self.collection.create_index([("academicYear", ASCENDING), ("date", ASCENDING)])
            self.collection.create_index([("academicYear", ASCENDING)])
        except PyMongoError:
            # Retried on the next start.
            logger.warning("Could not create PRG session indexes", exc_info=True)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, record: dict) -> PRGSession:
        """Validate and insert a new session. Returns the stored record.

        Raises ValidationError without writing anything if the record is invalid.
        """
        doc = normalize_document(record)
        errors = validate_document(doc)
        if errors:
            raise ValidationError(errors)

        now = _now()
        doc["createdAt"] = now
        doc["updatedAt"] = now
        try:
            result = self.collection.insert_one(doc)
        except PyMongoError as exc:
            logger.exception("Error creating PRG session")
            raise StoreError("Failed to create PRG session") from exc
        doc["_id"] = result.inserted_id
        return _doc_to_session(doc)

    def update(self, session_id: str, changes: dict) -> PRGSession:
        """Merge changes over the stored session and write the result.

        A None value for an optional field removes it. The merged record is
        validated with the same rules as create(); on failure the stored
        document is left untouched.
        """
        oid = _parse_id(session_id)
        try:
            existing = self.collection.find_one({"_id": oid})
        except PyMongoError as exc:
            logger.exception("Error loading PRG session %s for update", session_id)
            raise StoreError("Failed to update PRG session") from exc
        if existing is None:
            raise NotFound()

        merged = {k: existing[k] for k in MUTABLE_FIELDS if k in existing}
        merged.update({k: v for k, v in changes.items() if k in MUTABLE_FIELDS})
        doc = normalize_document(merged)
        errors = validate_document(doc)
        if errors:
            raise ValidationError(errors)

        doc["updatedAt"] = _now()
        update: dict = {"$set": doc}
        removed = {k: "" for k in OPTIONAL_FIELDS if k not in doc}
        if removed:
            update["$unset"] = removed
        try:
            updated = self.collection.find_one_and_update(
                {"_id": oid},
                update,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            logger.exception("Error updating PRG session %s", session_id)
            raise StoreError("Failed to update PRG session") from exc
        # Deleted between the read and the write.
        if updated is None:
            raise NotFound()
        return _doc_to_session(updated)

    def delete(self, session_id: str) -> None:
        """Permanently remove a session. Raises NotFound if it does not exist."""
        oid = _parse_id(session_id)
        try:
            result = self.collection.delete_one({"_id": oid})
        except PyMongoError as exc:
            logger.exception("Error deleting PRG session %s", session_id)
            raise StoreError("Failed to delete PRG session") from exc
        if result.deleted_count == 0:
            raise NotFound()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, session_id: str) -> PRGSession:
        oid = _parse_id(session_id)
        try:
            doc = self.collection.find_one({"_id": oid})
        except PyMongoError as exc:
            logger.exception("Error fetching PRG session %s", session_id)
            raise StoreError("Failed to fetch PRG session") from exc
        if doc is None:
            raise NotFound()
        return _doc_to_session(doc)

    def list(self, academic_year: Optional[str] = None) -> list[PRGSession]:
        """Return sessions ordered by the date string ascending.

        The sort is lexicographic on DD-MM-YY, which is what the site has
        always shown. It is not chronological across months or years.
        """
        query = {"academicYear": academic_year} if academic_year else {}
        try:
            cursor = self.collection.find(query).sort([("date", ASCENDING), ("_id", ASCENDING)])
            return [_doc_to_session(doc) for doc in cursor]
        except PyMongoError as exc:
            logger.exception("Error fetching PRG sessions")
            raise StoreError("Failed to fetch PRG sessions") from exc

    def ping(self) -> bool:
        """Return True if the database answers a ping command."""
        try:
            self.collection.database.command("ping")
            return True
        except PyMongoError:
            logger.warning("Database ping failed", exc_info=True)
            return False


# ---------------------------------------------------------------------------
# Document mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _doc_to_session(doc: dict) -> PRGSession:
    return PRGSession(
        id=str(doc["_id"]),
        date=doc.get("date", ""),
        paper_title=doc.get("paperTitle", ""),
        paper_link=doc.get("paperLink", ""),
        slides_link=doc.get("slidesLink"),
        resources=doc.get("resources"),
        presenter=[Presenter(name=p.get("name", ""), link=p.get("link", "")) for p in doc.get("presenter") or []],
        academic_year=doc.get("academicYear", ""),
        created_at=_to_iso(doc.get("createdAt")),
        updated_at=_to_iso(doc.get("updatedAt")),
    )

