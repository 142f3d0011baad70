"""
sessions/validation.py -- Field rules for PRG session documents.

The store runs these before every insert and update, so they are the source of
truth. The API request models reuse DATE_PATTERN and ACADEMIC_YEAR_PATTERN so a
malformed body is rejected before it reaches the store.

All violations are collected rather than stopping at the first one, so the
admin form can show every problem in one round trip.
"""

import re

DATE_PATTERN = r"^\d{2}-\d{2}-\d{2}$"
ACADEMIC_YEAR_PATTERN = r"^\d{4}-\d{4}$"

_DATE_RE = re.compile(DATE_PATTERN)
_ACADEMIC_YEAR_RE = re.compile(ACADEMIC_YEAR_PATTERN)

# Document keys the store accepts from callers. id and timestamps are owned
# by the store and never taken from input.
MUTABLE_FIELDS = ("date", "paperTitle", "paperLink", "slidesLink", "resources", "presenter", "academicYear")
OPTIONAL_FIELDS = ("slidesLink", "resources")


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def normalize_document(raw: dict) -> dict:
    """Return a copy of raw restricted to mutable fields, with strings trimmed.

    Presenter entries are rebuilt as plain {name, link} dicts. Optional fields
    that are None or blank are dropped so they are absent from the document.
    """
    doc: dict = {}
    for key in MUTABLE_FIELDS:
        if key not in raw:
            continue
        value = raw[key]
        if key == "presenter" and isinstance(value, list):
            value = [
                {"name": _clean(p.get("name")), "link": _clean(p.get("link"))} if isinstance(p, dict) else p
                for p in value
            ]
        else:
            value = _clean(value)
        if key in OPTIONAL_FIELDS and (value is None or value == ""):
            continue
        doc[key] = value
    return doc


def _non_empty_str(value) -> bool:
    return isinstance(value, str) and value != ""


def validate_document(doc: dict) -> list[str]:
    """Return a list of human-readable violations. Empty list means valid."""
    errors: list[str] = []

    date = doc.get("date")
    if not _non_empty_str(date):
        errors.append("date: Date is required")
    elif not _DATE_RE.match(date):
        errors.append("date: Date must be in DD-MM-YY format")

    if not _non_empty_str(doc.get("paperTitle")):
        errors.append("paperTitle: Paper title is required")

    if not _non_empty_str(doc.get("paperLink")):
        errors.append("paperLink: Paper link is required")

    for key in OPTIONAL_FIELDS:
        if key in doc and not isinstance(doc[key], str):
            errors.append(f"{key}: must be a string")

    presenters = doc.get("presenter")
    if not isinstance(presenters, list) or not presenters:
        errors.append("presenter: At least one presenter is required")
    else:
        for i, entry in enumerate(presenters):
            if not isinstance(entry, dict):
                errors.append(f"presenter.{i}: must be an object with name and link")
                continue
            if not _non_empty_str(entry.get("name")):
                errors.append(f"presenter.{i}.name: Presenter name cannot be empty")
            if not _non_empty_str(entry.get("link")):
                errors.append(f"presenter.{i}.link: Presenter link cannot be empty")

    year = doc.get("academicYear")
    if not _non_empty_str(year):
        errors.append("academicYear: Academic year is required")
    elif not _ACADEMIC_YEAR_RE.match(year):
        errors.append("academicYear: Academic year must be in YYYY-YYYY format")

    return errors
