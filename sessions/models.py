"""
sessions/models.py -- Domain dataclasses for Paper Reading Group sessions.

These are pure data containers with zero logic. Validation lives in
sessions/validation.py and persistence in sessions/store.py.

Python attributes are snake_case; the MongoDB documents and the JSON API use
camelCase (paperTitle, academicYear, ...) so the collection stays readable by
anything else that already uses it.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Presenter:
    """A person presenting at a session, with a link to their page."""

    name: str
    link: str


@dataclass
class PRGSession:
    """One reading-group meeting.

    date is a DD-MM-YY string and academic_year a YYYY-YYYY label. Both are
    kept as strings because that is how the site displays and groups them.

    id is None before the record is written to the database.
    """

    date: str
    paper_title: str
    paper_link: str
    academic_year: str
    presenter: list[Presenter] = field(default_factory=list)
    slides_link: Optional[str] = None
    resources: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None  # ISO 8601, set by store on insert
    updated_at: Optional[str] = None  # ISO 8601, refreshed on every write
