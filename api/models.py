"""
API request and response models for the PRG site REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in sessions/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

Attributes are snake_case in Python and camelCase on the wire (paperTitle,
academicYear, expiresIn) through the to_camel alias generator.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sessions.models import PRGSession
from sessions.validation import ACADEMIC_YEAR_PATTERN, DATE_PATTERN


# ---------------------------------------------------------------------------
# PRG sessions -- request models
# ---------------------------------------------------------------------------


class PresenterModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    link: str = Field(min_length=1, max_length=2048)


class SessionInput(BaseModel):
    """Request body for POST and PUT /api/prg-sessions.

    Mirrors the store's rules so the admin form gets a 400 before anything is
    sent to the database. The store validates again on write.
    """

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    date: str = Field(pattern=DATE_PATTERN, description="Meeting date, DD-MM-YY.")
    paper_title: str = Field(min_length=1, max_length=500)
    paper_link: str = Field(min_length=1, max_length=2048)
    slides_link: Optional[str] = Field(default=None, max_length=2048)
    resources: Optional[str] = Field(default=None, max_length=5000)
    presenter: list[PresenterModel] = Field(min_length=1, max_length=20)
    academic_year: str = Field(pattern=ACADEMIC_YEAR_PATTERN, description="Academic year, YYYY-YYYY.")

    def to_document(self) -> dict:
        """camelCase dict for the store. Optional fields left out are None, which clears them on update."""
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# PRG sessions -- response models
# ---------------------------------------------------------------------------


class PresenterOut(BaseModel):
    """Presenter as stored, without the input constraints, so legacy records still serialize."""

    model_config = ConfigDict(frozen=True)

    name: str
    link: str


class SessionSummary(BaseModel):
    """One session as listed on the public reading-group page.

    No id, timestamps or academic year: the year is the key it is grouped under.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    date: str
    paper_title: str
    paper_link: str
    slides_link: Optional[str] = None
    resources: Optional[str] = None
    presenter: list[PresenterOut]

    @classmethod
    def from_session(cls, session: PRGSession) -> "SessionSummary":
        return cls(
            date=session.date,
            paper_title=session.paper_title,
            paper_link=session.paper_link,
            slides_link=session.slides_link,
            resources=session.resources,
            presenter=[PresenterOut(name=p.name, link=p.link) for p in session.presenter],
        )


class SessionResponse(BaseModel):
    """Full stored record returned by GET/POST/PUT on a single session."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    date: str
    paper_title: str
    paper_link: str
    slides_link: Optional[str] = None
    resources: Optional[str] = None
    presenter: list[PresenterOut]
    academic_year: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_session(cls, session: PRGSession) -> "SessionResponse":
        return cls(
            id=session.id,
            date=session.date,
            paper_title=session.paper_title,
            paper_link=session.paper_link,
            slides_link=session.slides_link,
            resources=session.resources,
            presenter=[PresenterOut(name=p.name, link=p.link) for p in session.presenter],
            academic_year=session.academic_year,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login.

    Only length limits here. Missing-vs-wrong distinctions are not exposed, so
    an empty password is simply a failed login.
    """

    email: str = Field(max_length=255)
    password: str = Field(max_length=255)


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    email: str
    name: str
    role: str
    expires_in: int


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    role: str


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str | list[str]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
