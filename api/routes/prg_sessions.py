"""
api/routes/prg_sessions.py -- Paper Reading Group session routes.

Routes:
  GET    /prg-sessions[?academicYear=YYYY-YYYY]  -- sessions grouped by year (public)
  GET    /prg-sessions/{session_id}             -- one full record (public)
  POST   /prg-sessions                          -- create (admin)
  PUT    /prg-sessions/{session_id}             -- replace mutable fields (admin)
  DELETE /prg-sessions/{session_id}             -- hard delete (admin)

Store failures are not caught here. sessions.errors exceptions propagate to the
handlers registered in api/main.py, which map them to 400/404/500 and keep
driver errors out of the response body.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.limiter import limiter
from api.models import MessageResponse, SessionInput, SessionResponse, SessionSummary
from auth.dependencies import protect_writes
from sessions.store import SessionStore, group_by_year

# Auth policy:
# - GET    /prg-sessions, /prg-sessions/{id}: public -- the reading-group page reads them
# - POST, PUT, DELETE:                       admin (protect_writes), unless
#                                            PROTECT_SESSION_ROUTES=false
router = APIRouter()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get(
    "/prg-sessions",
    response_model=dict[str, list[SessionSummary]],
    response_model_exclude_none=True,
)
def list_sessions(
    request: Request,
    academic_year: Optional[str] = Query(default=None, alias="academicYear", max_length=9),
) -> dict[str, list[SessionSummary]]:
    """Return sessions grouped by academic year, each group ordered by date.

    With academicYear the query is filtered first; the response keeps the
    grouped shape (one key, or none if that year has no sessions).
    """
    store: SessionStore = request.app.state.session_store
    grouped = group_by_year(store.list(academic_year))
    return {year: [SessionSummary.from_session(s) for s in sessions] for year, sessions in grouped.items()}


@router.get("/prg-sessions/{session_id}", response_model=SessionResponse, response_model_exclude_none=True)
def get_session(request: Request, session_id: str) -> SessionResponse:
    store: SessionStore = request.app.state.session_store
    return SessionResponse.from_session(store.get_by_id(session_id))


# ---------------------------------------------------------------------------
# Writes (admin)
# ---------------------------------------------------------------------------


@limiter.limit("30/minute")
@router.post(
    "/prg-sessions",
    response_model=SessionResponse,
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(protect_writes)],
)
def create_session(request: Request, body: SessionInput) -> SessionResponse:
    store: SessionStore = request.app.state.session_store
    created = store.create(body.to_document())
    return SessionResponse.from_session(created)


@limiter.limit("30/minute")
@router.put(
    "/prg-sessions/{session_id}",
    response_model=SessionResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(protect_writes)],
)
def update_session(request: Request, session_id: str, body: SessionInput) -> SessionResponse:
    """Replace every mutable field. Optional fields missing from the body are cleared."""
    store: SessionStore = request.app.state.session_store
    updated = store.update(session_id, body.to_document())
    return SessionResponse.from_session(updated)


@limiter.limit("30/minute")
@router.delete(
    "/prg-sessions/{session_id}",
    response_model=MessageResponse,
    dependencies=[Depends(protect_writes)],
)
def delete_session(request: Request, session_id: str) -> MessageResponse:
    store: SessionStore = request.app.state.session_store
    store.delete(session_id)
    return MessageResponse(message="PRG session deleted successfully")
