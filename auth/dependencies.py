"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

All of them delegate to the AuthGate on app.state, which tries the session
JWT (cookie or Bearer header) and then the legacy X-API-Key header.

try_get_current_identity() is the soft variant (returns None on failure).
get_current_identity() wraps it and raises HTTP 401 if unauthenticated.
require_admin() uses the gate's cached admin check and raises HTTP 401.
protect_writes() applies require_admin() only while PROTECT_SESSION_ROUTES is on.

Failures never say why (bad signature, expired, wrong role, unknown key):
every case gets the same 401 body.

Layer rule: no imports from api/ or sessions/.
  auth/dependencies.py may import from fastapi because this module is part of
  the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.gate import AuthGate
from auth.models import Identity

_UNAUTHORIZED = {"code": "unauthorized", "message": "Authentication required."}


def try_get_current_identity(request: Request) -> Identity | None:
    """Authenticate the request. Returns None on any failure, never raises."""
    gate: AuthGate = request.app.state.auth_gate
    return gate.authenticate(request)


def get_current_identity(request: Request) -> Identity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated."""
    identity = try_get_current_identity(request)
    if identity is None:
        raise HTTPException(status_code=401, detail=_UNAUTHORIZED)
    return identity


def require_admin(request: Request) -> None:
    """Require a valid admin credential. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.post("/admin-only", dependencies=[Depends(require_admin)])
    """
    gate: AuthGate = request.app.state.auth_gate
    if not gate.validate_session(request):
        raise HTTPException(status_code=401, detail=_UNAUTHORIZED)


def protect_writes(request: Request) -> None:
    """require_admin(), unless route protection is switched off for this app."""
    if getattr(request.app.state, "protect_session_routes", True):
        require_admin(request)
