"""
api/routes/auth.py -- Admin login endpoints.

Routes:
  POST /auth/login   -- email/password login; sets the session cookie
  POST /auth/logout  -- clears the cookie; 200
  GET  /auth/me      -- identity behind the current credential (requires auth)

Security:
  POST /login has two independent brakes:
    - a slowapi request budget per IP (LOGIN_RATE_LIMIT, default 10/minute);
    - LoginThrottle: LOGIN_MAX_FAILURES failed attempts per IP within
      LOGIN_LOCKOUT_SECONDS block further attempts until the window moves.
  authorize() runs bcrypt for unknown emails too -- use it, never inline.
  Wrong email and wrong password produce the same 401 body.
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi.util import get_remote_address

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, MeResponse, MessageResponse
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.throttle import LoginThrottle
from auth.tokens import authorize, clear_session_cookie, create_session_token, set_session_cookie
from core.config import get_settings

router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(exclude_none=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie."""
    throttle: LoginThrottle = request.app.state.login_throttle
    client_key = get_remote_address(request)

    if throttle.is_blocked(client_key):
        resp = _error(429, "too_many_attempts", "Too many failed login attempts. Try again later.")
        resp.headers["Retry-After"] = str(throttle.retry_after(client_key))
        return resp

    identity = authorize(request.app.state.identity_provider, body.email, body.password)
    if identity is None:
        throttle.record_failure(client_key)
        return _error(401, "bad_credentials", "Invalid credentials.")

    throttle.record_success(client_key)
    settings = get_settings()
    token = create_session_token(identity)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            email=identity.email,
            name=identity.name,
            role=identity.role,
            expires_in=settings.token_expire_seconds,
        ).model_dump(by_alias=True),
    )
    set_session_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=MessageResponse)
async def logout() -> JSONResponse:
    """Clear the session cookie."""
    resp = JSONResponse(content={"message": "Logged out."})
    clear_session_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(current: Identity = Depends(get_current_identity)) -> MeResponse:
    return MeResponse(**current.public_fields())
