"""
api/main.py -- FastAPI application entry point for the PRG site.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan opens the MongoDB client and builds every shared component on
app.state (session store, identity provider, auth gate, login throttle), and
closes the client on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from pymongo import MongoClient
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.prg_sessions import router as sessions_router
from auth.gate import AuthGate
from auth.store import COLLECTION_NAME as ADMINS_COLLECTION
from auth.store import IdentityStore, StaticIdentityProvider
from auth.throttle import LoginThrottle
from auth.tokens import set_session_cookie
from core.config import get_settings
from sessions.errors import InvalidId, NotFound, StoreError, ValidationError
from sessions.store import COLLECTION_NAME as SESSIONS_COLLECTION
from sessions.store import SessionStore

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("prgsite.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def init_state(app: FastAPI, database, settings) -> None:
    """Build the shared components on app.state from an open database handle.

    Split out of lifespan so tests can hand in a mongomock database and get
    exactly the wiring production uses.
    """
    app.state.session_store = SessionStore(database[SESSIONS_COLLECTION])
    if settings.identity_backend == "static":
        app.state.identity_provider = StaticIdentityProvider.from_settings(settings)
    else:
        app.state.identity_provider = IdentityStore(database[ADMINS_COLLECTION])
    app.state.auth_gate = AuthGate.from_settings(settings)
    app.state.login_throttle = LoginThrottle(
        max_failures=settings.login_max_failures,
        window_seconds=settings.login_lockout_seconds,
    )
    app.state.protect_session_routes = settings.protect_session_routes


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database client on startup and close it on shutdown.

    The client connects lazily, so startup does not fail when MongoDB is
    briefly unavailable; the health endpoint reports it instead.
    """
    logger.info("PRG site API starting up")
    client: MongoClient = MongoClient(_settings.mongodb_uri, serverSelectionTimeoutMS=_settings.mongodb_timeout_ms)
    app.state.mongo_client = client
    init_state(app, client[_settings.mongodb_database], _settings)
    logger.info(
        "Stores initialized (database=%s, identity_backend=%s, route_protection=%s)",
        _settings.mongodb_database,
        _settings.identity_backend,
        _settings.protect_session_routes,
    )
    if not _settings.protect_session_routes:
        logger.warning("Session write routes are NOT protected (PROTECT_SESSION_ROUTES=false)")

    yield

    client.close()
    logger.info("PRG site API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="PRG Site API",
    description="Paper Reading Group sessions and admin login for the academic site.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Rolling session refresh
#
# SessionTokenStrategy leaves a re-issued token on request.state when the
# presented one is older than TOKEN_REFRESH_SECONDS. Writing the cookie here
# keeps route handlers unaware of the refresh.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def refresh_session_cookie(request: Request, call_next):
    response = await call_next(request)
    token = getattr(request.state, "refreshed_token", None)
    if token and response.status_code < 400:
        set_session_cookie(response, token)
    return response


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(sessions_router, prefix="/api", tags=["PRG Sessions"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _envelope(status_code: int, code: str, message: str, detail=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


@app.exception_handler(ValidationError)
async def session_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _envelope(400, "validation_error", exc.message, exc.errors)


@app.exception_handler(InvalidId)
async def invalid_id_handler(request: Request, exc: InvalidId) -> JSONResponse:
    return _envelope(400, "invalid_id", exc.message)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return _envelope(404, "not_found", exc.message)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Return 500 with the store's public message only.

    The driver error is chained on exc.__cause__ and was logged with its
    traceback by the store; it never reaches the response body.
    """
    logger.error("Store failure on %s %s: %r", request.method, request.url.path, exc.__cause__)
    return _envelope(500, "internal_error", exc.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _envelope(429, "rate_limited", "Too many requests.", str(exc.detail))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when a request body, path or query parameter fails validation."""
    details = [f"{'.'.join(str(p) for p in err['loc'][1:]) or err['loc'][0]}: {err['msg']}" for err in exc.errors()]
    return _envelope(400, "validation_error", "Validation failed", details)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    return _envelope(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged only, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _envelope(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is always reachable regardless of router
# registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    db_ok = request.app.state.session_store.ping()
    return HealthResponse(version=VERSION, components={"app": "ok", "database": "ok" if db_ok else "error"})
