"""
auth/gate.py -- Authentication strategies and the admin gate.

Two strategies answer the same question, authenticate(request) -> Identity:
  1. SessionTokenStrategy -- the JWT set by POST /api/auth/login, read from
     the "session_token" cookie or an Authorization: Bearer header.
  2. ApiKeyStrategy -- the legacy static X-API-Key header, for scripts that
     predate the login flow. Disabled when ADMIN_API_KEY is empty.

AuthGate tries them in order. validate_session() is the yes/no check used to
protect admin routes: it caches its answer per credential fingerprint for
VALIDATION_CACHE_TTL seconds, never past the token's exp, and never raises --
any internal error is logged and answered with False.

Layer rule: no imports from api/ or sessions/.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Protocol, Sequence

from starlette.requests import Request

from auth.cache import ValidationCache
from auth.models import Identity
from auth.tokens import COOKIE_NAME, create_session_token, decode_session_token, needs_refresh

logger = logging.getLogger("prgsite.auth")

API_KEY_HEADER = "X-API-Key"

# Headers that can carry a credential. Their combined value is the cache key.
_CREDENTIAL_HEADERS = ("authorization", "cookie", API_KEY_HEADER.lower())


class AuthStrategy(Protocol):
    def authenticate(self, request: Request) -> Identity | None: ...


class SessionTokenStrategy:
    """Authenticate with the session JWT (cookie first, then Bearer header).

    A valid token older than the refresh threshold gets a replacement stored on
    request.state.refreshed_token; the API middleware writes it back as the
    new cookie. The accepted token's exp is left on
    request.state.credential_expires_at for the gate's cache.
    """

    def authenticate(self, request: Request) -> Identity | None:
        token: str | None = request.cookies.get(COOKIE_NAME)
        if not token:
            auth_header = request.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                token = auth_header[7:]
        if not token:
            return None

        claims = decode_session_token(token)
        if claims is None:
            return None
        identity = Identity(
            id=str(claims["sub"]),
            email=claims.get("email", ""),
            name=claims.get("name", ""),
            role=claims["role"],
        )
        request.state.credential_expires_at = claims.get("exp")
        if needs_refresh(claims):
            request.state.refreshed_token = create_session_token(identity, login_time=claims.get("login_time"))
        return identity


class ApiKeyStrategy:
    """Authenticate with a single static key in the X-API-Key header."""

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    def authenticate(self, request: Request) -> Identity | None:
        if not self._api_key:
            return None
        presented = request.headers.get(API_KEY_HEADER, "")
        if not presented:
            return None
        if not hmac.compare_digest(presented.encode("utf-8"), self._api_key.encode("utf-8")):
            return None
        return Identity(id="api-key", email="", name="API key", role="admin")


def _remaining_life(request: Request) -> float | None:
    """Seconds until the accepted credential expires, or None if it never does."""
    expires_at = getattr(request.state, "credential_expires_at", None)
    if not isinstance(expires_at, (int, float)):
        return None
    return expires_at - time.time()


def credential_fingerprint(request: Request) -> str:
    """SHA-256 over every header that can carry a credential."""
    digest = hashlib.sha256()
    for name in _CREDENTIAL_HEADERS:
        digest.update(request.headers.get(name, "").encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


class AuthGate:
    """Runs the strategies in order and answers admin checks through a cache.

    Usage:
        gate = AuthGate.from_settings(get_settings())
        identity = gate.authenticate(request)   # Identity or None
        ok = gate.validate_session(request)     # True only for an admin
    """

    def __init__(self, strategies: Sequence[AuthStrategy], cache: ValidationCache) -> None:
        self.strategies = list(strategies)
        self.cache = cache

    @classmethod
    def from_settings(cls, settings) -> "AuthGate":
        return cls(
            strategies=[SessionTokenStrategy(), ApiKeyStrategy(settings.admin_api_key)],
            cache=ValidationCache(
                ttl=settings.validation_cache_ttl,
                max_entries=settings.validation_cache_max_entries,
            ),
        )

    def authenticate(self, request: Request) -> Identity | None:
        """Return the first identity any strategy accepts, or None."""
        for strategy in self.strategies:
            try:
                identity = strategy.authenticate(request)
            except Exception:
                logger.exception("%s failed", type(strategy).__name__)
                continue
            if identity is not None:
                return identity
        return None

    def validate_session(self, request: Request) -> bool:
        """Return True if the request carries a valid admin credential. Never raises."""
        try:
            key = credential_fingerprint(request)
            cached = self.cache.get(key)
            if cached is not None:
                return cached
            identity = self.authenticate(request)
            valid = identity is not None and identity.role == "admin"
            self.cache.set(key, valid, max_age=_remaining_life(request) if valid else None)
            return valid
        except Exception:
            logger.exception("Session validation error")
            return False
