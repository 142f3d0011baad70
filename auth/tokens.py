"""
auth/tokens.py -- Password hashing, session JWTs, and the credentials check.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub (identity id), email, name, role, iat, exp and login_time.
       Verification returns None on any failure -- the gate turns that into
       "not authenticated".

  Lifetime: each token is valid for TOKEN_EXPIRE_SECONDS (24h). A token older
       than TOKEN_REFRESH_SECONDS (1h) is re-issued on use with a fresh iat/exp
       and the original login_time, so an active admin stays signed in.

  Passwords: bcrypt with cost factor 12. The _DUMMY_HASH constant enables
       timing equalization in authorize() so response time does not reveal
       whether an email is registered.

Layer rule: no imports from api/ or sessions/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.store import normalize_email
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import Identity
    from auth.store import IdentityProvider

logger = logging.getLogger("prgsite.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
_BCRYPT_ROUNDS = 12

COOKIE_NAME = "session_token"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash (cost 12) of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The login body caps passwords at
    255 characters, which keeps inputs sane without pretending to fix that.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        # Malformed or empty hash
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("prgsite_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_session_token(identity: Identity, login_time: int | None = None) -> str:
    """Encode a signed JWT for the given identity, valid for TOKEN_EXPIRE_SECONDS.

    Args:
        identity:   The authenticated principal. Only its public fields are
                    embedded; id becomes the sub claim.
        login_time: Unix time of the original sign-in. Carried over when a
                    token is refreshed; defaults to now for a fresh login.
    """
    now = datetime.now(timezone.utc)
    claims = identity.public_fields()
    payload = {
        "sub": claims.pop("id"),
        **claims,
        "iat": now,
        "exp": now + timedelta(seconds=_settings.token_expire_seconds),
        "login_time": login_time if login_time is not None else int(now.timestamp()),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_session_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Signature and exp are checked by python-jose. A payload without sub or
    role is treated as invalid.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if "sub" not in payload or "role" not in payload:
        return None
    return payload


def needs_refresh(claims: dict) -> bool:
    """Return True if the token was issued more than TOKEN_REFRESH_SECONDS ago."""
    issued_at = claims.get("iat")
    if not isinstance(issued_at, (int, float)):
        return True
    return time.time() - issued_at > _settings.token_refresh_seconds


# ---------------------------------------------------------------------------
# Credentials check (constant-time)
# ---------------------------------------------------------------------------


def authorize(provider: IdentityProvider, email: str, password: str) -> Identity | None:
    """Check an email/password pair against the identity provider.

    Always runs bcrypt whether or not the email exists, so an unknown email and
    a wrong password cost the same and look the same to the caller.

    Returns the Identity on success, None on any failure.
    """
    normalized = normalize_email(email)
    if not normalized or not password:
        logger.warning("Login attempt with missing credentials")
        return None

    identity = provider.find_by_email(normalized)
    if identity is None or not identity.password_hash:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, _DUMMY_HASH)
        logger.warning("Login attempt for unknown email: %s", normalized)
        return None
    if not verify_password(password, identity.password_hash):
        logger.warning("Invalid password attempt for: %s", normalized)
        return None

    logger.info("Successful login for: %s", normalized)
    return identity


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, token: str) -> None:
    """Write the session JWT as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    samesite="lax": not sent on cross-site POST.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the JWT expiry so both expire together.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.token_expire_seconds,
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(COOKIE_NAME)
