"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the PRG site happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, mongodb_uri -> MONGODB_URI).

  @model_validator(mode="after"): dev mode (DEBUG=true) generates a SECRET_KEY
      with a warning, production mode refuses to start without one.

Layer rule: core/ is the kernel. This module may not import from api/, auth/
or sessions/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("prgsite.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "prgsite"
    # Milliseconds. pymongo waits 30s by default before giving up on a server.
    mongodb_timeout_ms: int = 5000

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    secure_cookies: bool = False
    token_expire_seconds: int = 24 * 60 * 60
    # Tokens older than this are re-issued on use (rolling session).
    token_refresh_seconds: int = 60 * 60

    validation_cache_ttl: int = 5 * 60
    validation_cache_max_entries: int = 100

    # "database" reads admins from the admins collection; "static" uses the
    # single ADMIN_* identity below.
    identity_backend: str = "database"
    admin_email: str = "admin@example.com"
    admin_name: str = "Admin User"
    admin_password_hash: str = ""

    # Legacy static key accepted in the X-API-Key header. Empty disables it.
    admin_api_key: str = ""

    protect_session_routes: bool = True

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    login_max_failures: int = 5
    login_lockout_seconds: int = 5 * 60

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @model_validator(mode="after")
    def validate_identity_backend(self) -> "Settings":
        if self.identity_backend not in ("database", "static"):
            raise ValueError("IDENTITY_BACKEND must be 'database' or 'static'.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
