"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for authgate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, secrets_file -> SECRETS_FILE).

  @model_validator(mode="after"): dev mode generates a session signing key
      with a warning, production mode refuses to start without one.

Security notes:
  [M6] SECRET_KEY shorter than 32 chars is rejected outright. The session
       cookie is signed with it -- a short key makes forging sessions easier.

  [M7] In production mode (DEBUG not set or false), a missing SECRET_KEY is a
       hard startup failure.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from typing import Any, Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authgate.config")


class SecretsSettings(BaseSettings):
    """Where the secrets document lives. No SECRET_KEY policy applies here.

    Used on its own by `main.py check`, which never signs a session.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Secrets document (users + provider client)
    # ------------------------------------------------------------------

    secrets_file: str = "secrets.json"
    # Inline JSON, takes precedence over secrets_file (container deployments)
    secrets_json: str = ""


class Settings(SecretsSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Session cookie
    # ------------------------------------------------------------------

    session_cookie: str = "authgate.session"
    session_max_age: int = 86400
    session_same_site: Literal["lax", "strict", "none"] = "lax"
    secure_cookies: bool = False

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    auth_rate_limit: str = "30/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy [M6] [M7].

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if SECRET_KEY is missing.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated SECRET_KEY. " "Sessions will not persist across restarts."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    def session_config(self) -> dict[str, Any]:
        """Return the keyword arguments for the session-state middleware.

        The auth core passes this mapping through without reading it.
        """
        return {
            "secret_key": self.secret_key,
            "session_cookie": self.session_cookie,
            "max_age": self.session_max_age,
            "same_site": self.session_same_site,
            "https_only": self.secure_cookies,
        }


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
