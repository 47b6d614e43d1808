"""
core/secrets_file.py -- Loading and validation of the secrets document.

The secrets document is the only place local users and the Google client
credentials live. Shape:

    {
      "google": {"clientId": "...", "clientSecret": "...", "callbackURL": "...", ...},
      "users": [{"username": "...", "password": "...", ...}, ...]
    }

Both sections are optional. Unknown keys are kept: extra user keys become the
user's profile, extra google keys are handed to the OAuth client registration.

Pattern: pydantic v2 models own the document shape; load_secrets() owns the
I/O. Nothing here interprets passwords -- they stay opaque strings.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.config import SecretsSettings

logger = logging.getLogger("authgate.secrets")


class SecretsError(ValueError):
    """Raised when the secrets document exists but cannot be parsed or validated."""


class GoogleSecrets(BaseModel):
    """OAuth 2.0 client registration for Google."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    client_id: str = Field(alias="clientId", min_length=1)
    client_secret: str = Field(alias="clientSecret", min_length=1)
    callback_url: str = Field(alias="callbackURL", min_length=1)

    def extra_options(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class UserSecret(BaseModel):
    """A local user. Extra keys are profile fields."""

    model_config = ConfigDict(frozen=True, extra="allow")

    username: str = Field(min_length=1)
    # Any is deliberate: a malformed record (non-string password) must reach
    # the local strategy, which reports it as an internal verification error.
    password: Any = None

    def profile(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class Secrets(BaseModel):
    """Top-level secrets document."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    google: Optional[GoogleSecrets] = None
    users: list[UserSecret] = Field(default_factory=list)


def parse_secrets(raw: str | bytes) -> Secrets:
    """Parse a JSON secrets document. Raises SecretsError on any problem."""
    try:
        return Secrets.model_validate_json(raw)
    except ValidationError as exc:
        raise SecretsError(f"Invalid secrets document: {exc.error_count()} error(s)") from exc


def load_secrets(settings: SecretsSettings) -> Secrets:
    """Load the secrets document named by settings.

    SECRETS_JSON wins over SECRETS_FILE. A missing file is not fatal: the
    gateway starts with no users and no provider, and every login fails.
    """
    if settings.secrets_json:
        logger.info("Loading secrets from SECRETS_JSON")
        return parse_secrets(settings.secrets_json)

    path = Path(settings.secrets_file)
    if not path.is_file():
        logger.warning("Secrets file %s not found -- no users or provider configured", path)
        return Secrets()
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SecretsError(f"Could not read secrets file {path}: {exc}") from exc
    secrets = parse_secrets(raw)
    logger.info(
        "Secrets loaded from %s (%d user(s), google=%s)",
        path,
        len(secrets.users),
        secrets.google is not None,
    )
    return secrets
