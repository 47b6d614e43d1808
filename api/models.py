"""
API response models for the authgate HTTP surface.

These Pydantic v2 models define the transport contract. They are separate
from the dataclasses in auth/models.py, which own the domain representation.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


class SessionStatusResponse(BaseModel):
    """Response for GET / -- whether the request carries a principal.

    username is only set for local-user principals; token principals expose
    nothing beyond their kind.
    """

    model_config = ConfigDict(frozen=True)

    authenticated: bool
    kind: Optional[Literal["user", "token"]] = None
    username: Optional[str] = None
