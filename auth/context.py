"""
auth/context.py -- Per-request authentication handle.

AuthContext is what flows use to read, bind and clear the principal. It is
created by AuthInitializeMiddleware and populated from the session by
AuthSessionMiddleware (see auth/session.py), and exposed on
request.state.auth.

The principal is written under a single session key. No other session key is
read or written here.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Optional

from auth.models import Principal

logger = logging.getLogger("authgate.auth.context")

SESSION_KEY = "authgate.principal"


class SessionNotBound(RuntimeError):
    """Raised when the auth context is used without session middleware."""


class AuthContext:
    """Login/logout operations against the current request's session."""

    def __init__(self, registry: Any) -> None:
        self._registry = registry
        self._session: Optional[MutableMapping[str, Any]] = None
        self.principal: Optional[Principal] = None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    def attach(self, session: MutableMapping[str, Any]) -> None:
        """Attach the session and restore any principal stored in it."""
        self._session = session
        stored = session.get(SESSION_KEY)
        if stored is None:
            return
        self.principal = self._registry.deserialize(stored)
        if self.principal is None:
            logger.warning("Discarding unreadable principal from session")
            session.pop(SESSION_KEY, None)

    def _require_session(self) -> MutableMapping[str, Any]:
        if self._session is None:
            raise SessionNotBound("session middleware is not installed before the auth middleware")
        return self._session

    async def login(self, principal: Principal) -> None:
        """Bind principal to the session. Call only after verification resolved."""
        session = self._require_session()
        session[SESSION_KEY] = self._registry.serialize(principal)
        self.principal = principal

    async def logout(self) -> None:
        """Remove the principal from the session. Safe when none is bound."""
        session = self._require_session()
        session.pop(SESSION_KEY, None)
        self.principal = None
