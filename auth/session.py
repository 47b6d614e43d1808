"""
auth/session.py -- Wires session state and authentication into an application.

SessionBinder.bind() must run while the application is being assembled,
before it serves its first request. It attaches three middleware stages that
a request meets in this fixed order:

  1. SessionMiddleware         -- signed-cookie session state (starlette)
  2. AuthInitializeMiddleware  -- installs an AuthContext on request.state.auth
  3. AuthSessionMiddleware     -- restores the principal from the session

Starlette's add_middleware() inserts at the front of the stack, so the last
stage added is the outermost. bind() therefore adds them in reverse.

The session configuration is passed through to SessionMiddleware untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from starlette.middleware.sessions import SessionMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from auth.context import AuthContext, SessionNotBound
from auth.strategies import StrategyRegistry

logger = logging.getLogger("authgate.auth.session")


def _state(scope: Scope) -> dict[str, Any]:
    # Same dict starlette's Request.state wraps
    return scope.setdefault("state", {})


class AuthInitializeMiddleware:
    """Pure ASGI middleware: give every HTTP request a fresh AuthContext."""

    def __init__(self, app: ASGIApp, registry: StrategyRegistry) -> None:
        self.app = app
        self.registry = registry

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] in ("http", "websocket"):
            _state(scope)["auth"] = AuthContext(self.registry)
        await self.app(scope, receive, send)


class AuthSessionMiddleware:
    """Pure ASGI middleware: restore the session principal into the AuthContext."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] in ("http", "websocket"):
            context = _state(scope).get("auth")
            if context is None:
                raise SessionNotBound("AuthInitializeMiddleware must run before AuthSessionMiddleware")
            if "session" not in scope:
                raise SessionNotBound("SessionMiddleware must run before AuthSessionMiddleware")
            context.attach(scope["session"])
        await self.app(scope, receive, send)


class SessionBinder:
    """Attach session and authentication middleware to an application."""

    def __init__(self, registry: StrategyRegistry) -> None:
        self.registry = registry

    def bind(self, session_config: Mapping[str, Any], app: Any, *properties: Mapping[str, Any]) -> None:
        """Merge properties onto app.state, initialize strategies, add middleware.

        Args:
            session_config: keyword arguments for SessionMiddleware, opaque here.
            app:            the Starlette/FastAPI application being assembled.
            properties:     mappings merged onto app.state, later ones win.
        """
        for extra in properties:
            for key, value in extra.items():
                setattr(app.state, key, value)

        self.registry.initialize()  # one-time, no-op on later binds

        # Reverse order: the last add_middleware() call is the outermost stage.
        app.add_middleware(AuthSessionMiddleware)
        app.add_middleware(AuthInitializeMiddleware, registry=self.registry)
        app.add_middleware(SessionMiddleware, **dict(session_config))
        logger.info("Session and authentication middleware bound")
