"""
api/routes/auth.py -- The /auth gateway: one dispatcher for every auth request.

Routes (GET only; any other method is 405 on every path):
  GET /auth/login     -- HTTP Basic login; 302 / or 400 invalid credentials
  GET /auth/logout    -- clear the session principal; 302 /
  GET /auth/google    -- 302 to Google's consent page
  GET /auth/success   -- 302 /   (landing target after a Google login)
  GET /auth/failure   -- 401 invalid/missing Authorization
  GET <callbackURL>*  -- Google callback; matched by URL prefix, not by path
  GET /auth/<other>   -- 501, suggests GET /auth/login

Dispatch order [routing]:
  1. Method check first. A POST to /auth/login is 405, never a login attempt.
  2. Callback prefix second. A callback arriving as /auth/google/callback?code=
     must not fall into the /auth/google branch, so the prefix wins over paths.
  3. Exact path match on the request path (query string ignored).

Security:
  [H2] The whole gateway shares one rate limit per client address
       (Settings.auth_rate_limit, per application) -- /auth/login is the
       brute-force target.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Request
from slowapi import Limiter
from starlette.responses import Response

from api.errors import MethodNotAllowed, NotImplementedRoute
from api.flows import Flow, failure, from_provider, login, logout, success, to_provider
from auth.strategies import StrategyRegistry

logger = logging.getLogger("authgate.api.auth")

AUTH_PREFIX = "/auth"

_ROUTES: dict[str, Flow] = {
    "/auth/failure": failure,
    "/auth/google": to_provider,
    "/auth/login": login,
    "/auth/logout": logout,
    "/auth/success": success,
}

# Every method reaches dispatch() so the 405 comes from the gateway, in the
# gateway's error envelope, rather than from starlette's router.
_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class AuthRouter:
    """Classify a request and hand it to the matching flow."""

    def __init__(self, registry: StrategyRegistry, callback_url: Optional[str] = None) -> None:
        self.registry = registry
        self.callback_url = callback_url if callback_url is not None else registry.callback_url

    def is_provider_callback(self, request: Request) -> bool:
        """True when the request URL starts with the configured callback URL.

        An absolute callback URL is compared against the full request URL; a
        relative one (e.g. "/auth/google/callback") against path + query.
        """
        if not self.callback_url:
            return False
        if urlsplit(self.callback_url).scheme:
            return str(request.url).startswith(self.callback_url)
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return target.startswith(self.callback_url)

    def select(self, request: Request) -> Flow:
        """Return the flow for this request, or raise the routing error."""
        if request.method != "GET":
            raise MethodNotAllowed("try GET method")
        if self.is_provider_callback(request):
            return from_provider
        flow = _ROUTES.get(request.url.path)
        if flow is None:
            raise NotImplementedRoute("try GET /auth/login")
        return flow

    async def dispatch(self, request: Request) -> Response:
        flow = self.select(request)
        logger.debug("Dispatching %s to flow %s", request.url.path, flow.name)
        return await flow.run(request, self.registry)

    def api_router(self, limiter: Limiter, rate_limit: str) -> APIRouter:
        """Build the FastAPI router that feeds every /auth request to dispatch().

        The one endpoint is rate limited by `rate_limit` on this app's limiter.
        A callback URL outside /auth/ gets a catch-all route under its path,
        so any URL it prefixes reaches dispatch() and the prefix check.
        """

        @limiter.limit(rate_limit)  # [H2]
        async def auth_gateway(request: Request) -> Response:
            return await self.dispatch(request)

        router = APIRouter()
        router.add_api_route(
            AUTH_PREFIX + "/{path:path}",
            auth_gateway,
            methods=_ALL_METHODS,
            include_in_schema=False,
        )
        if self.callback_url:
            callback_path = urlsplit(self.callback_url).path.rstrip("/")
            if callback_path and not callback_path.startswith(AUTH_PREFIX + "/"):
                router.add_api_route(
                    callback_path + "{rest:path}",
                    auth_gateway,
                    methods=_ALL_METHODS,
                    include_in_schema=False,
                )
        return router
