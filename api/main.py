"""
api/main.py -- FastAPI application assembly for authgate.

create_app() builds one fully wired application:
  1. Settings and the secrets document (core/).
  2. CredentialStore + StrategyRegistry (auth/).
  3. SessionBinder.bind() -- session, auth-initialize, auth-session middleware.
  4. AuthRouter mounted for /auth/* and the provider callback.
  5. Status routes: GET / and GET /api/v1/health.

Run with:  uvicorn asgi:app --reload
           python main.py serve

Middleware stack (outermost to innermost):
  1. log_requests             -- request logging (added last, so outermost)
  2. SlowAPIMiddleware        -- this app's Limiter (api.limiter)
  3. SessionMiddleware        -- signed-cookie session
  4. AuthInitializeMiddleware -- request.state.auth
  5. AuthSessionMiddleware    -- principal restored from the session
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.flows import auth_context
from api.limiter import build_limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse, SessionStatusResponse
from api.routes.auth import AuthRouter
from auth.session import SessionBinder
from auth.store import CredentialStore
from auth.strategies import StrategyRegistry
from core.config import Settings, get_settings
from core.secrets_file import Secrets, load_secrets

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authgate.api")


def create_app(
    settings: Optional[Settings] = None,
    secrets: Optional[Secrets] = None,
    oauth: Any = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        settings: defaults to get_settings().
        secrets:  defaults to load_secrets(settings).
        oauth:    authlib OAuth registry; a fresh one when None. Tests pass a
                  fake registry here so no network call is ever made.
    """
    settings = settings or get_settings()
    if secrets is None:
        secrets = load_secrets(settings)

    store = CredentialStore.from_secrets(secrets)
    registry = StrategyRegistry(store, oauth)
    gateway = AuthRouter(registry)
    limiter = build_limiter()

    app = FastAPI(
        title="authgate",
        description="Request-time authentication gateway: local login, Google OAuth, sessions.",
        version=VERSION,
        docs_url=None,
        redoc_url=None,
    )

    SessionBinder(registry).bind(
        settings.session_config(),
        app,
        {"settings": settings, "credential_store": store, "registry": registry, "auth_router": gateway},
    )

    app.add_middleware(SlowAPIMiddleware)
    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = limiter

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

    app.include_router(gateway.api_router(limiter, settings.auth_rate_limit), tags=["Auth"])
    _register_status_routes(app)
    _register_exception_handlers(app)

    logger.info(
        "authgate assembled (users=%d, google=%s)",
        len(store),
        store.provider is not None,
    )
    return app


# ---------------------------------------------------------------------------
# Status routes
# ---------------------------------------------------------------------------


def _register_status_routes(app: FastAPI) -> None:
    @app.get("/", tags=["Status"])
    async def session_status(request: Request) -> SessionStatusResponse:
        """Report whether this request carries a principal, and which kind."""
        principal = auth_context(request).principal
        if principal is None:
            return SessionStatusResponse(authenticated=False)
        if principal.kind == "user":
            return SessionStatusResponse(authenticated=True, kind="user", username=principal.user.username)
        return SessionStatusResponse(authenticated=True, kind="token")

    @app.get("/api/v1/health", tags=["Status"])
    async def health() -> HealthResponse:
        """Return API liveness and current version."""
        return HealthResponse(version=VERSION)


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429 with a structured error when a rate limit is exceeded."""
        retry_after = int(getattr(exc, "retry_after", 60))
        response = JSONResponse(
            status_code=429,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="rate_limited",
                    message="Too many requests.",
                    detail=str(exc.detail),
                )
            ).model_dump(),
        )
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Return a structured error for every gateway HTTPException.

        Gateway errors carry detail as a {"code", "message"} dict; use it as
        the error field directly. Exception headers (e.g. Allow on 405) are kept.
        """
        if isinstance(exc.detail, dict):
            content: dict = {"error": exc.detail}
        else:
            content = ErrorResponse(
                error=ErrorDetail(
                    code=f"http_{exc.status_code}",
                    message=str(exc.detail),
                )
            ).model_dump()
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        The raw exception is logged only, never written to the response body.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="internal_error",
                    message="An unexpected error occurred.",
                )
            ).model_dump(),
        )
