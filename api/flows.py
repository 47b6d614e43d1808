"""
api/flows.py -- The gateway's request flows, built from ordered stages.

Pattern: Pipeline. A Flow is an explicit, ordered list of stages. Each stage is
an async function (request, state) -> Response | None. Stages run in order;
the first one that returns a Response ends the flow. State is a small
per-request scratch object, so data moves between stages visibly instead of
through hidden closures.

Flows:
  login          HTTP Basic -> basic strategy -> bind session -> 302 /
  logout         clear session principal -> 302 /
  success        302 /
  failure        401 (invalid vs missing Authorization)
  to_provider    302 to Google consent page with fixed scopes
  from_provider  code exchange -> bind session -> 302 /auth/success,
                 any failure -> 302 /auth/failure

Error policy:
  login converts EVERY exception (bad header, unknown user, wrong password,
  malformed record) into BadRequest("invalid credentials") [C1]. The cause is
  logged server-side, never returned.

  from_provider converts every exception into a redirect to /auth/failure.

  Session mutation always happens in a stage after verification resolved, so a
  cancelled request never leaves a half-written session. CancelledError is a
  BaseException and is not caught here.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from fastapi.security import HTTPBasic
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from api.errors import BadRequest, NotImplementedRoute, Unauthorized
from auth.context import AuthContext
from auth.models import Principal
from auth.oauth import GOOGLE, GOOGLE_SCOPES
from auth.strategies import BASIC, StrategyRegistry

logger = logging.getLogger("authgate.api.flows")

ROOT = "/"
SUCCESS_PATH = "/auth/success"
FAILURE_PATH = "/auth/failure"

_basic_credentials = HTTPBasic(auto_error=False)


@dataclass
class FlowState:
    """Per-request scratch space shared by the stages of one flow."""

    registry: StrategyRegistry
    principal: Optional[Principal] = None
    values: dict[str, Any] = field(default_factory=dict)


Stage = Callable[[Request, FlowState], Awaitable[Optional[Response]]]


class Flow:
    """An ordered stage list with an optional error mapper.

    on_error receives the exception and returns a Response, or raises. When
    on_error is None, exceptions propagate unchanged.
    """

    def __init__(
        self,
        name: str,
        stages: Sequence[Stage],
        on_error: Optional[Callable[[Request, Exception], Response]] = None,
    ) -> None:
        self.name = name
        self.stages = tuple(stages)
        self.on_error = on_error

    async def run(self, request: Request, registry: StrategyRegistry) -> Response:
        state = FlowState(registry=registry)
        try:
            for stage in self.stages:
                outcome = await stage(request, state)
                if outcome is not None:
                    return outcome
        except Exception as exc:
            if self.on_error is None:
                raise
            return self.on_error(request, exc)
        raise RuntimeError(f"flow {self.name!r} finished without a response")


def auth_context(request: Request) -> AuthContext:
    """Return the AuthContext installed by the session binder."""
    context = getattr(request.state, "auth", None)
    if context is None:
        raise RuntimeError("authentication middleware is not bound to this application")
    return context


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


async def read_basic_credentials(request: Request, state: FlowState) -> None:
    credentials = await _basic_credentials(request)
    if credentials is None:
        raise BadRequest("invalid credentials")
    state.values["username"] = credentials.username
    state.values["password"] = credentials.password


async def verify_local_password(request: Request, state: FlowState) -> None:
    strategy = state.registry.get(BASIC)
    state.principal = await strategy.authenticate(state.values["username"], state.values["password"])


async def exchange_provider_code(request: Request, state: FlowState) -> None:
    strategy = state.registry.get(GOOGLE)
    state.principal = await strategy.authenticate(request)


async def bind_principal(request: Request, state: FlowState) -> None:
    if state.principal is None:
        raise RuntimeError("no principal to bind")
    await auth_context(request).login(state.principal)


async def clear_principal(request: Request, state: FlowState) -> None:
    # Must complete before the redirect is built.
    await auth_context(request).logout()


async def start_provider_redirect(request: Request, state: FlowState) -> Response:
    if not state.registry.has(GOOGLE):
        raise NotImplementedRoute("google login is not configured")
    return await state.registry.get(GOOGLE).redirect(request, GOOGLE_SCOPES)


async def reject_authorization(request: Request, state: FlowState) -> Response:
    # The browser only reaches /auth/failure after a failed attempt, so a
    # present header means it was sent and rejected.
    if request.headers.get("authorization"):
        raise Unauthorized("invalid Authorization")
    raise Unauthorized("missing Authorization")


def redirect_to(url: str) -> Stage:
    async def _redirect(request: Request, state: FlowState) -> Response:
        return redirect(url)

    return _redirect


# ---------------------------------------------------------------------------
# Error mappers
# ---------------------------------------------------------------------------


def _invalid_credentials(request: Request, exc: Exception) -> Response:
    logger.warning("Local login rejected (%s)", type(exc).__name__)
    raise BadRequest("invalid credentials") from None


def _provider_failure(request: Request, exc: Exception) -> Response:
    logger.warning("Google login failed (%s: %s)", type(exc).__name__, exc)
    return redirect(FAILURE_PATH)


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------

login = Flow(
    "login",
    [read_basic_credentials, verify_local_password, bind_principal, redirect_to(ROOT)],
    on_error=_invalid_credentials,
)

logout = Flow("logout", [clear_principal, redirect_to(ROOT)])

success = Flow("success", [redirect_to(ROOT)])

failure = Flow("failure", [reject_authorization])

to_provider = Flow("to_provider", [start_provider_redirect])

from_provider = Flow(
    "from_provider",
    [exchange_provider_code, bind_principal, redirect_to(SUCCESS_PATH)],
    on_error=_provider_failure,
)
