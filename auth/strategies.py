"""
auth/strategies.py -- Verification strategies and their one-time registry.

Two strategies are registered by name:
  basic  -- LocalPasswordStrategy: username/password against the secrets
            document, compared in constant time.
  google -- ProviderTokenStrategy: authorization-code exchange via authlib;
            the resulting access token becomes the principal.

StrategyRegistry.initialize() is idempotent. The first call copies the
provider configuration, indexes users, registers both strategies and installs
the principal (de)serializers; every later call is a no-op. The gate is a
boolean checked before the lock, so the lock is only ever contended while the
first initialization is in flight.

Security notes:
  [C1] LocalPasswordStrategy always runs same_secret(), even for unknown
       usernames, and raises one CredentialsRejected for every failure mode.
       The caller cannot tell "no such user" from "wrong password".

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Optional

from authlib.integrations.starlette_client import OAuth
from starlette.requests import Request
from starlette.responses import Response

from auth.comparator import same_secret
from auth.models import Principal, TokenPrincipal, User, UserPrincipal
from auth.oauth import GOOGLE, register_google
from auth.store import CredentialStore

logger = logging.getLogger("authgate.auth.strategies")

BASIC = "basic"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class VerificationError(Exception):
    """Base class for every failure raised by a verification strategy."""


class CredentialsRejected(VerificationError):
    """The supplied credentials did not verify. Deliberately cause-free."""


class InternalVerificationError(VerificationError):
    """A strategy could not run, e.g. a malformed user record."""


class StrategyNotRegistered(VerificationError, LookupError):
    """No strategy is registered under the requested name."""


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class LocalPasswordStrategy:
    """Verify a username/password pair against the indexed local users."""

    name = BASIC

    def __init__(self, users: Mapping[str, User]) -> None:
        self._users = users

    async def authenticate(self, username: str, password: str) -> UserPrincipal:
        user = self._users.get(username)
        stored = user.password if user is not None else None
        # Comparison runs before any branching on the lookup result [C1]
        valid = same_secret(password, stored)
        if user is not None and not isinstance(stored, str):
            raise InternalVerificationError("user record has no usable password")
        if user is None or not valid:
            raise CredentialsRejected("invalid credentials")
        return UserPrincipal(user)


class ProviderTokenStrategy:
    """Google authorization-code flow backed by an authlib Starlette client."""

    name = GOOGLE

    def __init__(self, client: Any, callback_url: str) -> None:
        self._client = client
        self.callback_url = callback_url

    async def redirect(self, request: Request, scopes: tuple[str, ...]) -> Response:
        """Start the flow: redirect the browser to Google's consent page."""
        return await self._client.authorize_redirect(request, self.callback_url, scope=" ".join(scopes))

    async def authenticate(self, request: Request) -> TokenPrincipal:
        """Finish the flow: exchange the callback code, then verify the result.

        authlib raises OAuthError for provider errors and state mismatches;
        those propagate to the flow, which treats every exception as failure.
        """
        token = await self._client.authorize_access_token(request)
        return await self.verify(
            token.get("access_token"),
            token.get("refresh_token"),
            token.get("userinfo"),
        )

    async def verify(
        self,
        access_token: Optional[str],
        refresh_token: Optional[str],
        profile: Optional[Mapping[str, Any]],
    ) -> TokenPrincipal:
        """Wrap the access token as the principal. The profile is not inspected."""
        if not access_token:
            raise InternalVerificationError("token response carried no access_token")
        return TokenPrincipal(access_token)


# ---------------------------------------------------------------------------
# Principal (de)serialization -- identity over the tagged record
# ---------------------------------------------------------------------------


def serialize_principal(principal: Principal) -> dict[str, Any]:
    """Return the JSON-safe session form of a principal.

    The record is stored as-is, minus the user's password: the session may be
    a client-visible cookie and the secret never leaves the server.
    """
    if principal.kind == "user":
        user = principal.user
        return {"kind": "user", "username": user.username, "profile": dict(user.profile)}
    return {"kind": "token", "token": principal.token}


def deserialize_principal(data: Mapping[str, Any]) -> Optional[Principal]:
    """Rebuild a principal from its session form. Unknown shapes yield None."""
    kind = data.get("kind")
    if kind == "user" and isinstance(data.get("username"), str):
        profile = data.get("profile")
        if profile is None:
            profile = {}
        if not isinstance(profile, Mapping):
            return None
        return UserPrincipal(User(username=data["username"], profile=dict(profile)))
    if kind == "token" and isinstance(data.get("token"), str):
        return TokenPrincipal(data["token"])
    return None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class StrategyRegistry:
    """Owns the strategies and the one-shot initialization gate.

    One registry is created per application and injected into the session
    binder and the auth router.
    """

    def __init__(self, store: CredentialStore, oauth: Optional[OAuth] = None) -> None:
        self._store = store
        self._oauth = oauth if oauth is not None else OAuth()
        self._strategies: dict[str, Any] = {}
        self._initialized = False
        self._gate = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def store(self) -> CredentialStore:
        return self._store

    def initialize(self) -> None:
        """Register strategies on first call; later calls return immediately."""
        if self._initialized:
            return
        with self._gate:
            if self._initialized:
                return
            self._register()
            self._initialized = True

    def _register(self) -> None:
        users = self._store.index_by_username()
        self._strategies[BASIC] = LocalPasswordStrategy(users)
        logger.info("Local password strategy registered (%d user(s))", len(users))

        provider = self._store.provider
        if provider is None:
            logger.warning("No google section in secrets -- provider login disabled")
            return
        client = register_google(self._oauth, provider)
        self._strategies[GOOGLE] = ProviderTokenStrategy(client, provider.callback_url)

    def get(self, name: str) -> Any:
        """Return the strategy registered under name.

        Raises StrategyNotRegistered before initialize() or for unknown names.
        """
        try:
            return self._strategies[name]
        except KeyError:
            raise StrategyNotRegistered(f"no strategy registered as {name!r}") from None

    def has(self, name: str) -> bool:
        return name in self._strategies

    @property
    def callback_url(self) -> Optional[str]:
        provider = self._store.provider
        return provider.callback_url if provider is not None else None

    def serialize(self, principal: Principal) -> dict[str, Any]:
        return serialize_principal(principal)

    def deserialize(self, data: Any) -> Optional[Principal]:
        if not isinstance(data, Mapping):
            return None
        return deserialize_principal(data)
