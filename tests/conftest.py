"""
tests/conftest.py -- Shared test fixtures for authgate.

This module provides:
  - FakeOAuth / FakeGoogleClient: stand-ins for the authlib registry so the
    Google flows run without any network call
  - secrets / store / registry: the domain objects built from a fixed document
  - app / client: a fully assembled gateway and a TestClient with
    follow_redirects=False (we assert on redirect locations)
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any
from urllib.parse import urlencode

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.responses import RedirectResponse

from api.main import create_app
from auth.store import CredentialStore
from auth.strategies import StrategyRegistry
from core.config import Settings
from core.secrets_file import Secrets

CALLBACK_URL = "http://testserver/auth/google/callback"

SECRETS_DOC: dict[str, Any] = {
    "google": {
        "clientId": "client-123",
        "clientSecret": "client-secret-456",
        "callbackURL": CALLBACK_URL,
    },
    "users": [
        {"username": "alice", "password": "wonderland", "email": "alice@example.com"},
        {"username": "bob", "password": "builder"},
        # Malformed record: password is not a string
        {"username": "mallory", "password": 12345},
    ],
}


# ---------------------------------------------------------------------------
# Fake authlib registry
# ---------------------------------------------------------------------------


class FakeGoogleClient:
    """Records authorize_redirect calls and returns a canned token (or raises)."""

    def __init__(self, options: dict[str, Any]) -> None:
        self.options = options
        self.redirects: list[tuple[str, dict[str, Any]]] = []
        self.token: dict[str, Any] = {
            "access_token": "ya29.fake-access-token",
            "refresh_token": "1//fake-refresh-token",
            "token_type": "Bearer",
        }
        self.error: Exception | None = None

    async def authorize_redirect(self, request, redirect_uri: str, **kwargs: Any) -> RedirectResponse:
        self.redirects.append((redirect_uri, kwargs))
        query = urlencode({"redirect_uri": redirect_uri, "scope": kwargs.get("scope", "")})
        return RedirectResponse(f"https://accounts.example.test/auth?{query}", status_code=302)

    async def authorize_access_token(self, request) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        return self.token


class FakeOAuth:
    """Minimal authlib OAuth registry: register() + create_client()."""

    def __init__(self) -> None:
        self.registrations: list[tuple[str, dict[str, Any]]] = []
        self.clients: dict[str, FakeGoogleClient] = {}

    def register(self, name: str, overwrite: bool = False, **kwargs: Any) -> None:
        self.registrations.append((name, kwargs))
        self.clients[name] = FakeGoogleClient(kwargs)

    def create_client(self, name: str) -> FakeGoogleClient | None:
        return self.clients.get(name)


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        debug=True,
        secret_key="k" * 48,
        secrets_json="",
        secrets_file="does-not-exist.json",
        auth_rate_limit="10000/minute",
    )


@pytest.fixture
def secrets() -> Secrets:
    return Secrets.model_validate(SECRETS_DOC)


@pytest.fixture
def store(secrets: Secrets) -> CredentialStore:
    return CredentialStore.from_secrets(secrets)


@pytest.fixture
def fake_oauth() -> FakeOAuth:
    return FakeOAuth()


@pytest.fixture
def registry(store: CredentialStore, fake_oauth: FakeOAuth) -> StrategyRegistry:
    reg = StrategyRegistry(store, fake_oauth)
    reg.initialize()
    return reg


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app(settings: Settings, secrets: Secrets, fake_oauth: FakeOAuth) -> FastAPI:
    return create_app(settings=settings, secrets=secrets, oauth=fake_oauth)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """TestClient with follow_redirects=False so Location headers stay visible."""
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def google_client(fake_oauth: FakeOAuth, client: TestClient) -> FakeGoogleClient:
    """The fake Google client registered while the app was assembled."""
    return fake_oauth.clients["google"]


@pytest.fixture
def client_factory(settings: Settings) -> Generator[Any, None, None]:
    """Build TestClients for apps assembled from custom secrets documents."""
    opened: list[TestClient] = []

    def _make(document: dict[str, Any], oauth: FakeOAuth | None = None) -> TestClient:
        app = create_app(settings=settings, secrets=Secrets.model_validate(document), oauth=oauth or FakeOAuth())
        c = TestClient(app, follow_redirects=False, raise_server_exceptions=True)
        c.__enter__()
        opened.append(c)
        return c

    yield _make
    for c in opened:
        c.__exit__(None, None, None)
