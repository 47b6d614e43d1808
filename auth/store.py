"""
auth/store.py -- Read-only credential store for local users and the provider client.

CredentialStore is built once from the secrets document and never mutated.
Lookups are total: an unknown username yields None, never an exception, so the
local strategy can always run the constant-time comparison before deciding.

Layer rule: no imports from api/. Import from core/ is allowed for the
secrets document models.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Optional

from auth.models import ProviderConfig, User
from core.secrets_file import Secrets

logger = logging.getLogger("authgate.auth.store")


class CredentialStore:
    """Immutable view of the configured users and Google client."""

    def __init__(self, users: Iterable[User] = (), provider: Optional[ProviderConfig] = None) -> None:
        self._users: tuple[User, ...] = tuple(users)
        self._provider = provider

    @classmethod
    def from_secrets(cls, secrets: Secrets) -> CredentialStore:
        users = [User(username=u.username, password=u.password, profile=u.profile()) for u in secrets.users]
        provider: Optional[ProviderConfig] = None
        if secrets.google is not None:
            provider = ProviderConfig(
                client_id=secrets.google.client_id,
                client_secret=secrets.google.client_secret,
                callback_url=secrets.google.callback_url,
                extra=secrets.google.extra_options(),
            )
        return cls(users, provider)

    @property
    def provider(self) -> Optional[ProviderConfig]:
        return self._provider

    @property
    def users(self) -> tuple[User, ...]:
        return self._users

    def index_by_username(self) -> Mapping[str, User]:
        """Return a read-only username -> User mapping. Later duplicates win."""
        index: dict[str, User] = {}
        for user in self._users:
            if user.username in index:
                logger.warning("Duplicate username in secrets document; the last record wins")
            index[user.username] = user
        return MappingProxyType(index)

    def __len__(self) -> int:
        return len(self._users)
