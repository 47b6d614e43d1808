"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Stores, strategies
and routes do the work.

Principals are a tagged variant: UserPrincipal (kind "user") for local logins,
TokenPrincipal (kind "token") for Google logins. Callers match on .kind and
must not assume fields beyond what each case declares.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Union


@dataclass(frozen=True)
class User:
    """A local user loaded from the secrets document. Identity = username.

    password is an opaque secret, compared only through auth.comparator.
    It is None when the record was restored from a session, which never
    carries the secret.
    """

    username: str
    password: Any = None
    profile: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderConfig:
    """Google OAuth client configuration. Never mutated after load.

    extra holds any additional keys from the secrets document; they are passed
    through to the OAuth client registration (e.g. authorize_url overrides).
    """

    client_id: str
    client_secret: str
    callback_url: str
    extra: dict[str, Any] = field(default_factory=dict)

    def client_kwargs(self) -> dict[str, Any]:
        """Return a fresh, caller-owned copy of the registration options.

        The OAuth client may mutate what it is given, so every call builds a
        new dict and the frozen original is never handed out.
        """
        options = copy.deepcopy(self.extra)
        options.update(
            client_id=self.client_id,
            client_secret=self.client_secret,
        )
        return options


@dataclass(frozen=True)
class UserPrincipal:
    kind: ClassVar[Literal["user"]] = "user"

    user: User


@dataclass(frozen=True)
class TokenPrincipal:
    kind: ClassVar[Literal["token"]] = "token"

    token: str


Principal = Union[UserPrincipal, TokenPrincipal]
