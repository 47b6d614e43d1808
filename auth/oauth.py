"""
auth/oauth.py -- Authlib OAuth registration for the Google provider.

Google is registered with static endpoints rather than OIDC discovery: the
gateway requests no "openid" scope and never reads an id_token, so the
discovery document would be an extra network round trip for nothing. Any
endpoint can be overridden from the secrets document (extra google keys).

Requested scopes are fixed and explicit. No profile scopes are requested:
  analytics       -- view and manage Google Analytics data
  urlshortener    -- manage goo.gl short URLs
  userinfo.email  -- view the user's email address

OAuth state parameter (CSRF protection) is handled by authlib automatically
via Starlette SessionMiddleware. The session stores the state between the
authorization redirect and the callback.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from typing import Any

from authlib.integrations.starlette_client import OAuth

from auth.models import ProviderConfig

logger = logging.getLogger("authgate.auth.oauth")

GOOGLE = "google"

GOOGLE_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/analytics",
    "https://www.googleapis.com/auth/urlshortener",
    "https://www.googleapis.com/auth/userinfo.email",
)

_GOOGLE_ENDPOINTS: dict[str, Any] = {
    "authorize_url": "https://accounts.google.com/o/oauth2/v2/auth",
    "access_token_url": "https://oauth2.googleapis.com/token",  # noqa: S105 -- URL, not a password
    "api_base_url": "https://www.googleapis.com/",
}


def register_google(oauth: OAuth, provider: ProviderConfig) -> Any:
    """Register the Google client on an authlib OAuth registry and return it.

    The options dict is built fresh from ProviderConfig.client_kwargs(); the
    registry takes ownership of it and may mutate it freely.
    """
    options = dict(_GOOGLE_ENDPOINTS)
    options.update(provider.client_kwargs())
    oauth.register(name=GOOGLE, overwrite=True, **options)
    logger.info("Google OAuth provider registered")
    return oauth.create_client(GOOGLE)
