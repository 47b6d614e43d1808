"""
api/limiter.py -- slowapi rate limiter for one gateway application.

create_app() builds one Limiter per application and exposes it on
app.state.limiter, where SlowAPIMiddleware looks for it. The same instance
decorates that application's /auth endpoint in AuthRouter.api_router().

slowapi keys route limits by endpoint function name, so limiters are not
shared across applications: two apps built with different
Settings.auth_rate_limit values would otherwise stack their limits on one
counter set.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address


def build_limiter() -> Limiter:
    """Return a Limiter keyed by client address with its own in-memory counters."""
    return Limiter(key_func=get_remote_address, storage_uri="memory://")
