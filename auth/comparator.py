"""
auth/comparator.py -- Constant-time secret comparison.

Both sides are reduced to fixed-length HMAC-SHA256 digests under a fresh
32-byte key, then compared with hmac.compare_digest. Hashing first removes the
length of the stored secret from the timing profile; the per-call key means an
observer cannot precompute digests.

An absent expected secret (unknown user) is hashed as the string "None", so
the comparison costs the same whether or not the user exists [C1].

Fresh randomness per call is drawn from the OS CSPRNG. Call volume is bounded
by login attempts (and the rate limiter), so the cost is negligible.

Layer rule: stdlib only.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Any

NONCE_BYTES = 32


def _digest(key: bytes, value: Any) -> bytes:
    text = value if isinstance(value, str) else str(value)
    return hmac.new(key, text.encode("utf-8", "surrogatepass"), hashlib.sha256).digest()


def same_secret(supplied: Any, expected: Any) -> bool:
    """Return True only when supplied equals expected. Never raises."""
    try:
        key = secrets.token_bytes(NONCE_BYTES)
        return hmac.compare_digest(_digest(key, supplied), _digest(key, expected))
    except Exception:
        return False
