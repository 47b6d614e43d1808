"""
tests/test_comparator.py -- Unit tests for auth.comparator.same_secret.

Coverage:
  - equal / unequal / prefix / empty inputs
  - absent expected secret compares as a normal (failing) comparison
  - never raises on odd inputs
  - a fresh key is drawn on every call
"""

from __future__ import annotations

import pytest

import auth.comparator as comparator
from auth.comparator import NONCE_BYTES, same_secret


def test_equal_secrets_match() -> None:
    assert same_secret("wonderland", "wonderland") is True


@pytest.mark.parametrize(
    ("supplied", "expected"),
    [
        ("wonderland", "Wonderland"),
        ("wonder", "wonderland"),
        ("wonderland", "wonder"),
        ("", "wonderland"),
        ("wonderland", ""),
    ],
)
def test_different_secrets_do_not_match(supplied: str, expected: str) -> None:
    assert same_secret(supplied, expected) is False


def test_absent_expected_still_compares() -> None:
    """A lookup miss is not an early exit: the comparison runs and fails."""
    assert same_secret("wonderland", None) is False
    assert same_secret("", None) is False


def test_unicode_secrets() -> None:
    assert same_secret("pässwörd✓", "pässwörd✓") is True
    assert same_secret("pässwörd✓", "passwords") is False


def test_never_raises_on_odd_input() -> None:
    assert same_secret(b"bytes", "bytes") is False
    assert same_secret(12345, 12345) is True
    assert same_secret("\ud800", "x") is False


def test_fresh_key_per_call(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []
    real = comparator.secrets.token_bytes

    def spy(n: int) -> bytes:
        calls.append(n)
        return real(n)

    monkeypatch.setattr(comparator.secrets, "token_bytes", spy)
    same_secret("a", "a")
    same_secret("a", "b")
    assert calls == [NONCE_BYTES, NONCE_BYTES]
