"""
tests/test_config.py -- Tests for core.config.Settings and core.secrets_file.

Coverage:
  - SECRET_KEY policy: dev auto-generation, production refusal, minimum length
  - session_config() shape
  - secrets document: inline JSON wins, file loading, missing file, malformed
    documents, extra keys preserved
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import Settings
from core.secrets_file import SecretsError, load_secrets, parse_secrets

from conftest import SECRETS_DOC


class TestSettings:
    def test_debug_generates_secret_key(self) -> None:
        s = Settings(debug=True, secret_key="")
        assert len(s.secret_key) == 64

    def test_production_requires_secret_key(self) -> None:
        with pytest.raises(ValidationError):
            Settings(debug=False, secret_key="")

    def test_short_secret_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(debug=True, secret_key="too-short")

    def test_session_config(self) -> None:
        s = Settings(debug=False, secret_key="x" * 32, secure_cookies=True, session_max_age=600)
        assert s.session_config() == {
            "secret_key": "x" * 32,
            "session_cookie": "authgate.session",
            "max_age": 600,
            "same_site": "lax",
            "https_only": True,
        }


class TestSecretsFile:
    def _write(self, tmp_path: Path, content: str) -> Path:
        path = tmp_path / "secrets.json"
        path.write_text(content, encoding="utf-8")
        return path

    def test_load_from_file(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, json.dumps(SECRETS_DOC))
        secrets = load_secrets(Settings(debug=True, secrets_file=str(path), secrets_json=""))
        assert [u.username for u in secrets.users] == ["alice", "bob", "mallory"]
        assert secrets.google is not None
        assert secrets.google.client_id == "client-123"
        assert secrets.google.callback_url == "http://testserver/auth/google/callback"

    def test_inline_json_wins(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, json.dumps(SECRETS_DOC))
        inline = json.dumps({"users": [{"username": "inline", "password": "pw"}]})
        secrets = load_secrets(Settings(debug=True, secrets_file=str(path), secrets_json=inline))
        assert [u.username for u in secrets.users] == ["inline"]
        assert secrets.google is None

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        secrets = load_secrets(Settings(debug=True, secrets_file=str(tmp_path / "absent.json"), secrets_json=""))
        assert secrets.users == []
        assert secrets.google is None

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps({"users": [{"password": "no-username"}]}),
            json.dumps({"google": {"clientId": "only-id"}}),
            json.dumps({"users": "alice"}),
        ],
    )
    def test_malformed_document(self, content: str) -> None:
        with pytest.raises(SecretsError):
            parse_secrets(content)

    def test_extra_keys_preserved(self) -> None:
        doc = {
            "google": {
                "clientId": "a",
                "clientSecret": "b",
                "callbackURL": "/cb",
                "authorize_url": "https://idp.example/auth",
            },
            "users": [{"username": "u", "password": "p", "role": "ops", "email": "u@example.com"}],
        }
        secrets = parse_secrets(json.dumps(doc))
        assert secrets.google is not None
        assert secrets.google.extra_options() == {"authorize_url": "https://idp.example/auth"}
        assert secrets.users[0].profile() == {"role": "ops", "email": "u@example.com"}
