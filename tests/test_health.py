"""
tests/test_health.py -- Integration tests for the status endpoints.

Covers:
  - GET /api/v1/health: 200 with status and version, no auth required
  - GET /: anonymous request reports authenticated=false
  - Request-logging middleware does not interfere with responses
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from api.main import VERSION


def test_health_returns_200(client: TestClient) -> None:
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": VERSION}


def test_health_no_auth_required(client: TestClient) -> None:
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_root_reports_anonymous(client: TestClient) -> None:
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["authenticated"] is False


def test_unrelated_path_is_plain_404(client: TestClient) -> None:
    """Only /auth/* and the callback belong to the gateway."""
    resp = client.get("/elsewhere")
    assert resp.status_code == 404
