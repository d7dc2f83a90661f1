"""
tests/test_health.py -- Integration tests for GET /health.
"""

from __future__ import annotations


def test_health_returns_200(client):
    """Health endpoint returns 200 with status and version in the envelope."""
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["status"] == "healthy"
    assert "version" in body["data"]


def test_health_no_auth_required(client):
    """Health endpoint is accessible without any authentication headers."""
    resp = client.get("/health", headers={})
    assert resp.status_code == 200
