"""
tests/conftest.py -- Shared test fixtures for quoteshare.

This module provides:
  - store: SQLStore on a private in-memory DB, for repository/policy unit tests
  - issuer: TokenIssuer with a fixed 32-char secret
  - client: TestClient over the real app with a patched lifespan
  - register / create_group: factory fixtures that drive the HTTP API

Design: the API client uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Each
worker thread gets its own connection, and only the named shared-cache form
lets all of them see one database. The name carries a uuid so every test
starts from an empty schema.

ENVIRONMENT and BCRYPT_ROUNDS must be set before any api/ import:
get_settings() is evaluated at import time by api.limiter and api.main.
Development mode auto-generates SECRET_KEY and disables rate limiting.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any core/api import so get_settings() sees them.
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.tokens import TokenIssuer
from db.store import SQLStore

TEST_SECRET = "test-secret-key-0123456789abcdef0123"
TEST_PASSWORD = "secret123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _shared_memory_url() -> str:
    return f"sqlite:///file:test_qs_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def _patch_lifespan(store: SQLStore, issuer: TokenIssuer):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and issuer into app.state so routes never touch the
    on-disk database under data/.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.token_issuer = issuer
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[SQLStore, None, None]:
    s = SQLStore("sqlite:///:memory:", bcrypt_rounds=4)
    yield s
    s.close()


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(TEST_SECRET, ttl_hours=24)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def api_store() -> Generator[SQLStore, None, None]:
    s = SQLStore(_shared_memory_url(), bcrypt_rounds=4)
    yield s
    s.close()


@pytest.fixture
def client(api_store: SQLStore, issuer: TokenIssuer) -> Generator[TestClient, None, None]:
    """TestClient over the real app, backed by a fresh shared-memory store."""
    app.router.lifespan_context = _patch_lifespan(api_store, issuer)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def register(client: TestClient) -> Callable[..., tuple[str, dict]]:
    """Factory: register a user over HTTP and return (token, user_json)."""

    def _register(email: str, username: str = "", password: str = TEST_PASSWORD) -> tuple[str, dict]:
        resp = client.post(
            "/auth/register",
            json={"email": email, "username": username or email.split("@")[0], "password": password},
        )
        assert resp.status_code == 201, f"register failed: {resp.status_code} {resp.text}"
        data = resp.json()["data"]
        return data["token"], data["user"]

    return _register


@pytest.fixture
def create_group(client: TestClient) -> Callable[..., dict]:
    """Factory: create a group over HTTP as `token` and return the group json."""

    def _create(token: str, group_id: str, members: list[str], name: str = "") -> dict:
        resp = client.post(
            "/groups",
            json={"name": name or group_id.title(), "group_id": group_id, "members": members},
            headers=_auth(token),
        )
        assert resp.status_code == 201, f"create group failed: {resp.status_code} {resp.text}"
        return resp.json()["data"]

    return _create


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
