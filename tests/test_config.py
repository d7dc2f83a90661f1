"""
tests/test_config.py -- Settings defaults and the SECRET_KEY policy.

Settings are built directly with keyword overrides (and _env_file=None) so
these tests never depend on a developer's .env or the cached singleton.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings

GOOD_KEY = "k" * 32


def test_development_generates_secret():
    """An empty secret in development is replaced with a random 32+ char key."""
    s = Settings(_env_file=None, environment="development", secret_key="")
    assert len(s.secret_key) >= 32
    assert s.is_development


@pytest.mark.parametrize("env", ["production", "staging"])
def test_missing_secret_outside_development_fails(env):
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, environment=env, secret_key="")


def test_short_secret_rejected():
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None, environment="production", secret_key="too-short")


def test_derived_values():
    s = Settings(
        _env_file=None,
        environment="production",
        secret_key=GOOD_KEY,
        database_path="/tmp/qs.db",
        rate_limit_requests=5,
        rate_limit_window_seconds=30,
        allowed_origins="http://a.example, http://b.example,",
    )
    assert not s.is_development
    assert s.database_url == "sqlite:////tmp/qs.db"
    assert s.default_rate_limit == "5/30 seconds"
    assert s.get_allowed_origins() == ["http://a.example", "http://b.example"]


def test_defaults():
    s = Settings(_env_file=None, secret_key=GOOD_KEY)
    assert s.port == 8080
    assert s.token_ttl_hours == 24
    assert s.bcrypt_rounds in range(4, 32)


def test_bcrypt_rounds_bounds():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, secret_key=GOOD_KEY, bcrypt_rounds=3)
