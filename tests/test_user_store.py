"""
tests/test_user_store.py -- Unit tests for the Credential Store (auth/store.py).
"""

from __future__ import annotations

import pytest

from core.errors import AlreadyExistsError, InvalidCredentialsError, NotFoundError


class TestUserStore:
    def test_create_sets_id_hash_and_authenticated(self, store):
        """create() assigns an id, hashes the password, and marks the user authenticated."""
        user = store.users.create("ada@example.com", "ada", "pw123456")
        assert user.id
        assert user.authenticated is True
        assert user.hashed_password and user.hashed_password != "pw123456"
        assert user.created_at

    def test_email_is_normalized(self, store):
        """Emails are stored stripped and lower-cased."""
        user = store.users.create("  Ada@Example.COM ", "ada", "pw123456")
        assert user.email == "ada@example.com"
        assert store.users.get_by_email("ADA@example.com").id == user.id

    def test_duplicate_email_case_insensitive(self, store):
        """A second account with the same address in another case is rejected."""
        store.users.create("ada@example.com", "ada", "pw123456")
        with pytest.raises(AlreadyExistsError) as exc_info:
            store.users.create("ADA@example.com", "ada2", "pw123456")
        assert exc_info.value.message == "Email already registered"

    def test_authenticate_success(self, store):
        created = store.users.create("ada@example.com", "ada", "pw123456")
        user = store.users.authenticate("ada@example.com", "pw123456")
        assert user.id == created.id

    def test_wrong_password_and_unknown_email_look_the_same(self, store):
        """Both failure paths raise the same error with the same message."""
        store.users.create("ada@example.com", "ada", "pw123456")
        with pytest.raises(InvalidCredentialsError) as wrong_pw:
            store.users.authenticate("ada@example.com", "nope-nope")
        with pytest.raises(InvalidCredentialsError) as unknown:
            store.users.authenticate("ghost@example.com", "pw123456")
        assert wrong_pw.value.message == unknown.value.message

    def test_get_by_id_missing(self, store):
        with pytest.raises(NotFoundError):
            store.users.get_by_id("no-such-id")

    def test_get_by_email_missing_is_none(self, store):
        assert store.users.get_by_email("ghost@example.com") is None

    def test_set_authenticated(self, store):
        """The authenticated flag can be cleared and restored."""
        user = store.users.create("ada@example.com", "ada", "pw123456")
        store.users.set_authenticated(user.id, False)
        assert store.users.get_by_id(user.id).authenticated is False
        store.users.set_authenticated(user.id, True)
        assert store.users.get_by_id(user.id).authenticated is True

    def test_set_authenticated_missing_user(self, store):
        with pytest.raises(NotFoundError):
            store.users.set_authenticated("no-such-id", True)

    def test_hash_not_in_repr(self, store):
        """The password hash never shows up in logs via repr()."""
        user = store.users.create("ada@example.com", "ada", "pw123456")
        assert user.hashed_password not in repr(user)
