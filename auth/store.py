"""
auth/store.py -- Credential Store: SQLAlchemy Core persistence for users.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  The plaintext password is hashed inside create() and never stored or
  returned. authenticate() runs bcrypt even when the email is unknown
  (against a dummy hash computed at construction) so response time does not
  reveal whether an account exists. Both failure paths raise the same
  InvalidCredentialsError with the same message.

  Emails are normalized (stripped, lower-cased) on every write and lookup,
  so the UNIQUE constraint covers case variants of one address.

Error contract:
  create()        -> AlreadyExistsError on duplicate email
  authenticate()  -> InvalidCredentialsError on unknown email OR wrong password
  get_by_id()     -> NotFoundError
  get_by_email()  -> None when absent (not an error at this layer)
  any SQL failure -> DatabaseError
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import Boolean, Column, String, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.tokens import DEFAULT_BCRYPT_ROUNDS, hash_password, verify_password
from core.errors import AlreadyExistsError, InvalidCredentialsError, NotFoundError
from db.engine import db_errors, metadata, new_id, now_iso

logger = logging.getLogger("quoteshare.auth")

_INVALID_CREDENTIALS = "Invalid email or password"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

users_table = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("username", String(100), nullable=False),
    Column("hashed_password", Text, nullable=False),
    Column("authenticated", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records and password verification.

    Usage:
        store = UserStore(engine)
        user = store.create("ada@example.com", "ada", "correct horse")
        user = store.authenticate("ada@example.com", "correct horse")
    """

    def __init__(self, engine: Engine, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.engine = engine
        self.bcrypt_rounds = bcrypt_rounds
        # Timing equalization: same cost factor as real hashes, computed once
        # so the first failed login is not measurably faster than later ones.
        self._dummy_hash = hash_password("quoteshare_timing_dummy", bcrypt_rounds)

    def create(self, email: str, username: str, password: str) -> User:
        """Hash the password, insert the user, and return it.

        New users are marked authenticated immediately.
        """
        user = User(
            id=new_id(),
            email=normalize_email(email),
            username=username,
            hashed_password=hash_password(password, self.bcrypt_rounds),
            authenticated=True,
            created_at=now_iso(),
        )
        with db_errors("Failed to create user"):
            try:
                with self.engine.connect() as conn:
                    conn.execute(
                        users_table.insert().values(
                            id=user.id,
                            email=user.email,
                            username=user.username,
                            hashed_password=user.hashed_password,
                            authenticated=user.authenticated,
                            created_at=user.created_at,
                        )
                    )
                    conn.commit()
            except IntegrityError as exc:
                raise AlreadyExistsError("Email already registered") from exc
        logger.info("Created user %s (%s)", user.id, user.username)
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Return the user if the credentials match; never say which part was wrong."""
        with db_errors("Failed to authenticate user"):
            with self.engine.connect() as conn:
                row = conn.execute(
                    users_table.select().where(users_table.c.email == normalize_email(email))
                ).fetchone()
        if row is None:
            # Equalize timing -- do NOT return before running bcrypt.
            verify_password(password, self._dummy_hash)
            raise InvalidCredentialsError(_INVALID_CREDENTIALS)
        if not verify_password(password, row.hashed_password):
            raise InvalidCredentialsError(_INVALID_CREDENTIALS)
        return _row_to_user(row)

    def get_by_id(self, user_id: str) -> User:
        with db_errors("Failed to get user"):
            with self.engine.connect() as conn:
                row = conn.execute(users_table.select().where(users_table.c.id == user_id)).fetchone()
        if row is None:
            raise NotFoundError("User not found")
        return _row_to_user(row)

    def get_by_email(self, email: str) -> Optional[User]:
        """Look up a user by email. Returns None if not found."""
        with db_errors("Failed to get user by email"):
            with self.engine.connect() as conn:
                row = conn.execute(
                    users_table.select().where(users_table.c.email == normalize_email(email))
                ).fetchone()
        return _row_to_user(row) if row is not None else None

    def set_authenticated(self, user_id: str, authenticated: bool) -> None:
        """Flip the access gate for a user. Raises NotFoundError for unknown ids."""
        with db_errors("Failed to update user"):
            with self.engine.connect() as conn:
                result = conn.execute(
                    users_table.update().where(users_table.c.id == user_id).values(authenticated=authenticated)
                )
                conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("User not found")
        logger.info("Set authenticated=%s for user %s", authenticated, user_id)


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        username=row.username,
        hashed_password=row.hashed_password,
        authenticated=bool(row.authenticated),
        created_at=row.created_at,
    )
