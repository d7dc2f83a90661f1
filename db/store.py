"""
db/store.py -- The Store capability interface and its SQL implementation.

Policy and route code is typed against the Protocols below, never against the
concrete classes, so the backing engine can be swapped without touching
authorization logic. SQLStore is the one implementation: it builds a single
engine, registers all three stores' tables on the shared metadata, and creates
the schema.

Usage:
    store = SQLStore("sqlite:///data/quoteshare.db")
    user = store.users.create("ada@example.com", "ada", "pw123456")
    rows = store.groups.create_group("book-club", "Book Club", [], creator_id=user.id)
    store.close()
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, Protocol

from auth.models import User
from auth.store import UserStore
from auth.tokens import DEFAULT_BCRYPT_ROUNDS
from db.engine import make_engine, metadata
from groups.models import MembershipRow
from groups.store import MembershipStore
from quotes.models import Quote, QuoteFilter
from quotes.store import QuoteStore


class UserRepository(Protocol):
    def create(self, email: str, username: str, password: str) -> User: ...

    def authenticate(self, email: str, password: str) -> User: ...

    def get_by_id(self, user_id: str) -> User: ...

    def get_by_email(self, email: str) -> Optional[User]: ...

    def set_authenticated(self, user_id: str, authenticated: bool) -> None: ...


class MembershipRepository(Protocol):
    def create_membership(self, group_key: str, name: str, member_id: str) -> MembershipRow: ...

    def get_by_id(self, row_id: str) -> MembershipRow: ...

    def list_by_group_key(self, group_key: str) -> list[MembershipRow]: ...

    def list_by_member(self, member_id: str) -> list[MembershipRow]: ...

    def update_name(self, row: MembershipRow) -> None: ...

    def delete(self, row_id: str) -> None: ...

    def create_group(
        self, group_key: str, name: str, member_ids: Iterable[str], creator_id: str
    ) -> list[MembershipRow]: ...

    def add_members(self, group_key: str, name: str, member_ids: Iterable[str]) -> list[MembershipRow]: ...

    def rename_group(self, group_key: str, name: str) -> list[MembershipRow]: ...

    def delete_group(self, group_key: str) -> int: ...


class QuoteRepository(Protocol):
    def create(self, quote: Quote) -> Quote: ...

    def get_by_id(self, quote_id: str) -> Quote: ...

    def get_random(self, quote_filter: QuoteFilter) -> Quote: ...

    def list(self, quote_filter: QuoteFilter) -> list[Quote]: ...

    def update(self, quote: Quote) -> Quote: ...

    def delete(self, quote_id: str) -> None: ...


class Store(Protocol):
    users: UserRepository
    groups: MembershipRepository
    quotes: QuoteRepository

    def close(self) -> None: ...


class SQLStore:
    """SQLAlchemy-backed Store. One engine, three repositories."""

    def __init__(self, db_url: str, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.engine = make_engine(db_url)
        metadata.create_all(self.engine)
        self.users = UserStore(self.engine, bcrypt_rounds=bcrypt_rounds)
        self.groups = MembershipStore(self.engine)
        self.quotes = QuoteStore(self.engine)

    def close(self) -> None:
        self.engine.dispose()
