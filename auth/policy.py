"""
auth/policy.py -- Authorization rules applied after a user is resolved.

Per-request flow:

    Unauthenticated -> TokenValid -> UserResolved      (auth/dependencies.py)
    UserResolved -> MemberAuthorized | OwnerAuthorized  (this module)
    -> Allowed                                          (route calls the store)

Every function here either returns (the caller may proceed) or raises a
QuoteShareError. Stores never repeat these checks; they trust the caller.

Layer rule: depends on db.store Protocols only, never on concrete stores.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from auth.models import User
from core.errors import ForbiddenError, InvalidInputError, NotFoundError
from db.store import MembershipRepository, UserRepository
from groups.models import MembershipRow
from quotes.models import Quote

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 50
# Largest page whose offset still fits a signed 64-bit SQLite integer.
MAX_PAGE = (2**63 - 1) // MAX_LIMIT


def require_group_member(groups: MembershipRepository, group_key: str, user: User) -> list[MembershipRow]:
    """Return the group's rows if `user` is one of its members.

    Raises NotFoundError if no rows carry group_key, ForbiddenError if the
    user is not among them.
    """
    rows = groups.list_by_group_key(group_key)
    if not any(row.member_id == user.id for row in rows):
        raise ForbiddenError("Not a member of this group")
    return rows


def require_uploader(quote: Quote, user: User, action: str = "modify") -> None:
    """Only the uploader may change or delete a quote."""
    if quote.uploader_id != user.id:
        raise ForbiddenError(f"Not authorized to {action} this quote")


def require_valid_members(users: UserRepository, member_ids: Iterable[str]) -> None:
    """Every listed member must be an existing, authenticated user."""
    for member_id in member_ids:
        try:
            member = users.get_by_id(member_id)
        except NotFoundError as exc:
            raise NotFoundError("Member not found") from exc
        if not member.authenticated:
            raise InvalidInputError("Member not authenticated")


def member_group_keys(groups: MembershipRepository, user: User) -> list[str]:
    """Group keys the user belongs to, newest membership first.

    A user with no memberships gets an empty list; "not found" from the
    repository is an empty result here, not an error.
    """
    try:
        rows = groups.list_by_member(user.id)
    except NotFoundError:
        return []
    return list(dict.fromkeys(row.group_key for row in rows))


def clamp_pagination(page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
    """Out-of-range values fall back to defaults rather than failing.

    page < 1 -> 1; page > MAX_PAGE -> MAX_PAGE (an empty page);
    limit outside 1..MAX_LIMIT -> DEFAULT_LIMIT (not MAX_LIMIT).
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE
    elif page > MAX_PAGE:
        page = MAX_PAGE
    if limit is None or limit < 1 or limit > MAX_LIMIT:
        limit = DEFAULT_LIMIT
    return page, limit
