"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; api/models.py owns the wire shape.

Layer rule: no imports from api/, groups/, or quotes/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class User:
    """A registered identity.

    hashed_password is the bcrypt hash and never leaves the process: it is
    excluded from repr() and api/models.UserResponse has no field for it.

    authenticated gates every protected endpoint. Registration sets it to
    True immediately (there is no email verification step); a user flipped
    to False cannot pass get_current_user() even with a valid token.
    """

    id: str
    email: str
    username: str
    hashed_password: str = field(default="", repr=False)
    authenticated: bool = False
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a bearer token."""

    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime
