"""
API request and response models for the quoteshare REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py,
groups/models.py and quotes/models.py, which own the internal domain
representation. Route handlers map between the two.

Every response body is an envelope: SuccessResponse {success: true, data} or
ErrorResponse {success: false, code, message}.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from groups.models import MembershipRow
from quotes.models import Quote

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt ignores input past 72 bytes; reject rather than silently truncate.
PASSWORD_MAX_LENGTH = 72

UNKNOWN_USERNAME = "Unknown"


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class SuccessResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: Any = None


class ErrorResponse(BaseModel):
    """Uniform error body. code is one of core.errors.ErrorCode."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    code: str
    message: str


class HealthResponse(BaseModel):
    """Liveness probe response."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=6, max_length=PASSWORD_MAX_LENGTH)


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=6, max_length=PASSWORD_MAX_LENGTH)


class UserResponse(BaseModel):
    """Public view of a user. There is no password field, hashed or otherwise."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    username: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, username=user.username, created_at=user.created_at)


class AuthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: UserResponse


class AuthStatusResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    authenticated: bool
    user: Optional[UserResponse] = None


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


class QuoteCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1, max_length=2000)
    author: Optional[str] = Field(default=None, max_length=255)
    group_id: str = Field(min_length=1, max_length=100)


class QuoteUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1, max_length=2000)
    author: Optional[str] = Field(default=None, max_length=255)


class QuoteResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    author: Optional[str]
    uploader_id: str
    uploader: str
    group_id: str
    created_at: str
    updated_at: str

    @classmethod
    def from_quote(cls, quote: Quote, uploader: str) -> "QuoteResponse":
        return cls(
            id=quote.id or "",
            text=quote.text,
            author=quote.author,
            uploader_id=quote.uploader_id,
            uploader=uploader,
            group_id=quote.group_key,
            created_at=quote.created_at,
            updated_at=quote.updated_at,
        )


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------


class GroupCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=150)
    group_id: str = Field(min_length=1, max_length=100)
    members: list[str] = Field(min_length=1, max_length=100)


class GroupUpdate(BaseModel):
    """Rename a group and optionally add members. Members are never removed here."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=150)
    members: list[str] = Field(default_factory=list, max_length=100)


class GroupMemberResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str


class GroupResponse(BaseModel):
    """One logical group, rebuilt from the membership rows sharing its key."""

    model_config = ConfigDict(frozen=True)

    group_id: str
    name: str
    members: list[GroupMemberResponse]
    created_at: str
    updated_at: str

    @classmethod
    def from_rows(cls, rows: list[MembershipRow], username_for) -> "GroupResponse":
        """Build from a non-empty row list; username_for maps member_id -> username.

        Rows arrive newest first. The group's name is taken from the most
        recently updated row, since a partial rename can leave rows disagreeing.
        """
        latest = max(rows, key=lambda r: r.updated_at)
        return cls(
            group_id=rows[0].group_key,
            name=latest.name,
            members=[GroupMemberResponse(user_id=r.member_id, username=username_for(r.member_id)) for r in rows],
            created_at=min(r.created_at for r in rows),
            updated_at=latest.updated_at,
        )
