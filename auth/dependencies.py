"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Only one credential is accepted: an `Authorization: Bearer <token>` header.

get_current_user() is the strict entry point: every failure raises.
  - header missing or not "Bearer <token>"  -> UnauthorizedError (401)
  - bad signature / wrong alg / garbage     -> InvalidTokenError (401)
  - expired                                 -> TokenExpiredError (401, INVALID_TOKEN)
  - user gone, or authenticated=False       -> UnauthorizedError (401)

try_get_current_user() is the optional entry point: the same pipeline, but
any authentication-kind failure yields None so the route proceeds
anonymously. Storage failures still propagate.

The resolved User is returned as a plain value and injected into each route
as a typed parameter; nothing is stashed on request.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from auth.models import User
from auth.tokens import TokenIssuer
from core.errors import AUTH_ERRORS, NotFoundError, UnauthorizedError
from db.store import Store


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    if not header:
        raise UnauthorizedError("Missing authorization header")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise UnauthorizedError("Invalid authorization format")
    return parts[1]


def _resolve_user(request: Request) -> User:
    store: Store = request.app.state.store
    issuer: TokenIssuer = request.app.state.token_issuer

    claims = issuer.verify(_bearer_token(request))
    try:
        user = store.users.get_by_id(claims.user_id)
    except NotFoundError as exc:
        raise UnauthorizedError("User not found") from exc
    if not user.authenticated:
        raise UnauthorizedError("User not authenticated")
    return user


def get_current_user(request: Request) -> User:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    return _resolve_user(request)


def try_get_current_user(request: Request) -> Optional[User]:
    """Resolve the user if possible; None instead of an auth error."""
    try:
        return _resolve_user(request)
    except AUTH_ERRORS:
        return None
