"""
api/routes/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /auth/register   -- create account; returns {token, user}         (public)
  POST /auth/login      -- password login; returns {token, user}         (public, rate-limited)
  GET  /auth/me         -- current user                                   (requires auth)
  GET  /auth/status     -- {authenticated, user?}; never rejects          (optional auth)

Security:
  POST /login is limited per client IP by settings.login_rate_limit, which
  replaces the app-wide default limit for that route.
  UserStore.authenticate() equalizes timing between unknown email and wrong
  password and raises the same error for both.
  Cache-Control: no-store on every login response, success or failure.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AuthResponse, AuthStatusResponse, LoginRequest, RegisterRequest, UserResponse
from api.responses import error_response, ok
from auth.dependencies import get_current_user, try_get_current_user
from auth.models import User
from auth.tokens import TokenIssuer
from core.config import get_settings
from core.errors import InvalidCredentialsError
from db.store import Store

logger = logging.getLogger("quoteshare.api")

router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and log it in immediately.

    A duplicate email (case-insensitive) is ALREADY_EXISTS (409).
    """
    store: Store = request.app.state.store
    issuer: TokenIssuer = request.app.state.token_issuer

    user = store.users.create(body.email, body.username, body.password)
    token = issuer.issue(user)
    return ok(AuthResponse(token=token, user=UserResponse.from_user(user)), status_code=201)


# Route decorator must sit above the limit decorator so FastAPI registers the
# rate-limited wrapper; SlowAPIMiddleware skips routes that carry their own limit.
@router.post("/auth/login")
@limiter.limit(get_settings().login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Exchange email + password for a bearer token."""
    store: Store = request.app.state.store
    issuer: TokenIssuer = request.app.state.token_issuer

    try:
        user = store.users.authenticate(body.email, body.password)
    except InvalidCredentialsError as exc:
        logger.info("Failed login from %s", request.client.host if request.client else "unknown")
        resp = error_response(exc.status_code, exc.code.value, exc.message)
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = issuer.issue(user)
    resp = ok(AuthResponse(token=token, user=UserResponse.from_user(user)))
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me")
def me(current_user: User = Depends(get_current_user)) -> JSONResponse:
    """Return the user the bearer token belongs to."""
    return ok(UserResponse.from_user(current_user))


@router.get("/auth/status")
def auth_status(current_user: Optional[User] = Depends(try_get_current_user)) -> JSONResponse:
    """Report whether the request carries a usable token.

    Missing, malformed and expired tokens all yield authenticated=false with
    200, never 401.
    """
    if current_user is None:
        return ok(AuthStatusResponse(authenticated=False))
    return ok(AuthStatusResponse(authenticated=True, user=UserResponse.from_user(current_user)))
