"""
api/responses.py -- Envelope helpers shared by the route modules.

Routes return ok(...) / error_response(...) rather than bare models so every
body on the wire carries the success flag.
"""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from api.models import UNKNOWN_USERNAME, ErrorResponse, SuccessResponse
from core.errors import NotFoundError
from db.store import UserRepository


def ok(data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=SuccessResponse(data=jsonable_encoder(data)).model_dump(),
    )


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=message).model_dump(),
    )


class UsernameLookup:
    """Resolve member/uploader ids to usernames, once per id per request.

    A user that no longer exists shows as "Unknown" rather than failing the
    whole response.
    """

    def __init__(self, users: UserRepository) -> None:
        self._users = users
        self._seen: dict[str, str] = {}

    def __call__(self, user_id: str) -> str:
        if user_id not in self._seen:
            try:
                self._seen[user_id] = self._users.get_by_id(user_id).username
            except NotFoundError:
                self._seen[user_id] = UNKNOWN_USERNAME
        return self._seen[user_id]
