"""
core/errors.py -- Error taxonomy shared by every layer.

Every failure the system reports to a client is one of these exceptions. Each
carries a machine-readable code and a human message; the HTTP status is derived
from the code so stores never need to know about HTTP.

Stores raise these at their boundary (raw SQLAlchemy errors are wrapped into
DatabaseError and never leak past the repository). api/main.py renders them
into the {success: false, code, message} envelope.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INVALID_INPUT = "INVALID_INPUT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RATE_LIMITED = "RATE_LIMITED"


STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.ALREADY_EXISTS: 409,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.DATABASE_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


class QuoteShareError(Exception):
    """Base class for all reportable errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_CODE[self.code]

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(QuoteShareError):
    code = ErrorCode.NOT_FOUND


class AlreadyExistsError(QuoteShareError):
    code = ErrorCode.ALREADY_EXISTS


class InvalidInputError(QuoteShareError):
    code = ErrorCode.INVALID_INPUT


class UnauthorizedError(QuoteShareError):
    code = ErrorCode.UNAUTHORIZED


class ForbiddenError(QuoteShareError):
    code = ErrorCode.FORBIDDEN


class InvalidTokenError(QuoteShareError):
    """Malformed token, bad signature, or a disallowed algorithm."""

    code = ErrorCode.INVALID_TOKEN


class TokenExpiredError(QuoteShareError):
    """Well-formed, correctly signed token whose lifetime has ended.

    Deliberately not a subclass of InvalidTokenError: callers can tell the
    two apart, while both still render as INVALID_TOKEN on the wire.
    """

    code = ErrorCode.INVALID_TOKEN


class InvalidCredentialsError(QuoteShareError):
    code = ErrorCode.INVALID_CREDENTIALS


class DatabaseError(QuoteShareError):
    code = ErrorCode.DATABASE_ERROR


class InternalError(QuoteShareError):
    code = ErrorCode.INTERNAL_ERROR


# Failures that mean "no usable identity" -- the optional auth path
# treats these as anonymous instead of rejecting the request.
AUTH_ERRORS: tuple[type[QuoteShareError], ...] = (
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
)
