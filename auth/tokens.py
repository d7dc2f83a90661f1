"""
auth/tokens.py -- Password hashing and bearer token issue/verify.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper). The cost factor is
       tunable via BCRYPT_ROUNDS so tests can run at the minimum (4) while
       production stays at 12. bcrypt.checkpw compares in constant time.

  JWT: python-jose with HS256. Tokens carry user_id, email, iat and exp.
       verify() pins the algorithm twice: the unverified header must say
       HS256, and jwt.decode() is given algorithms=["HS256"]. A token with
       alg=none, HS512, or an asymmetric algorithm is rejected before any
       claim is trusted (algorithm-confusion hardening).

  Expired vs invalid: verify() raises TokenExpiredError only for a token
       that is well-formed and correctly signed but past its exp. Any other
       failure (bad signature, wrong secret, garbage) is InvalidTokenError.
       Signature is checked before expiry, so an expired token signed with
       another secret is still reported as invalid.

Layer rule: no imports from api/, groups/, or quotes/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import TokenClaims, User
from core.errors import InvalidTokenError, TokenExpiredError

logger = logging.getLogger("quoteshare.auth")

_ALGORITHM = "HS256"

DEFAULT_BCRYPT_ROUNDS = 12


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt silently truncates input beyond 72 bytes; the API layer caps
    password length well below that.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage -- treat as a mismatch.
        return False


# ---------------------------------------------------------------------------
# Token issuer
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Issues and verifies HS256 bearer tokens for one signing secret.

    Usage:
        issuer = TokenIssuer(settings.secret_key, ttl_hours=24)
        token = issuer.issue(user)
        claims = issuer.verify(token)   # raises TokenExpiredError / InvalidTokenError
    """

    def __init__(self, secret_key: str, ttl_hours: float = 24) -> None:
        self._secret_key = secret_key
        self.ttl = timedelta(hours=ttl_hours)

    def issue(self, user: User, now: Optional[datetime] = None) -> str:
        """Encode a signed token for `user`.

        `now` exists so callers can mint tokens with a specific issue time
        (e.g. already-expired tokens in tests); it defaults to the current
        UTC time. Sub-second precision is dropped because JWT NumericDate
        claims are whole seconds.
        """
        issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        payload = {
            "user_id": user.id,
            "email": user.email,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Verify signature, algorithm and expiry; return the claims."""
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise InvalidTokenError("Invalid token") from exc
        if header.get("alg") != _ALGORITHM:
            logger.warning("Rejected token with disallowed alg %r", header.get("alg"))
            raise InvalidTokenError("Invalid token")

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except JWTError as exc:
            raise InvalidTokenError("Invalid token") from exc

        user_id = payload.get("user_id")
        email = payload.get("email")
        exp = payload.get("exp")
        iat = payload.get("iat")
        if not isinstance(user_id, str) or not isinstance(email, str):
            raise InvalidTokenError("Invalid token")
        if not isinstance(exp, int) or not isinstance(iat, int):
            raise InvalidTokenError("Invalid token")

        # jose only rejects exp < now; a token is already dead at exp == now,
        # which makes a zero TTL reliably expired.
        if exp <= int(datetime.now(timezone.utc).timestamp()):
            raise TokenExpiredError("Token has expired")

        return TokenClaims(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
