"""
Password hashing and session tokens.

Tokens are HS256 JWTs carrying ``sub`` (the user id as a string),
``iat`` and ``exp``.  Nothing is persisted: a token stops working when it
expires or when the signing secret changes.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from blogapi.errors import AuthError, AuthErrorKind


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


class TokenService:
    """Issues and validates signed, time-bounded session tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = timedelta(days=30),
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self.default_ttl = default_ttl

    def issue(self, user_id: int, ttl: timedelta | None = None) -> str:
        """
        Return a token for *user_id* expiring ``ttl`` from now.

        A negative *ttl* produces a token that is already expired, which
        is occasionally useful in tests.
        """
        issued_at = datetime.now(timezone.utc)
        expires_at = issued_at + (self.default_ttl if ttl is None else ttl)
        payload = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str | None) -> int:
        """Return the user id carried by *token* or raise ``AuthError``."""
        if not token:
            raise AuthError(AuthErrorKind.MISSING)
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except (jwt.ExpiredSignatureError, jwt.InvalidSignatureError, jwt.InvalidAlgorithmError):
            raise AuthError(AuthErrorKind.INVALID_OR_EXPIRED)
        except jwt.InvalidTokenError:
            # DecodeError, missing claims, non-string sub, ...
            raise AuthError(AuthErrorKind.MALFORMED)

        try:
            return int(claims["sub"])
        except (TypeError, ValueError):
            raise AuthError(AuthErrorKind.MALFORMED)
