"""Security Primitives — bcrypt password hashing and JWT access/refresh tokens.

Invariants:
    - Passwords hashed with bcrypt at the configured cost; plaintext never stored or logged
    - Access and refresh tokens are signed with different secrets and carry a `type` claim,
      so a refresh token can never authenticate a request and vice versa
    - Payload claims: userId, email, role (camelCase, matches what clients decode)
    - decode_* raise UnauthorizedError; PyJWT exceptions never escape this module
    - hash_password/verify_password are blocking; async callers go through run_in_threadpool

Design Decisions:
    - PyJWT HS256: symmetric secrets from settings, no key management service needed
    - Token pair returned as a plain dict: serialized straight into API responses
    - `jti` on every token: two pairs minted in the same second still differ, so a
      refresh-token comparison cannot be satisfied by a sibling token
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from awoof.core.errors import UnauthorizedError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
RESET_TOKEN_TYPE = "password_reset"


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash ``password`` with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    """Return ``True`` if ``password`` matches ``hashed``."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


class TokenService:
    """Issues and verifies signed JWTs for a user identity."""

    def __init__(
        self,
        secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ):
        self._secret = secret
        self._refresh_secret = refresh_secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def _encode(self, claims: dict[str, Any], token_type: str, ttl: timedelta, secret: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "type": token_type,
            "jti": secrets.token_hex(8),
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def create_access_token(self, user_id: str, email: str, role: str) -> str:
        claims = {"userId": user_id, "email": email, "role": role}
        return self._encode(claims, ACCESS_TOKEN_TYPE, self.access_ttl, self._secret)

    def create_refresh_token(self, user_id: str, email: str, role: str) -> str:
        claims = {"userId": user_id, "email": email, "role": role}
        return self._encode(claims, REFRESH_TOKEN_TYPE, self.refresh_ttl, self._refresh_secret)

    def create_token_pair(self, user_id: str, email: str, role: str) -> dict[str, str]:
        return {
            "accessToken": self.create_access_token(user_id, email, role),
            "refreshToken": self.create_refresh_token(user_id, email, role),
        }

    def create_reset_token(self, user_id: str, email: str, ttl: timedelta) -> str:
        """Short-lived token proving a password-reset OTP was verified."""
        claims = {"userId": user_id, "email": email}
        return self._encode(claims, RESET_TOKEN_TYPE, ttl, self._secret)

    def _decode(self, token: str, secret: str, token_type: str, message: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(token, secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError(f"{message}: token expired")
        except jwt.PyJWTError:
            raise UnauthorizedError(message)
        if payload.get("type") != token_type or not payload.get("userId"):
            raise UnauthorizedError(message)
        return payload

    def decode_access_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, self._secret, ACCESS_TOKEN_TYPE, "Invalid access token")

    def decode_refresh_token(self, token: str) -> dict[str, Any]:
        return self._decode(
            token, self._refresh_secret, REFRESH_TOKEN_TYPE, "Invalid refresh token",
        )

    def decode_reset_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, self._secret, RESET_TOKEN_TYPE, "Invalid or expired reset token")
