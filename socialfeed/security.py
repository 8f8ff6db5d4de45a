"""
Password hashing and bearer token issuance/verification.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from jose import JWTError, jwt

from socialfeed.config import Settings
from socialfeed.errors import ServerError, Unauthenticated

logger = logging.getLogger(__name__)

# Only used with the in-memory database and no configured secret.
DEV_JWT_SECRET = "dev-only-insecure-secret"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller of a request."""

    user_id: str


class PasswordHashing:
    """Salted Argon2 hashing with cost parameters taken from settings."""

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536):
        self._hasher = PasswordHasher(time_cost=time_cost, memory_cost=memory_cost)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHashing":
        return cls(
            time_cost=settings.password_hash_time_cost,
            memory_cost=settings.password_hash_memory_cost,
        )

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        try:
            return self._hasher.verify(digest, plaintext)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError):
            logger.warning("Stored password hash could not be verified")
            return False


class TokenService:
    """Issues and decodes signed, time-limited bearer tokens."""

    def __init__(
        self,
        secret: Optional[str],
        algorithm: str = "HS256",
        expires_minutes: int = 60,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        secret = settings.jwt_secret
        # Same condition under which build_db_client falls back to memory.
        if not secret and (settings.use_in_memory_backends or not settings.database_url):
            logger.warning("JWT_SECRET is not set; using the development secret")
            secret = DEV_JWT_SECRET
        elif not secret:
            logger.warning("JWT_SECRET is not set; signup and login will fail")
        return cls(
            secret=secret,
            algorithm=settings.jwt_algorithm,
            expires_minutes=settings.jwt_expires_minutes,
        )

    def _require_secret(self) -> str:
        if not self.secret:
            raise ServerError("JWT_SECRET is not configured")
        return self.secret

    def issue(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.expires_minutes)
        )
        payload = {"sub": user_id, "userId": user_id, "exp": expire}
        return jwt.encode(payload, self._require_secret(), algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> str:
        """Return the user id carried by ``token`` or raise ``Unauthenticated``."""
        if not token:
            raise Unauthenticated("No token")
        secret = self._require_secret()
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except JWTError:
            # Covers expired, malformed and wrongly signed tokens.
            raise Unauthenticated("Token invalid")
        user_id = payload.get("userId") or payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise Unauthenticated("Token invalid")
        return user_id
