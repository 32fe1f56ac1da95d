"""Password hashing and dual-key JWT issuance/verification for authentication."""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

from fuelcredit.services.errors import InvalidTokenError, TokenConfigurationError

if TYPE_CHECKING:
    from fuelcredit.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


@lru_cache
def _dummy_hash(rounds: int) -> bytes:
    return hash_password("fuelcredit-timing-equaliser", rounds).encode("utf-8")


def verify_password(
    plain_password: str, hashed: str | None, rounds: int = BCRYPT_ROUNDS
) -> bool:
    """
    Verify a plain password against a stored hash. A missing hash never matches,
    but still costs one bcrypt check at `rounds` so unknown users are not faster.
    """
    pw_bytes = plain_password.encode("utf-8")[:72]
    if not hashed:
        bcrypt.checkpw(pw_bytes, _dummy_hash(rounds))
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


class TokenIssuer:
    """
    Signs and verifies access and refresh tokens.

    Access and refresh tokens use different secrets and carry a `type` claim,
    so one can never be verified as the other.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=24),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        if not access_secret or not refresh_secret:
            raise TokenConfigurationError("JWT signing secrets are not configured")
        if access_secret == refresh_secret:
            raise TokenConfigurationError("Access and refresh secrets must differ")
        self._secrets = {TokenKind.ACCESS: access_secret, TokenKind.REFRESH: refresh_secret}
        self._ttls = {TokenKind.ACCESS: access_ttl, TokenKind.REFRESH: refresh_ttl}
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenIssuer":
        """Build an issuer from settings. Raises TokenConfigurationError if a secret is missing."""
        if settings.JWT_SECRET is None or settings.JWT_REFRESH_SECRET is None:
            raise TokenConfigurationError("JWT signing secrets are not configured")
        return cls(
            access_secret=settings.JWT_SECRET.get_secret_value(),
            refresh_secret=settings.JWT_REFRESH_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    @property
    def refresh_ttl(self) -> timedelta:
        return self._ttls[TokenKind.REFRESH]

    def _encode(self, user_id: str, kind: TokenKind, now: datetime) -> str:
        payload: dict[str, Any] = {
            "userId": str(user_id),
            "type": kind.value,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self._ttls[kind],
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)

    def issue(self, user_id: str) -> TokenPair:
        """Create a fresh access/refresh pair for user_id."""
        now = datetime.now(UTC)
        return TokenPair(
            access_token=self._encode(user_id, TokenKind.ACCESS, now),
            refresh_token=self._encode(user_id, TokenKind.REFRESH, now),
            refresh_expires_at=now + self._ttls[TokenKind.REFRESH],
        )

    def verify(self, token: str, kind: TokenKind) -> str:
        """
        Verify signature, expiry and token type; return the encoded user id.
        Raises InvalidTokenError on any failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError("Invalid or expired token") from e
        if payload.get("type") != kind.value:
            raise InvalidTokenError("Invalid or expired token")
        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError("Invalid token payload")
        return user_id
