"""Auth service: registration, login, refresh-token rotation and logout."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fuelcredit.core.security import (
    BCRYPT_ROUNDS,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    TokenIssuer,
    TokenKind,
    TokenPair,
    hash_password,
    verify_password,
)
from fuelcredit.schemas.auth import Tokens, UserSnapshot
from fuelcredit.services.credentials import (
    get_user_by_email,
    is_valid_email,
    new_user_with_account,
    normalize_email,
    user_snapshot,
)
from fuelcredit.services.errors import (
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    ValidationError,
)
from fuelcredit.services.ledger import (
    find_active_refresh_token,
    record_refresh_token,
    revoke_refresh_token,
    rotate_refresh_token,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    user: UserSnapshot
    tokens: Tokens


def _tokens(pair: TokenPair) -> Tokens:
    return Tokens(access_token=pair.access_token, refresh_token=pair.refresh_token)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def register(
    db: Session,
    issuer: TokenIssuer,
    *,
    email: str | None,
    password: str | None,
    first_name: str | None,
    last_name: str | None,
    bcrypt_rounds: int = BCRYPT_ROUNDS,
) -> AuthResult:
    """
    Create a user and its fuel account in one transaction, then issue a token pair.

    All input checks run before anything touches the store. A duplicate email is
    detected up front and again by the unique index, so two racing registrations
    yield exactly one account.
    """
    if _blank(email) or not password or _blank(first_name) or _blank(last_name):
        raise ValidationError("All fields are required")
    if len(password) < PASSWORD_MIN_LEN:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LEN} characters")
    if len(password) > PASSWORD_MAX_LEN:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_LEN} characters")
    normalized = normalize_email(email)
    if not is_valid_email(normalized):
        raise ValidationError("Invalid email format")

    if get_user_by_email(db, normalized) is not None:
        raise ConflictError("User already exists")

    user = new_user_with_account(
        email=normalized,
        password_hash=hash_password(password, bcrypt_rounds),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
    )
    try:
        db.add(user)
        db.flush()
        pair = issuer.issue(user.id)
        record_refresh_token(db, user.id, pair.refresh_token, pair.refresh_expires_at)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("Registration lost race on unique email")
        raise ConflictError("User already exists") from e

    logger.info("User registered", extra={"user_id": user.id})
    return AuthResult(user=user_snapshot(user), tokens=_tokens(pair))


def login(
    db: Session,
    issuer: TokenIssuer,
    *,
    email: str | None,
    password: str | None,
    bcrypt_rounds: int = BCRYPT_ROUNDS,
) -> AuthResult:
    """
    Check credentials and issue a new token pair.

    Unknown email, missing hash and wrong password all raise the same
    InvalidCredentialsError after a bcrypt comparison.
    """
    if _blank(email) or not password:
        raise ValidationError("Email and password are required")

    user = get_user_by_email(db, email)
    stored_hash = user.password_hash if user is not None else None
    if not verify_password(password, stored_hash, bcrypt_rounds) or user is None:
        logger.warning("Failed login attempt")
        raise InvalidCredentialsError()

    pair = issuer.issue(user.id)
    record_refresh_token(db, user.id, pair.refresh_token, pair.refresh_expires_at)
    db.commit()
    logger.info("User logged in", extra={"user_id": user.id})
    return AuthResult(user=user_snapshot(user), tokens=_tokens(pair))


def refresh(db: Session, issuer: TokenIssuer, *, refresh_token: str | None) -> Tokens:
    """
    Redeem a refresh token for a new pair. The redeemed token is rotated out
    of the ledger in the same step and can never be used again.
    """
    if _blank(refresh_token):
        raise ValidationError("Refresh token required")

    try:
        user_id = issuer.verify(refresh_token, TokenKind.REFRESH)
    except InvalidTokenError as e:
        logger.warning("Rejected refresh token: bad signature or expired")
        raise InvalidTokenError("Invalid refresh token") from e

    now = datetime.now(UTC)
    row = find_active_refresh_token(db, refresh_token, now)
    if row is None or row.user_id != user_id:
        logger.warning("Rejected refresh token: not in ledger", extra={"user_id": user_id})
        raise InvalidTokenError("Invalid or expired refresh token")

    pair = issuer.issue(row.user_id)
    if not rotate_refresh_token(
        db, row.id, refresh_token, pair.refresh_token, pair.refresh_expires_at, now
    ):
        db.rollback()
        logger.warning("Rejected refresh token: already rotated", extra={"user_id": user_id})
        raise InvalidTokenError("Invalid or expired refresh token")
    db.commit()
    logger.info("Refresh token rotated", extra={"user_id": user_id})
    return _tokens(pair)


def logout(db: Session, *, user_id: str, refresh_token: str | None) -> None:
    """
    Remove the given refresh token from the ledger. Idempotent.
    The caller's access token stays valid until it expires.
    """
    deleted = 0
    if not _blank(refresh_token):
        deleted = revoke_refresh_token(db, refresh_token)
        db.commit()
    logger.info("User logged out", extra={"user_id": user_id, "tokens_revoked": deleted})
