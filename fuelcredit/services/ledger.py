"""Refresh token ledger: persisted refresh tokens, rotation and revocation.

None of these functions commit; the caller owns the transaction.
"""

from datetime import UTC, datetime

from sqlalchemy.orm import Session

from fuelcredit.models import RefreshToken


def record_refresh_token(
    db: Session, user_id: str, token: str, expires_at: datetime
) -> RefreshToken:
    """Add a ledger row for a newly issued refresh token."""
    row = RefreshToken(token=token, user_id=user_id, expires_at=expires_at)
    db.add(row)
    return row


def find_active_refresh_token(
    db: Session, token: str, now: datetime | None = None
) -> RefreshToken | None:
    """Return the ledger row for token if it exists and has not expired."""
    now = now or datetime.now(UTC)
    return (
        db.query(RefreshToken)
        .filter(RefreshToken.token == token, RefreshToken.expires_at > now)
        .first()
    )


def rotate_refresh_token(
    db: Session,
    row_id: int,
    old_token: str,
    new_token: str,
    new_expires_at: datetime,
    now: datetime | None = None,
) -> bool:
    """
    Replace old_token with new_token on the same row.

    The update matches on the old token value, so of two concurrent redemptions
    of one token only the first sees a row; returns False for the loser.
    """
    now = now or datetime.now(UTC)
    updated = (
        db.query(RefreshToken)
        .filter(
            RefreshToken.id == row_id,
            RefreshToken.token == old_token,
            RefreshToken.expires_at > now,
        )
        .update(
            {RefreshToken.token: new_token, RefreshToken.expires_at: new_expires_at},
            synchronize_session=False,
        )
    )
    return updated == 1


def revoke_refresh_token(db: Session, token: str) -> int:
    """Delete every row holding token. Returns the number deleted (0 is fine)."""
    return (
        db.query(RefreshToken)
        .filter(RefreshToken.token == token)
        .delete(synchronize_session=False)
    )


def delete_expired_refresh_tokens(db: Session, now: datetime | None = None) -> int:
    now = now or datetime.now(UTC)
    return (
        db.query(RefreshToken)
        .filter(RefreshToken.expires_at <= now)
        .delete(synchronize_session=False)
    )
