"""
Store-backed limiter for the credential endpoints (register and login).

Each attempt is a row in auth_attempts, so every worker sharing the database
sees the same count. The window slides: an attempt stops counting once it is
older than the window.
"""

import logging
import math
from datetime import UTC, datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from fuelcredit.models import AuthAttempt
from fuelcredit.services.errors import RateLimitedError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many authentication attempts, please try again later."


def _retry_after(oldest: datetime, window: timedelta, now: datetime) -> int:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if oldest.tzinfo is None:
        oldest = oldest.replace(tzinfo=UTC)
    return max(1, math.ceil((oldest + window - now).total_seconds()))


def record_auth_attempt(
    db: Session,
    client_key: str,
    *,
    limit: int,
    window: timedelta,
    now: datetime | None = None,
) -> None:
    """
    Count client_key's attempts inside the window and record this one. Commits.

    Raises RateLimitedError when `limit` attempts are already in the window.
    A rejected attempt is not recorded, so a blocked client is let back in
    as soon as its oldest attempt ages out.
    """
    now = now or datetime.now(UTC)
    count, oldest = (
        db.query(func.count(AuthAttempt.id), func.min(AuthAttempt.attempted_at))
        .filter(AuthAttempt.client_key == client_key, AuthAttempt.attempted_at > now - window)
        .one()
    )
    if count >= limit:
        retry_after = _retry_after(oldest, window, now)
        logger.warning(
            "Auth rate limit reached",
            extra={"attempts": count, "retry_after": retry_after},
        )
        raise RateLimitedError(RATE_LIMIT_MESSAGE, retry_after=retry_after)
    db.add(AuthAttempt(client_key=client_key, attempted_at=now))
    db.commit()


def delete_stale_auth_attempts(db: Session, before: datetime) -> int:
    """Delete attempts recorded before `before`. Does not commit."""
    return (
        db.query(AuthAttempt)
        .filter(AuthAttempt.attempted_at <= before)
        .delete(synchronize_session=False)
    )
