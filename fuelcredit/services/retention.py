"""Retention: delete expired refresh tokens and rate-limit attempts past their window."""

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from fuelcredit.services.ledger import delete_expired_refresh_tokens
from fuelcredit.services.rate_limit import delete_stale_auth_attempts

if TYPE_CHECKING:
    from fuelcredit.core.config import Settings

logger = logging.getLogger(__name__)


def purge_expired_refresh_tokens(session: Session, settings: "Settings") -> int:
    """
    Delete expired refresh tokens from the ledger. Expired rows are already
    rejected by refresh, so this only reclaims space.

    Returns the number of rows deleted. Idempotent: safe to run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = datetime.now(UTC)
    deleted_count = delete_expired_refresh_tokens(session, cutoff)
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Retention run: cutoff=%s, refresh_tokens_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count


def purge_stale_auth_attempts(session: Session, settings: "Settings") -> int:
    """Delete rate-limit attempts older than the limiter window; they no longer count."""
    if not settings.RETENTION_ENABLED:
        return 0

    cutoff = datetime.now(UTC) - timedelta(minutes=settings.AUTH_RATE_LIMIT_WINDOW_MINUTES)
    deleted_count = delete_stale_auth_attempts(session, cutoff)
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Retention run: cutoff=%s, auth_attempts_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
