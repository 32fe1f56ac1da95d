"""
CLI entrypoint for the retention job: expired refresh tokens and stale auth
attempts. Run from cron, e.g.:

  python -m fuelcredit.retention

Or hourly: 0 * * * * cd /path/to/fuelcredit && .venv/bin/python -m fuelcredit.retention
"""

import logging
import sys

from fuelcredit.core.config import get_settings
from fuelcredit.core.database import SessionLocal
from fuelcredit.services.retention import (
    purge_expired_refresh_tokens,
    purge_stale_auth_attempts,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run retention: delete refresh tokens past their expiry and stale auth attempts."""
    settings = get_settings()
    db = SessionLocal()
    try:
        deleted = purge_expired_refresh_tokens(db, settings)
        attempts = purge_stale_auth_attempts(db, settings)
        logger.info(
            "Retention completed: refresh_tokens_deleted=%s, auth_attempts_deleted=%s",
            deleted,
            attempts,
        )
        return 0
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
