"""
Cron job for periodic housekeeping.

This script should be run daily to drop one-time codes that can no longer
be authorized.
"""

import logging

from sqlalchemy.orm import Session

from downtown.core.logging import configure_logging
from downtown.db.session import SessionLocal
from downtown.services import verification

logger = logging.getLogger(__name__)


def purge_verification_codes(db: Session) -> int:
    """Delete expired one-time codes.

    Args:
        db: Database session

    Returns:
        Number of removed codes
    """
    removed = verification.purge_expired(db)
    logger.info("Purged %d expired verification codes", removed)
    return removed


if __name__ == "__main__":
    configure_logging()
    db = SessionLocal()
    try:
        purge_verification_codes(db)
    finally:
        db.close()
