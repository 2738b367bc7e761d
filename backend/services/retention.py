# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Retention worker – deletes activity-log rows past AUDIT_RETENTION_DAYS and
password-reset tokens that are used or expired.

``purge_expired`` does one pass; ``purge_loop`` repeats it every
PURGE_INTERVAL_SECONDS and is started as a background task at app startup.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, or_

from core.config import settings
from core.logger import logger
from core.timeutil import utcnow
from database import SessionLocal
from models.activity_log import ActivityLog
from models.password_reset_token import PasswordResetToken


def purge_expired(db=None, now: Optional[datetime] = None) -> dict[str, int]:
    """Delete expired rows.  Returns the number removed per table."""
    now = now or utcnow()
    cutoff = now - timedelta(days=settings.audit_retention_days)

    own_session = db is None
    db = db or SessionLocal()
    try:
        logs = db.execute(delete(ActivityLog).where(ActivityLog.timestamp < cutoff))
        tokens = db.execute(
            delete(PasswordResetToken).where(
                or_(PasswordResetToken.used.is_(True), PasswordResetToken.expires_at <= now)
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        if own_session:
            db.close()

    removed = {"activity_logs": logs.rowcount, "reset_tokens": tokens.rowcount}
    if any(removed.values()):
        logger.info("Retention purge: %s", removed)
    return removed


async def purge_loop() -> None:
    while True:
        try:
            await asyncio.to_thread(purge_expired)
        except Exception:
            logger.exception("Retention purge failed")
        await asyncio.sleep(settings.purge_interval_seconds)
