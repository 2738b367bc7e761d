# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Audit trail – append-only activity log.

How an entry gets written
-------------------------
1. A route depends on :func:`get_audit_trail`, which builds an
   :class:`AuditTrail` for the request (client IP and User-Agent captured
   up front) and schedules ``trail.flush`` as a FastAPI background task.
2. Service functions call ``trail.record(...)`` only after their own commit
   succeeded.  Nothing is queued for a failed operation.
3. Starlette runs the background task after the response has been sent.
   Each entry is written by :func:`record` in a session of its own.  A
   failing write is logged and dropped; it is never retried and never
   reaches the client.

If the handler raises, the exception handler builds a fresh response without
the background task, so queued entries are discarded with it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from fastapi import BackgroundTasks, Request

from core.logger import logger
from core.security import get_client_ip, get_user_agent
from core.timeutil import utcnow
from database import SessionLocal
from models.activity_log import ACTIONS, RESOURCE_TYPES, ActivityLog


@dataclass
class AuditEvent:
    user_id: int
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    details: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    # Taken when the operation commits, not when the row is written
    timestamp: datetime = field(default_factory=utcnow)


def record(
    user_id: int,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> None:
    """Write one activity-log row.  Never raises."""
    if action not in ACTIONS or (resource_type is not None and resource_type not in RESOURCE_TYPES):
        logger.error("Activity logging skipped: unknown action=%s resource_type=%s", action, resource_type)
        return

    db = None
    try:
        db = SessionLocal()
        db.add(ActivityLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
            timestamp=timestamp or utcnow(),
        ))
        db.commit()
    except Exception:
        # Audit writes must never affect the primary operation
        if db is not None:
            db.rollback()
        logger.exception("Activity logging error: action=%s user_id=%s", action, user_id)
    finally:
        if db is not None:
            db.close()


class AuditTrail:
    """Collects the audit events of one request until the response is out."""

    def __init__(self, ip_address: Optional[str] = None, user_agent: Optional[str] = None):
        self.ip_address = ip_address
        self.user_agent = user_agent
        self.pending: list[AuditEvent] = []

    def record(
        self,
        user_id: int,
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.pending.append(AuditEvent(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
        ))

    def flush(self) -> None:
        events, self.pending = self.pending, []
        for event in events:
            record(
                event.user_id,
                event.action,
                event.resource_type,
                event.resource_id,
                event.details,
                event.ip_address,
                event.user_agent,
                event.timestamp,
            )


def get_audit_trail(request: Request, background_tasks: BackgroundTasks) -> AuditTrail:
    """FastAPI dependency: per-request trail, flushed after the response."""
    trail = AuditTrail(ip_address=get_client_ip(request), user_agent=get_user_agent(request))
    background_tasks.add_task(trail.flush)
    return trail
