# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Admin statistics – dashboard aggregates and activity-log queries."""

from datetime import timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from core.timeutil import utcnow
from models.activity_log import ActivityLog
from models.credential import Credential
from models.organization import Division, OrganizationalUnit
from models.user import User

EXPIRY_WINDOW_DAYS = 30
RECENT_ACTIVITY_LIMIT = 10


def _grouped(db: Session, column, *criteria) -> list[dict]:
    rows = (
        db.query(column, func.count())
        .filter(*criteria)
        .group_by(column)
        .order_by(func.count().desc(), column)
        .all()
    )
    return [{"key": key, "count": count} for key, count in rows]


def dashboard(db: Session) -> dict:
    now = utcnow()

    total_users = db.query(func.count(User.id)).scalar()
    active_users = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar()
    total_credentials = db.query(func.count(Credential.id)).scalar()
    active_credentials = (
        db.query(func.count(Credential.id)).filter(Credential.is_active.is_(True)).scalar()
    )
    expiring = (
        db.query(func.count(Credential.id))
        .filter(
            Credential.is_active.is_(True),
            Credential.expires_at.is_not(None),
            Credential.expires_at >= now,
            Credential.expires_at <= now + timedelta(days=EXPIRY_WINDOW_DAYS),
        )
        .scalar()
    )

    recent = (
        db.query(ActivityLog)
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )

    return {
        "users": {
            "total": total_users,
            "active": active_users,
            "inactive": total_users - active_users,
            "by_role": _grouped(db, User.role),
        },
        "credentials": {
            "total": total_credentials,
            "active": active_credentials,
            "inactive": total_credentials - active_credentials,
            "expiring": expiring,
            "by_category": _grouped(db, Credential.category, Credential.is_active.is_(True)),
        },
        "structure": {
            "organizational_units": db.query(func.count(OrganizationalUnit.id))
            .filter(OrganizationalUnit.is_active.is_(True))
            .scalar(),
            "divisions": db.query(func.count(Division.id)).filter(Division.is_active.is_(True)).scalar(),
        },
        "recent_activity": recent,
    }


def activity_query(db: Session, user_id: Optional[int] = None, action: Optional[str] = None) -> Query:
    """Activity-log rows newest first, optionally filtered."""
    q = db.query(ActivityLog)
    if user_id is not None:
        q = q.filter(ActivityLog.user_id == user_id)
    if action:
        q = q.filter(ActivityLog.action == action)
    return q.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())


def activity_page(
    db: Session,
    page: int = 1,
    limit: int = 50,
    user_id: Optional[int] = None,
    action: Optional[str] = None,
) -> tuple[list[ActivityLog], int]:
    q = activity_query(db, user_id, action)
    total = q.count()
    return q.offset((page - 1) * limit).limit(limit).all(), total
