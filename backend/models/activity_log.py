# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""ActivityLog ORM model – append-only audit trail."""

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from core.timeutil import utcnow
from database import Base

ACTIONS = (
    "login",
    "logout",
    "credential_view",
    "credential_add",
    "credential_edit",
    "credential_delete",
    "user_create",
    "user_update",
    "user_delete",
    "assignment_add",
    "assignment_remove",
    "role_change",
    "password_change",
    "profile_update",
)

RESOURCE_TYPES = ("credential", "user", "division", "organizationalUnit", "system")


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # The user who performed the action
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action = Column(Enum(*ACTIONS, name="activity_action"), nullable=False, index=True)
    resource_type = Column(Enum(*RESOURCE_TYPES, name="activity_resource_type"), nullable=True)
    resource_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)   # supports IPv6
    user_agent = Column(Text, nullable=True)
    # Rows older than AUDIT_RETENTION_DAYS are purged by services.retention
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    user = relationship("User")
