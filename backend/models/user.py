# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""User ORM model and its OU / Division membership tables."""

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base
from models.organization import Division, OrganizationalUnit

ROLES = ("user", "management", "admin")

user_divisions = Table(
    "user_divisions",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("division_id", Integer, ForeignKey("divisions.id", ondelete="CASCADE"), primary_key=True),
)

user_organizational_units = Table(
    "user_organizational_units",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "organizational_unit_id",
        Integer,
        ForeignKey("organizational_units.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(30), unique=True, nullable=False, index=True)
    # Always stored lower case, see services/identity.normalize_email
    email = Column(String(255), unique=True, nullable=False, index=True)
    # passlib pbkdf2_sha256 string, salt embedded
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(*ROLES, name="user_role"), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    login_attempts = Column(Integer, nullable=False, default=0)
    lock_until = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    department = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    divisions = relationship(
        Division,
        secondary=user_divisions,
        order_by=Division.id,
        lazy="selectin",
    )
    organizational_units = relationship(
        OrganizationalUnit,
        secondary=user_organizational_units,
        order_by=OrganizationalUnit.id,
        lazy="selectin",
    )

    @property
    def division_ids(self) -> frozenset[int]:
        """Membership set used by every division-access check."""
        return frozenset(d.id for d in self.divisions)

    @property
    def organizational_unit_ids(self) -> frozenset[int]:
        return frozenset(ou.id for ou in self.organizational_units)
