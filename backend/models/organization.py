# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""OrganizationalUnit and Division ORM models – static reference data."""

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base

OU_NAMES = (
    "News Management",
    "Software Reviews",
    "Hardware Reviews",
    "Opinion Publishing",
)


class OrganizationalUnit(Base):
    __tablename__ = "organizational_units"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Enum(*OU_NAMES, name="ou_name"), nullable=False)
    code = Column(String(32), unique=True, nullable=False, index=True)  # upper case
    description = Column(Text, nullable=True)
    manager_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    divisions = relationship(
        "Division",
        back_populates="organizational_unit",
        order_by="Division.id",
    )
    manager = relationship("User", foreign_keys=[manager_id])


class Division(Base):
    __tablename__ = "divisions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    code = Column(String(32), unique=True, nullable=False, index=True)  # upper case
    # Every division belongs to exactly one OU
    organizational_unit_id = Column(
        Integer,
        ForeignKey("organizational_units.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description = Column(Text, nullable=True)
    lead_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    organizational_unit = relationship("OrganizationalUnit", back_populates="divisions")
    lead = relationship("User", foreign_keys=[lead_id])
    # Provisioned lazily on first access, see services/repository_manager.py
    repository = relationship("CredentialRepository", back_populates="division", uselist=False)
