# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
CredentialRepository and Credential ORM models.

A repository is the aggregate root for one division's credentials.  The
``version`` column is SQLAlchemy's optimistic-concurrency counter: every
flush that updates the repository row compares and bumps it, so two
requests racing on the same repository cannot silently overwrite each other
(the loser gets ``StaleDataError``).  Code that changes a credential must
also touch the repository row – see ``services.repository_manager._touch``.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base

CATEGORIES = ("WordPress", "Server", "Database", "Financial", "API", "Other")

NOTES_MAX_LENGTH = 500


class CredentialRepository(Base):
    __tablename__ = "credential_repositories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # 1:1 with Division
    division_id = Column(
        Integer,
        ForeignKey("divisions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    division = relationship("Division", back_populates="repository")
    credentials = relationship(
        "Credential",
        back_populates="repository",
        order_by="Credential.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}


class Credential(Base):
    __tablename__ = "credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    repository_id = Column(
        Integer,
        ForeignKey("credential_repositories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    category = Column(Enum(*CATEGORIES, name="credential_category"), nullable=False, default="Other")
    url = Column(String(2048), nullable=False)
    username = Column(String(255), nullable=False)
    # "encrypted:" + hex(iv) + ":" + hex(ciphertext).  Never plaintext.
    password = Column(Text, nullable=False)
    notes = Column(String(NOTES_MAX_LENGTH), nullable=True)
    tags = Column(JSON, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    last_updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    last_accessed = Column(DateTime(timezone=True), nullable=True)
    access_count = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    # Soft-delete flag; inactive rows stay for audit continuity
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    repository = relationship("CredentialRepository", back_populates="credentials")

    @property
    def division_id(self) -> int:
        return self.repository.division_id
