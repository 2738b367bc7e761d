# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Credential repository manager – per-division credential collections.

Every division owns at most one :class:`CredentialRepository`, created on
first use.  Credentials are only ever changed through the functions below,
which

* check the caller's capability and division membership,
* validate and seal the submitted fields,
* touch the owning repository row so its ``version`` is compared and bumped
  in the same flush (a concurrent writer gets ``ConcurrentModification``),
* commit, then queue the audit entry.

Stored passwords stay sealed everywhere except :func:`access_credential`,
which is the single decryption path.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from core.cipher import CredentialCipher, get_cipher
from core.exceptions import (
    ConcurrentModification,
    CredentialNotFound,
    DivisionNotFound,
    ValidationError,
)
from core.logger import logger
from core.timeutil import utcnow
from models.credential import CATEGORIES, NOTES_MAX_LENGTH, Credential, CredentialRepository
from models.organization import Division
from models.user import User
from services.audit import AuditTrail
from services.authorization import (
    ADD,
    DELETE,
    EDIT,
    READ,
    require_capability,
    require_division_access,
)

SEARCH_MIN_LENGTH = 2
SEARCH_MAX_RESULTS = 20

_REQUIRED_TEXT = ("title", "url", "username")
_EDITABLE = ("title", "category", "url", "username", "password", "notes", "tags", "expires_at")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _touch(repository: CredentialRepository) -> None:
    """Mark the repository row dirty so the flush runs the version check."""
    repository.updated_at = utcnow()


def _commit(db: Session) -> None:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.warning("Concurrent repository modification detected: %s", exc)
        raise ConcurrentModification() from exc


def _clean_fields(fields: dict, partial: bool) -> dict:
    """
    Validate submitted credential fields and return the cleaned values.
    With *partial* only the keys present are checked (used by updates).
    """
    errors = {}
    cleaned = {}

    for name in _REQUIRED_TEXT:
        if name not in fields and partial:
            continue
        value = (fields.get(name) or "").strip()
        if not value:
            errors[name] = f"{name.capitalize()} is required"
        else:
            cleaned[name] = value

    if "password" in fields or not partial:
        password = fields.get("password") or ""
        if not password:
            errors["password"] = "Password is required"
        else:
            cleaned["password"] = password

    if "category" in fields or not partial:
        category = fields.get("category") or ("" if partial else "Other")
        if category not in CATEGORIES:
            errors["category"] = f"Category must be one of: {', '.join(CATEGORIES)}"
        else:
            cleaned["category"] = category

    if "notes" in fields:
        notes = fields["notes"]
        if notes is not None and len(notes) > NOTES_MAX_LENGTH:
            errors["notes"] = f"Notes cannot exceed {NOTES_MAX_LENGTH} characters"
        else:
            cleaned["notes"] = notes

    if "tags" in fields or not partial:
        tags = fields.get("tags")
        if tags is None and not partial:
            tags = []
        if tags is None:
            errors["tags"] = "Tags must be a list; send [] to clear them"
        elif not all(isinstance(tag, str) for tag in tags):
            errors["tags"] = "Tags must be strings"
        else:
            # unique, first occurrence wins
            cleaned["tags"] = list(dict.fromkeys(tag.strip() for tag in tags if tag.strip()))

    if "expires_at" in fields:
        expires_at = fields["expires_at"]
        if expires_at is not None and not isinstance(expires_at, datetime):
            errors["expiresAt"] = "Expiry must be a date"
        else:
            cleaned["expires_at"] = expires_at

    if errors:
        raise ValidationError(errors)
    return cleaned


def _locate(db: Session, credential_id: int) -> Credential:
    credential = db.get(Credential, credential_id)
    if not credential:
        raise CredentialNotFound()
    return credential


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


def get_or_create_repository(db: Session, division_id: int) -> CredentialRepository:
    """Return the division's repository, provisioning it on first use."""
    if not db.get(Division, division_id):
        raise DivisionNotFound()

    repository = (
        db.query(CredentialRepository)
        .filter(CredentialRepository.division_id == division_id)
        .first()
    )
    if repository:
        return repository

    repository = CredentialRepository(division_id=division_id)
    db.add(repository)
    try:
        db.commit()
    except IntegrityError:
        # Another request provisioned it first
        db.rollback()
        return (
            db.query(CredentialRepository)
            .filter(CredentialRepository.division_id == division_id)
            .one()
        )
    db.refresh(repository)
    logger.info("Credential repository provisioned: division_id=%d repository_id=%d", division_id, repository.id)
    return repository


def get_repository_view(
    db: Session, actor: User, division_id: int
) -> tuple[Division, CredentialRepository, list[Credential]]:
    """Division, its repository and the repository's active credentials."""
    require_division_access(actor, division_id)
    repository = get_or_create_repository(db, division_id)
    active = [c for c in repository.credentials if c.is_active]
    return repository.division, repository, active


def list_accessible(db: Session, actor: User) -> list[Division]:
    if actor.role == "admin":
        return db.query(Division).filter(Division.is_active.is_(True)).order_by(Division.id).all()
    return [d for d in sorted(actor.divisions, key=lambda d: d.id) if d.is_active]


# ---------------------------------------------------------------------------
# Credential writes
# ---------------------------------------------------------------------------


def add_credential(
    db: Session,
    actor: User,
    division_id: int,
    fields: dict,
    trail: Optional[AuditTrail] = None,
    cipher: Optional[CredentialCipher] = None,
) -> Credential:
    """Create a credential in the division's repository.  Returns it sealed."""
    require_capability(actor, ADD)
    require_division_access(actor, division_id)
    cleaned = _clean_fields(fields, partial=False)
    cipher = cipher or get_cipher()

    repository = get_or_create_repository(db, division_id)
    credential = Credential(
        title=cleaned["title"],
        category=cleaned["category"],
        url=cleaned["url"],
        username=cleaned["username"],
        password=cipher.seal_plaintext(cleaned["password"]),
        notes=cleaned.get("notes"),
        tags=cleaned["tags"],
        expires_at=cleaned.get("expires_at"),
        created_by=actor.id,
        access_count=0,
        is_active=True,
    )
    repository.credentials.append(credential)
    _touch(repository)
    _commit(db)
    db.refresh(credential)

    if trail is not None:
        trail.record(
            actor.id,
            "credential_add",
            "credential",
            credential.id,
            {"divisionId": division_id, "title": credential.title, "category": credential.category},
        )
    return credential


def update_credential(
    db: Session,
    actor: User,
    credential_id: int,
    patch: dict,
    trail: Optional[AuditTrail] = None,
    cipher: Optional[CredentialCipher] = None,
) -> Credential:
    """Apply the fields present in *patch*.  Management and admin only."""
    require_capability(actor, EDIT)
    credential = _locate(db, credential_id)
    require_division_access(actor, credential.division_id)

    cleaned = _clean_fields({k: v for k, v in patch.items() if k in _EDITABLE}, partial=True)
    if "password" in cleaned:
        cleaned["password"] = (cipher or get_cipher()).seal_plaintext(cleaned["password"])

    for name, value in cleaned.items():
        setattr(credential, name, value)
    credential.last_updated_by = actor.id
    _touch(credential.repository)
    _commit(db)
    db.refresh(credential)

    if trail is not None:
        trail.record(
            actor.id,
            "credential_edit",
            "credential",
            credential.id,
            {
                "divisionId": credential.division_id,
                "title": credential.title,
                "updatedFields": sorted(cleaned),
            },
        )
    return credential


def soft_delete_credential(
    db: Session,
    actor: User,
    credential_id: int,
    trail: Optional[AuditTrail] = None,
) -> Credential:
    """Flag the credential inactive.  The row and its history stay."""
    require_capability(actor, DELETE)
    credential = _locate(db, credential_id)
    require_division_access(actor, credential.division_id)

    credential.is_active = False
    credential.last_updated_by = actor.id
    _touch(credential.repository)
    _commit(db)

    if trail is not None:
        trail.record(
            actor.id,
            "credential_delete",
            "credential",
            credential.id,
            {"divisionId": credential.division_id, "title": credential.title},
        )
    return credential


# ---------------------------------------------------------------------------
# Credential reads
# ---------------------------------------------------------------------------


def get_credential(db: Session, actor: User, credential_id: int) -> Credential:
    """Direct lookup by id, soft-deleted rows included.  Password stays sealed."""
    require_capability(actor, READ)
    credential = _locate(db, credential_id)
    require_division_access(actor, credential.division_id)
    return credential


def access_credential(
    db: Session,
    actor: User,
    credential_id: int,
    trail: Optional[AuditTrail] = None,
    cipher: Optional[CredentialCipher] = None,
) -> tuple[Credential, str]:
    """
    Reveal a credential's password.

    Decryption runs first; a stored value that cannot be decrypted leaves
    the counter untouched and queues no audit entry.  The counter is
    incremented in SQL so parallel reads do not lose counts and do not
    contend on the repository version.  Returns the credential and its
    plaintext password.
    """
    require_capability(actor, READ)
    credential = _locate(db, credential_id)
    require_division_access(actor, credential.division_id)
    if not credential.is_active:
        raise CredentialNotFound()

    plaintext = (cipher or get_cipher()).unseal(credential.password)

    credential.access_count = Credential.access_count + 1
    credential.last_accessed = utcnow()
    db.commit()
    db.refresh(credential)

    if trail is not None:
        trail.record(
            actor.id,
            "credential_view",
            "credential",
            credential.id,
            {"divisionId": credential.division_id, "title": credential.title},
        )
    return credential, plaintext


def _matches(credential: Credential, needle: str) -> bool:
    haystack = [
        credential.title,
        credential.username,
        credential.url,
        credential.category,
        credential.notes or "",
        *(credential.tags or []),
    ]
    return any(needle in value.casefold() for value in haystack)


def search(db: Session, actor: User, query: Optional[str]) -> tuple[list[Credential], int]:
    """
    Case-insensitive substring search over the caller's accessible divisions.
    Returns at most SEARCH_MAX_RESULTS credentials plus the total match count.
    """
    needle = (query or "").strip()
    if len(needle) < SEARCH_MIN_LENGTH:
        return [], 0
    needle = needle.casefold()

    division_ids = [d.id for d in list_accessible(db, actor)]
    if not division_ids:
        return [], 0

    candidates = (
        db.query(Credential)
        .join(CredentialRepository, Credential.repository_id == CredentialRepository.id)
        .filter(
            CredentialRepository.division_id.in_(division_ids),
            Credential.is_active.is_(True),
        )
        .order_by(CredentialRepository.division_id, Credential.id)
        .all()
    )
    hits = [c for c in candidates if _matches(c, needle)]
    return hits[:SEARCH_MAX_RESULTS], len(hits)
