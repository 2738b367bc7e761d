# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Repository endpoints – per-division credential collections.

Security invariants enforced by every handler
---------------------------------------------
* JWT is required on every endpoint (via ``get_current_user``).
* Division membership is checked by the repository manager before any row
  is returned or changed.  Admins see every division.
* Plaintext passwords are only returned by ``/credentials/{id}/access``,
  which also counts the access and writes a ``credential_view`` audit entry.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.cipher import CredentialCipher, get_cipher
from core.schemas import MessageResponse
from core.security import get_current_user
from database import get_db
from models.user import User
from repositories.schemas import (
    AccessibleDivisionsResponse,
    CredentialCreate,
    CredentialOut,
    CredentialResponse,
    CredentialUpdate,
    RepositoryResponse,
    SearchHit,
    SearchResponse,
)
from services import repository_manager
from services.audit import AuditTrail, get_audit_trail

router = APIRouter(prefix="/repositories", tags=["repositories"])

# Literal paths are declared before /{division_id} so they are matched first.


@router.get("/accessible", response_model=AccessibleDivisionsResponse)
def accessible(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"divisions": repository_manager.list_accessible(db, current_user)}


@router.get("/search", response_model=SearchResponse)
def search(
    q: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Queries shorter than two characters return an empty result."""
    hits, total = repository_manager.search(db, current_user, q)
    return {"credentials": [_search_hit(c) for c in hits], "total": total}


def _search_hit(credential) -> SearchHit:
    # Search results never carry the password field, sealed or not
    summary = CredentialOut.model_validate(credential).model_dump(
        exclude={"password", "created_by", "last_updated_by"}
    )
    return SearchHit(**summary, division_name=credential.repository.division.name)


# ---------------------------------------------------------------------------
# Single credentials
# ---------------------------------------------------------------------------


@router.get("/credentials/{credential_id}", response_model=CredentialResponse)
def get_credential(
    credential_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Sealed credential, soft-deleted ones included.  Not audited."""
    return {"credential": repository_manager.get_credential(db, current_user, credential_id)}


@router.get("/credentials/{credential_id}/access", response_model=CredentialResponse)
def access_credential(
    credential_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
    cipher: CredentialCipher = Depends(get_cipher),
):
    """
    The *only* endpoint that returns a plaintext password.  The plaintext is
    never persisted, cached, or logged.
    """
    credential, plaintext = repository_manager.access_credential(
        db, current_user, credential_id, trail, cipher
    )
    out = CredentialOut.model_validate(credential).model_copy(update={"password": plaintext})
    return {"credential": out}


@router.put("/credentials/{credential_id}", response_model=CredentialResponse)
def update_credential(
    credential_id: int,
    body: CredentialUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
    cipher: CredentialCipher = Depends(get_cipher),
):
    """Partial update.  A new password is re-sealed with a fresh IV."""
    patch = body.model_dump(exclude_unset=True)
    credential = repository_manager.update_credential(db, current_user, credential_id, patch, trail, cipher)
    return {"credential": credential}


@router.delete("/credentials/{credential_id}", response_model=MessageResponse)
def delete_credential(
    credential_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    """Soft delete: the credential is flagged inactive, never removed."""
    repository_manager.soft_delete_credential(db, current_user, credential_id, trail)
    return {"detail": "Credential deleted successfully"}


# ---------------------------------------------------------------------------
# Division repositories
# ---------------------------------------------------------------------------


@router.get("/{division_id}", response_model=RepositoryResponse)
def get_repository(
    division_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    division, repository, active = repository_manager.get_repository_view(db, current_user, division_id)
    return {
        "repository": {
            "id": repository.id,
            "division": division,
            "version": repository.version,
            "credentials": active,
            "updated_at": repository.updated_at,
        }
    }


@router.post(
    "/{division_id}/credentials",
    response_model=CredentialResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_credential(
    division_id: int,
    body: CredentialCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
    cipher: CredentialCipher = Depends(get_cipher),
):
    credential = repository_manager.add_credential(
        db, current_user, division_id, body.model_dump(), trail, cipher
    )
    return {"credential": credential}
