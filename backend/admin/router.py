# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – user lifecycle, role changes, OU / division assignments
and the organizational structure.

Every endpoint in this router is guarded by ``require_admin``.  A request
that carries a valid JWT but belongs to another role receives 403 before
any business logic runs.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from admin.schemas import (
    AssignmentRequest,
    ChangeRoleRequest,
    CreateUserRequest,
    OrganizationalStructureResponse,
    UserDetailResponse,
    UserListResponse,
)
from core.schemas import paginate
from core.security import require_admin
from database import get_db
from models.organization import OrganizationalUnit
from models.user import User
from services import identity
from services.audit import AuditTrail, get_audit_trail

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Newest accounts first, optionally filtered by role or username/email fragment."""
    users, total = identity.list_users(db, page, limit, role, search)
    return {"users": users, "pagination": paginate(page, limit, total)}


@router.get("/users/{user_id}", response_model=UserDetailResponse)
def get_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"user": identity.get_user(db, user_id)}


@router.post("/users", response_model=UserDetailResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    user = identity.create_user(db, admin, body.username, body.email, body.password, body.role, trail)
    return {"user": user}


@router.put("/users/{user_id}/role", response_model=UserDetailResponse)
def change_role(
    user_id: int,
    body: ChangeRoleRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    """An admin cannot change their own role, whatever value is requested."""
    return {"user": identity.change_role(db, admin, user_id, body.role, trail)}


@router.put("/users/{user_id}/disable", response_model=UserDetailResponse)
def disable_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    return {"user": identity.set_active(db, admin, user_id, False, trail)}


@router.put("/users/{user_id}/enable", response_model=UserDetailResponse)
def enable_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    return {"user": identity.set_active(db, admin, user_id, True, trail)}


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


@router.post("/users/{user_id}/assignments", response_model=UserDetailResponse)
def add_assignments(
    user_id: int,
    body: AssignmentRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    user = identity.add_assignments(
        db, admin, user_id, body.organizational_units, body.divisions, trail
    )
    return {"user": user}


@router.delete("/users/{user_id}/assignments", response_model=UserDetailResponse)
def remove_assignments(
    user_id: int,
    body: AssignmentRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    trail: AuditTrail = Depends(get_audit_trail),
):
    user = identity.remove_assignments(
        db, admin, user_id, body.organizational_units, body.divisions, trail
    )
    return {"user": user}


# ---------------------------------------------------------------------------
# Organizational structure
# ---------------------------------------------------------------------------


@router.get("/organizational-structure", response_model=OrganizationalStructureResponse)
def organizational_structure(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """All OUs with their divisions, for the assignment picker."""
    units = db.query(OrganizationalUnit).order_by(OrganizationalUnit.id).all()
    return {"organizational_units": units}
