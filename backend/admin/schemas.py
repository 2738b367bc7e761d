# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the admin endpoints."""

from datetime import datetime
from typing import List, Optional

from core.schemas import CamelModel, DivisionRef, Pagination, UserProfile


# -- Requests --------------------------------------------------------------


class CreateUserRequest(CamelModel):
    username: str
    email: str
    password: str
    role: str = "user"  # user / management / admin


class ChangeRoleRequest(CamelModel):
    role: str


class AssignmentRequest(CamelModel):
    organizational_units: List[int] = []
    divisions: List[int] = []


# -- Responses -------------------------------------------------------------


class UserRow(UserProfile):
    login_attempts: int
    lock_until: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserListResponse(CamelModel):
    users: List[UserRow]
    pagination: Pagination


class UserDetailResponse(CamelModel):
    user: UserRow


class DivisionNode(DivisionRef):
    description: Optional[str] = None
    is_active: bool


class OrganizationalUnitNode(CamelModel):
    id: int
    name: str
    code: str
    description: Optional[str] = None
    is_active: bool
    divisions: List[DivisionNode]


class OrganizationalStructureResponse(CamelModel):
    organizational_units: List[OrganizationalUnitNode]
