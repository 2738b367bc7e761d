# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Shared pydantic bases and response shapes used by several routers."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON field names are camelCase on the wire, snake_case in Python."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class MessageResponse(CamelModel):
    detail: str


class DivisionRef(CamelModel):
    id: int
    name: str
    code: str


class OrganizationalUnitRef(CamelModel):
    id: int
    name: str
    code: str


class UserSummary(CamelModel):
    id: int
    username: str
    email: str
    role: str


class UserProfile(UserSummary):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    organizational_units: List[OrganizationalUnitRef] = []
    divisions: List[DivisionRef] = []


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


def paginate(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, pages=-(-total // limit))


class ActivityLogRow(CamelModel):
    id: int
    user_id: int
    username: Optional[str] = None
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    details: Optional[Any] = None
    ip_address: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_row(cls, row) -> "ActivityLogRow":
        return cls(
            id=row.id,
            user_id=row.user_id,
            username=row.user.username if row.user else None,
            action=row.action,
            resource_type=row.resource_type,
            resource_id=row.resource_id,
            details=row.details,
            ip_address=row.ip_address,
            timestamp=row.timestamp,
        )
