# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the repository endpoints."""

from datetime import datetime
from typing import List, Optional

from core.schemas import CamelModel, DivisionRef


# -- Requests --------------------------------------------------------------
# The client sends the *plaintext* password; the server seals it before
# persisting.  Empty strings are rejected by the service with field errors.


class CredentialCreate(CamelModel):
    title: str = ""
    category: Optional[str] = None
    url: str = ""
    username: str = ""
    password: str = ""
    notes: Optional[str] = None
    tags: List[str] = []
    expires_at: Optional[datetime] = None


class CredentialUpdate(CamelModel):
    # Only fields present in the request body are applied
    title: Optional[str] = None
    category: Optional[str] = None
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    expires_at: Optional[datetime] = None


# -- Responses -------------------------------------------------------------
# ``password`` is the sealed value everywhere except the /access endpoint.


class CredentialSummary(CamelModel):
    id: int
    division_id: int
    title: str
    category: str
    url: str
    username: str
    notes: Optional[str] = None
    tags: List[str] = []
    last_accessed: Optional[datetime] = None
    access_count: int
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CredentialOut(CredentialSummary):
    password: str
    created_by: Optional[int] = None
    last_updated_by: Optional[int] = None


class CredentialResponse(CamelModel):
    credential: CredentialOut


class RepositoryOut(CamelModel):
    id: int
    division: DivisionRef
    version: int
    credentials: List[CredentialOut]
    updated_at: datetime


class RepositoryResponse(CamelModel):
    repository: RepositoryOut


class AccessibleDivisionsResponse(CamelModel):
    divisions: List[DivisionRef]


class SearchHit(CredentialSummary):
    division_name: str


class SearchResponse(CamelModel):
    credentials: List[SearchHit]
    total: int
