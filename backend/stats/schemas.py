# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic response models for the statistics endpoints."""

from typing import List

from core.schemas import ActivityLogRow, CamelModel, Pagination


class GroupCount(CamelModel):
    key: str
    count: int


class UserStats(CamelModel):
    total: int
    active: int
    inactive: int
    by_role: List[GroupCount]


class CredentialStats(CamelModel):
    total: int
    active: int
    inactive: int
    expiring: int
    by_category: List[GroupCount]


class StructureStats(CamelModel):
    organizational_units: int
    divisions: int


class DashboardStatistics(CamelModel):
    users: UserStats
    credentials: CredentialStats
    structure: StructureStats
    recent_activity: List[ActivityLogRow]


class DashboardResponse(CamelModel):
    statistics: DashboardStatistics


class ActivityResponse(CamelModel):
    logs: List[ActivityLogRow]
    pagination: Pagination
