from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    error: str


class UsageStats(BaseModel):
    total_conversions: int
    recent_conversions: int
    change_percent: float
    success_rate: float


class ActivityItem(BaseModel):
    type: str
    from_format: str
    to_format: str
    status: str
    file_name: str
    created_at: datetime


class StatusSummary(BaseModel):
    successful: int
    failed: int
    total: int


class DashboardStats(BaseModel):
    stats: UsageStats
    conversions_by_type: dict[str, int] = Field(default_factory=dict)
    recent_activity: list[ActivityItem] = Field(default_factory=list)
    summary: StatusSummary


__all__ = [
    "ActivityItem",
    "DashboardStats",
    "ErrorResponse",
    "HealthStatus",
    "StatusSummary",
    "UsageStats",
]
