"""Pydantic request/response models for reward endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from academy.rewards.ledger import ActivityType


# --- Progress ---


class UpdateProgressRequest(BaseModel):
    lessons_completed_delta: int | None = Field(None, ge=0)
    courses_completed_delta: int | None = Field(None, ge=0)
    activity_id: str | None = Field(None, min_length=1, max_length=128)
    activity_type: ActivityType | None = None


class ProgressCounters(BaseModel):
    lessons_completed: int
    courses_completed: int
    points: int


# --- Badge ---


class BadgeResponse(BaseModel):
    id: int
    key: str
    name: str
    description: str
    icon: str | None = None


class EarnedBadgeResponse(BaseModel):
    badge: BadgeResponse
    awarded_at: datetime


class ProgressResponse(BaseModel):
    progress: ProgressCounters
    newly_awarded: list[BadgeResponse]
    points_earned: int


# --- Ledger ---


class RewardHistoryEntry(BaseModel):
    activity_type: str
    activity_id: str
    points: int
    awarded_at: datetime


class RewardHistoryResponse(BaseModel):
    entries: list[RewardHistoryEntry]
    total: int
    page: int
    per_page: int
