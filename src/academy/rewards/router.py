"""Reward endpoints: progress updates, earned badges, milestones, ledger history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from academy.auth.dependencies import get_current_user, is_admin
from academy.config import get_settings
from academy.database import get_session
from academy.db.models import Badge, User
from academy.errors import PermissionDenied
from academy.redis_client import get_redis_or_none
from academy.rewards.badge_service import BadgeService
from academy.rewards.ledger import RewardLedger
from academy.rewards.progress_service import ProgressService, validate_progress_request
from academy.rewards.schemas import (
    BadgeResponse,
    EarnedBadgeResponse,
    ProgressCounters,
    ProgressResponse,
    RewardHistoryEntry,
    RewardHistoryResponse,
    UpdateProgressRequest,
)

router = APIRouter(prefix="/api/v1/rewards", tags=["Rewards"])


def _badge_response(badge: Badge) -> BadgeResponse:
    return BadgeResponse(
        id=badge.id,
        key=badge.key,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
    )


@router.post("/progress", response_model=ProgressResponse)
async def update_progress(
    body: UpdateProgressRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Record lesson/course progress, award points once per activity and any new badges."""
    validate_progress_request(
        body.lessons_completed_delta,
        body.courses_completed_delta,
        body.activity_id,
        body.activity_type,
        max_delta=get_settings().max_progress_delta,
    )

    svc = ProgressService(db, redis=get_redis_or_none())
    result = await svc.update_progress_and_award_badges(
        user_id=user.id,
        lessons_completed_delta=body.lessons_completed_delta,
        courses_completed_delta=body.courses_completed_delta,
        activity_id=body.activity_id,
        activity_type=body.activity_type,
    )
    await db.commit()

    return ProgressResponse(
        progress=ProgressCounters(**result.progress._asdict()),
        newly_awarded=[_badge_response(b) for b in result.newly_awarded],
        points_earned=result.points_earned,
    )


@router.get("/badges", response_model=list[EarnedBadgeResponse])
async def get_earned_badges(
    user_id: int | None = Query(None, description="Admins only: another user's badges"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Badges earned by the current user, oldest first."""
    target_id = user.id
    if user_id is not None and user_id != user.id:
        if not is_admin(user):
            raise PermissionDenied("You can only view your own badges")
        target_id = user_id

    earned = await BadgeService(db).list_earned(target_id)
    return [
        EarnedBadgeResponse(badge=_badge_response(ub.badge), awarded_at=ub.awarded_at)
        for ub in earned
    ]


@router.get("/milestones", response_model=list[BadgeResponse])
async def get_badge_milestones(db: AsyncSession = Depends(get_session)):
    """All milestone badges, by name. Reconciles the badge catalog as a side effect."""
    badges = await BadgeService(db).list_milestone_badges()
    await db.commit()
    return [_badge_response(b) for b in badges]


@router.get("/history", response_model=RewardHistoryResponse)
async def get_reward_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Points ledger for the current user (paginated, newest first)."""
    entries, total = await RewardLedger(db).history(user.id, page=page, per_page=per_page)
    return RewardHistoryResponse(
        entries=[
            RewardHistoryEntry(
                activity_type=e.activity_type,
                activity_id=e.activity_id,
                points=e.points,
                awarded_at=e.awarded_at,
            )
            for e in entries
        ],
        total=total,
        page=page,
        per_page=per_page,
    )
