"""Reward ledger: one points entry per (user, activity type, activity id)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models import RewardHistory

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    LESSON = "lesson"
    COURSE = "course"


class RewardLedger:
    """Idempotency boundary for per-activity point awards."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def has_awarded(self, user_id: int, activity_type: ActivityType, activity_id: str) -> bool:
        result = await self.db.execute(
            select(RewardHistory.id).where(
                RewardHistory.user_id == user_id,
                RewardHistory.activity_type == activity_type.value,
                RewardHistory.activity_id == activity_id,
            )
        )
        return result.first() is not None

    async def record_award(
        self,
        user_id: int,
        activity_type: ActivityType,
        activity_id: str,
        points: int,
    ) -> bool:
        """Write the ledger entry. Returns False if a concurrent call already wrote it.

        The UNIQUE constraint on the triple is the authoritative signal; the
        insert runs in a SAVEPOINT so losing the race leaves the caller's
        transaction intact.
        """
        entry = RewardHistory(
            user_id=user_id,
            activity_type=activity_type.value,
            activity_id=activity_id,
            points=points,
            awarded_at=datetime.now(timezone.utc),
        )
        try:
            async with self.db.begin_nested():
                self.db.add(entry)
        except IntegrityError:
            logger.info(
                "Reward for %s %s already recorded for user %s (concurrent award)",
                activity_type.value, activity_id, user_id,
            )
            return False

        logger.info("Recorded %d points for %s %s, user %s", points, activity_type.value, activity_id, user_id)
        return True

    async def history(self, user_id: int, page: int = 1, per_page: int = 50) -> tuple[list[RewardHistory], int]:
        """Paginated ledger entries, newest first, with the total count."""
        total_result = await self.db.execute(
            select(func.count()).select_from(RewardHistory).where(RewardHistory.user_id == user_id)
        )
        total = total_result.scalar_one()

        result = await self.db.execute(
            select(RewardHistory)
            .where(RewardHistory.user_id == user_id)
            .order_by(RewardHistory.awarded_at.desc(), RewardHistory.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total
