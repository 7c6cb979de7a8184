"""Progress/reward service: counters, idempotent points and badge awards.

Two entry paths:

* per-activity (``activity_id`` + ``activity_type``): the ledger decides.
  First call for the activity pays the fixed per-type reward and implies
  one completed unit; any repeat is a no-op.
* bulk adjustment (no activity): points follow the deltas directly and
  nothing is recorded in the ledger. Callers on this path are trusted.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from academy.config import Settings, get_settings
from academy.db.models import Badge
from academy.errors import InvalidProgressUpdate, NotFoundError
from academy.rewards.badge_service import BadgeService
from academy.rewards.ledger import ActivityType, RewardLedger
from academy.rewards.milestones import BADGE_MILESTONES, BadgeMilestone
from academy.users.service import UserCounters, get_counters, increment_counters, lock_user

logger = structlog.get_logger()


@dataclass
class ProgressResult:
    progress: UserCounters
    newly_awarded: list[Badge]
    points_earned: int


def validate_progress_request(
    lessons_completed_delta: int | None,
    courses_completed_delta: int | None,
    activity_id: str | None,
    activity_type: ActivityType | None,
    max_delta: int,
) -> None:
    """Reject requests that would change nothing or are malformed.

    Runs at the API boundary, before the service is invoked.
    """
    lessons = lessons_completed_delta or 0
    courses = courses_completed_delta or 0

    if lessons < 0 or courses < 0:
        raise InvalidProgressUpdate("Progress deltas must not be negative")
    if lessons > max_delta or courses > max_delta:
        raise InvalidProgressUpdate(f"Progress deltas must not exceed {max_delta}")
    if activity_id and activity_type is None:
        raise InvalidProgressUpdate("activity_type is required when activity_id is given")
    if lessons <= 0 and courses <= 0 and not activity_id:
        raise InvalidProgressUpdate(
            "Provide lessons_completed_delta, courses_completed_delta > 0, or an activity_id"
        )


class ProgressService:
    """Applies progress deltas, pays points once per activity and awards badges."""

    def __init__(
        self,
        db: AsyncSession,
        redis: object | None = None,
        milestones: Sequence[BadgeMilestone] = BADGE_MILESTONES,
        settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.ledger = RewardLedger(db)
        self.badges = BadgeService(db, redis=redis, milestones=milestones)

    def points_for(self, activity_type: ActivityType) -> int:
        if activity_type is ActivityType.LESSON:
            return self.settings.points_per_lesson
        if activity_type is ActivityType.COURSE:
            return self.settings.points_per_course
        msg = f"Unknown activity type: {activity_type!r}"
        raise ValueError(msg)

    async def update_progress_and_award_badges(
        self,
        user_id: int,
        lessons_completed_delta: int | None = None,
        courses_completed_delta: int | None = None,
        activity_id: str | None = None,
        activity_type: ActivityType | str | None = None,
    ) -> ProgressResult:
        """Apply one progress update inside the caller's transaction."""
        if not await lock_user(self.db, user_id):
            raise NotFoundError(f"User with ID {user_id} not found")

        lessons = max(lessons_completed_delta or 0, 0)
        courses = max(courses_completed_delta or 0, 0)
        points = 0

        if activity_id and activity_type:
            activity = ActivityType(activity_type)
            already = await self.ledger.has_awarded(user_id, activity, activity_id)
            if not already:
                points = self.points_for(activity)
                if activity is ActivityType.LESSON and lessons == 0:
                    lessons = 1
                elif activity is ActivityType.COURSE and courses == 0:
                    courses = 1
                # A concurrent call may have written the entry since the check
                already = not await self.ledger.record_award(user_id, activity, activity_id, points)
            if already:
                lessons = courses = points = 0
                logger.info("reward_duplicate_ignored", user_id=user_id, activity_type=activity.value, activity_id=activity_id)
        else:
            points = lessons * self.settings.points_per_lesson + courses * self.settings.points_per_course

        await increment_counters(self.db, user_id, lessons=lessons, courses=courses, points=points)

        counters = await get_counters(self.db, user_id)
        newly_awarded = await self.badges.evaluate(user_id, counters)

        progress = await get_counters(self.db, user_id)
        logger.info(
            "progress_updated",
            user_id=user_id,
            lessons_delta=lessons,
            courses_delta=courses,
            points_earned=points,
            badges=[b.key for b in newly_awarded],
        )
        return ProgressResult(progress=progress, newly_awarded=newly_awarded, points_earned=points)
