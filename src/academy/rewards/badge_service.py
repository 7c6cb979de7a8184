"""Badge catalog reconciliation and milestone-based badge awards."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models import Badge, UserBadge
from academy.rewards.milestones import BADGE_MILESTONES, BadgeMilestone, newly_qualified
from academy.users.service import UserCounters

logger = logging.getLogger(__name__)


class BadgeService:
    """Keeps the badge catalog in line with the milestone config and awards badges."""

    def __init__(
        self,
        db: AsyncSession,
        redis: object | None = None,
        milestones: Sequence[BadgeMilestone] = BADGE_MILESTONES,
    ) -> None:
        self.db = db
        self.redis = redis
        self.milestones = tuple(milestones)

    async def ensure_catalog(self) -> dict[str, Badge]:
        """Create missing milestone badges and update drifted display fields.

        Idempotent; runs at the start of every catalog read. Badges whose
        milestone was removed are left in place.
        """
        keys = [m.key for m in self.milestones]
        result = await self.db.execute(select(Badge).where(Badge.key.in_(keys)))
        catalog = {b.key: b for b in result.scalars()}

        created = updated = 0
        for milestone in self.milestones:
            badge = catalog.get(milestone.key)
            if badge is None:
                catalog[milestone.key] = await self._create_badge(milestone)
                created += 1
                continue

            if (
                badge.name != milestone.name
                or badge.description != milestone.description
                or badge.icon != milestone.icon
            ):
                badge.name = milestone.name
                badge.description = milestone.description
                badge.icon = milestone.icon
                updated += 1

        if created or updated:
            await self.db.flush()
            logger.info("Badge catalog synced: %d created, %d updated", created, updated)
        return catalog

    async def _create_badge(self, milestone: BadgeMilestone) -> Badge:
        badge = Badge(
            key=milestone.key,
            name=milestone.name,
            description=milestone.description,
            icon=milestone.icon,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(badge)
        except IntegrityError:
            # Another request created it first
            result = await self.db.execute(select(Badge).where(Badge.key == milestone.key))
            return result.scalar_one()
        return badge

    async def list_milestone_badges(self) -> list[Badge]:
        """Catalog badges for the configured milestones, ordered by name."""
        catalog = await self.ensure_catalog()
        return sorted(catalog.values(), key=lambda b: b.name)

    async def list_earned(self, user_id: int) -> list[UserBadge]:
        """Badges a user has earned, oldest first."""
        result = await self.db.execute(
            select(UserBadge)
            .where(UserBadge.user_id == user_id)
            .order_by(UserBadge.awarded_at.asc(), UserBadge.id.asc())
        )
        return list(result.scalars().unique().all())

    async def earned_keys(self, user_id: int) -> set[str]:
        result = await self.db.execute(
            select(Badge.key)
            .join(UserBadge, UserBadge.badge_id == Badge.id)
            .where(UserBadge.user_id == user_id)
        )
        return set(result.scalars().all())

    async def evaluate(self, user_id: int, counters: UserCounters) -> list[Badge]:
        """Award every milestone badge the counters now satisfy.

        Returns only the badges inserted by this call.
        """
        catalog = await self.ensure_catalog()
        earned = await self.earned_keys(user_id)

        awarded: list[Badge] = []
        for milestone in newly_qualified(counters, self.milestones, earned):
            badge = catalog[milestone.key]
            if await self.grant(user_id, badge):
                awarded.append(badge)
        return awarded

    async def grant(self, user_id: int, badge: Badge) -> bool:
        """Insert the user_badges row. Returns False if the user already holds it."""
        try:
            async with self.db.begin_nested():
                self.db.add(UserBadge(
                    user_id=user_id,
                    badge_id=badge.id,
                    badge=badge,
                    awarded_at=datetime.now(timezone.utc),
                ))
        except IntegrityError:
            logger.warning("Badge %s already awarded to user %s (concurrent award)", badge.key, user_id)
            return False

        logger.info("Badge %s awarded to user %s", badge.key, user_id)
        await self._emit_badge_earned(user_id, badge)
        return True

    async def _emit_badge_earned(self, user_id: int, badge: Badge) -> None:
        """Publish the award for the notification service (Redis pub/sub)."""
        if self.redis is None:
            return
        try:
            await self.redis.publish(  # type: ignore[attr-defined]
                "pubsub:badge_earned",
                json.dumps({
                    "user_id": user_id,
                    "badge_key": badge.key,
                    "badge_name": badge.name,
                    "icon": badge.icon,
                }),
            )
        except Exception:
            logger.warning("Failed to publish badge_earned notification", exc_info=True)
