"""Badge service tests: catalog sync, milestone evaluation, duplicate prevention."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models import Badge
from academy.rewards.badge_service import BadgeService
from academy.rewards.milestones import BADGE_MILESTONES, BadgeMilestone, MilestoneType
from academy.users.service import UserCounters

FAST_LEARNER = BadgeMilestone(
    key="fast-learner",
    name="Fast Learner",
    description="Complete 5 lessons.",
    type=MilestoneType.LESSONS_COMPLETED,
    threshold=5,
)


class TestEnsureCatalog:
    """Catalog reconciliation against the milestone config."""

    @pytest.mark.asyncio
    async def test_creates_missing_badges(self, db_session: AsyncSession):
        catalog = await BadgeService(db_session).ensure_catalog()

        assert set(catalog) == {m.key for m in BADGE_MILESTONES}
        rows = (await db_session.execute(select(Badge))).scalars().all()
        assert len(rows) == len(BADGE_MILESTONES)

    @pytest.mark.asyncio
    async def test_idempotent(self, db_session: AsyncSession):
        svc = BadgeService(db_session)
        first = await svc.ensure_catalog()
        second = await svc.ensure_catalog()
        assert {k: b.id for k, b in first.items()} == {k: b.id for k, b in second.items()}

    @pytest.mark.asyncio
    async def test_updates_drifted_display_fields(self, db_session: AsyncSession):
        db_session.add(Badge(key="lessons_1", name="Old name", description="Old", icon=None))
        await db_session.commit()

        catalog = await BadgeService(db_session).ensure_catalog()

        badge = catalog["lessons_1"]
        assert badge.name == "First Lesson"
        assert badge.description == "Complete your first lesson."
        assert badge.icon is not None

    @pytest.mark.asyncio
    async def test_leaves_unconfigured_badges(self, db_session: AsyncSession):
        db_session.add(Badge(key="retired", name="Retired", description="No longer awarded"))
        await db_session.commit()

        await BadgeService(db_session).ensure_catalog()

        retired = await db_session.scalar(select(Badge).where(Badge.key == "retired"))
        assert retired is not None

    @pytest.mark.asyncio
    async def test_list_milestone_badges_sorted_by_name(self, db_session: AsyncSession):
        badges = await BadgeService(db_session).list_milestone_badges()
        names = [b.name for b in badges]
        assert names == sorted(names)
        assert len(badges) == len(BADGE_MILESTONES)


class TestEvaluate:
    """Milestone evaluation and awarding."""

    @pytest.mark.asyncio
    async def test_awards_at_threshold_once(self, db_session: AsyncSession, make_user):
        user = await make_user()
        svc = BadgeService(db_session, milestones=[FAST_LEARNER])

        assert await svc.evaluate(user.id, UserCounters(4, 0, 40)) == []

        awarded = await svc.evaluate(user.id, UserCounters(5, 0, 50))
        assert [b.key for b in awarded] == ["fast-learner"]

        assert await svc.evaluate(user.id, UserCounters(6, 0, 60)) == []
        assert await svc.earned_keys(user.id) == {"fast-learner"}

    @pytest.mark.asyncio
    async def test_multiple_badges_in_one_call(self, db_session: AsyncSession, make_user):
        user = await make_user()
        svc = BadgeService(db_session)

        awarded = await svc.evaluate(user.id, UserCounters(5, 1, 0))
        assert {b.key for b in awarded} == {"lessons_1", "lessons_5", "courses_1"}

    @pytest.mark.asyncio
    async def test_grant_duplicate_returns_false(self, db_session: AsyncSession, make_user):
        user = await make_user()
        svc = BadgeService(db_session)
        catalog = await svc.ensure_catalog()

        assert await svc.grant(user.id, catalog["lessons_1"]) is True
        assert await svc.grant(user.id, catalog["lessons_1"]) is False

        earned = await svc.list_earned(user.id)
        assert [ub.badge.key for ub in earned] == ["lessons_1"]

    @pytest.mark.asyncio
    async def test_list_earned_oldest_first(self, db_session: AsyncSession, make_user):
        user = await make_user()
        svc = BadgeService(db_session)
        catalog = await svc.ensure_catalog()
        await svc.grant(user.id, catalog["courses_1"])
        await svc.grant(user.id, catalog["lessons_1"])

        earned = await svc.list_earned(user.id)
        assert [ub.badge.key for ub in earned] == ["courses_1", "lessons_1"]


class TestBadgeEarnedEvent:
    """Redis notification on award."""

    @pytest.mark.asyncio
    async def test_publishes_on_award(self, db_session: AsyncSession, make_user):
        user = await make_user()
        redis = AsyncMock()
        svc = BadgeService(db_session, redis=redis, milestones=[FAST_LEARNER])

        await svc.evaluate(user.id, UserCounters(5, 0, 0))

        redis.publish.assert_awaited_once()
        channel, payload = redis.publish.await_args.args
        assert channel == "pubsub:badge_earned"
        assert json.loads(payload)["badge_key"] == "fast-learner"
        assert json.loads(payload)["user_id"] == user.id

    @pytest.mark.asyncio
    async def test_no_publish_on_duplicate(self, db_session: AsyncSession, make_user):
        user = await make_user()
        redis = AsyncMock()
        svc = BadgeService(db_session, redis=redis, milestones=[FAST_LEARNER])
        catalog = await svc.ensure_catalog()

        await svc.grant(user.id, catalog["fast-learner"])
        await svc.grant(user.id, catalog["fast-learner"])
        assert redis.publish.await_count == 1

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_block_award(self, db_session: AsyncSession, make_user):
        user = await make_user()
        redis = AsyncMock()
        redis.publish.side_effect = ConnectionError("redis down")
        svc = BadgeService(db_session, redis=redis, milestones=[FAST_LEARNER])
        catalog = await svc.ensure_catalog()

        assert await svc.grant(user.id, catalog["fast-learner"]) is True
        assert await svc.earned_keys(user.id) == {"fast-learner"}
