"""Reward ledger tests: one entry per activity, paginated history."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models import RewardHistory
from academy.rewards.ledger import ActivityType, RewardLedger


class TestRecordAward:

    @pytest.mark.asyncio
    async def test_first_award_recorded(self, db_session: AsyncSession, make_user):
        user = await make_user()
        ledger = RewardLedger(db_session)

        assert await ledger.has_awarded(user.id, ActivityType.LESSON, "lesson-1") is False
        assert await ledger.record_award(user.id, ActivityType.LESSON, "lesson-1", 10) is True
        assert await ledger.has_awarded(user.id, ActivityType.LESSON, "lesson-1") is True

    @pytest.mark.asyncio
    async def test_duplicate_award_returns_false(self, db_session: AsyncSession, make_user):
        user = await make_user()
        ledger = RewardLedger(db_session)

        await ledger.record_award(user.id, ActivityType.LESSON, "lesson-1", 10)
        assert await ledger.record_award(user.id, ActivityType.LESSON, "lesson-1", 10) is False

        count = await db_session.scalar(
            select(func.count()).select_from(RewardHistory).where(RewardHistory.user_id == user.id)
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_same_id_different_type_is_separate(self, db_session: AsyncSession, make_user):
        user = await make_user()
        ledger = RewardLedger(db_session)

        assert await ledger.record_award(user.id, ActivityType.LESSON, "intro", 10) is True
        assert await ledger.record_award(user.id, ActivityType.COURSE, "intro", 50) is True

    @pytest.mark.asyncio
    async def test_same_activity_different_users(self, db_session: AsyncSession, make_user):
        alice = await make_user(display_name="alice")
        bob = await make_user(display_name="bob")
        ledger = RewardLedger(db_session)

        assert await ledger.record_award(alice.id, ActivityType.LESSON, "lesson-1", 10) is True
        assert await ledger.record_award(bob.id, ActivityType.LESSON, "lesson-1", 10) is True


class TestHistory:

    @pytest.mark.asyncio
    async def test_newest_first_with_total(self, db_session: AsyncSession, make_user):
        user = await make_user()
        ledger = RewardLedger(db_session)
        for i in range(5):
            await ledger.record_award(user.id, ActivityType.LESSON, f"lesson-{i}", 10)

        entries, total = await ledger.history(user.id, page=1, per_page=2)
        assert total == 5
        assert [e.activity_id for e in entries] == ["lesson-4", "lesson-3"]

        entries, _ = await ledger.history(user.id, page=3, per_page=2)
        assert [e.activity_id for e in entries] == ["lesson-0"]

    @pytest.mark.asyncio
    async def test_empty(self, db_session: AsyncSession, make_user):
        user = await make_user()
        entries, total = await RewardLedger(db_session).history(user.id)
        assert entries == []
        assert total == 0
