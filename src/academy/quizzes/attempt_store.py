"""Persistence for quiz attempts."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models import QuizAttempt

STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_TIMED_OUT = "timed_out"


class AttemptStore:
    """Attempt rows keyed by id, queried per (user, quiz)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(
        self,
        user_id: int,
        quiz_id: str,
        attempt_number: int,
        start_time: datetime,
    ) -> QuizAttempt:
        """Insert a fresh in_progress attempt inside a SAVEPOINT.

        Raises IntegrityError when the (user, quiz, attempt_number) slot was
        taken concurrently; the savepoint keeps the outer transaction usable.
        """
        attempt = QuizAttempt(
            user_id=user_id,
            quiz_id=quiz_id,
            attempt_number=attempt_number,
            score=0.0,
            is_passed=False,
            status=STATUS_IN_PROGRESS,
            answers={},
            start_time=start_time,
        )
        async with self.db.begin_nested():
            self.db.add(attempt)
        return attempt

    async def get(self, attempt_id: str) -> QuizAttempt | None:
        return await self.db.get(QuizAttempt, attempt_id)

    async def count_for(self, user_id: int, quiz_id: str) -> int:
        result = await self.db.execute(
            select(func.count(QuizAttempt.id)).where(
                QuizAttempt.user_id == user_id,
                QuizAttempt.quiz_id == quiz_id,
            )
        )
        return result.scalar() or 0

    async def list_for(self, user_id: int, quiz_id: str) -> list[QuizAttempt]:
        """All attempts for the pair, most recent attempt number first."""
        result = await self.db.execute(
            select(QuizAttempt)
            .where(
                QuizAttempt.user_id == user_id,
                QuizAttempt.quiz_id == quiz_id,
            )
            .order_by(QuizAttempt.attempt_number.desc())
        )
        return list(result.scalars().all())

    async def finalize(
        self,
        attempt: QuizAttempt,
        status: str,
        score: float,
        is_passed: bool,
        answers: dict[str, Any],
        end_time: datetime,
    ) -> bool:
        """Move an attempt out of in_progress exactly once.

        The UPDATE is conditional on the row still being in_progress, so of
        two concurrent submits only one can match. Returns False for the
        loser. Either way the instance is refreshed from the row.
        """
        result = await self.db.execute(
            update(QuizAttempt)
            .where(
                QuizAttempt.id == attempt.id,
                QuizAttempt.status == STATUS_IN_PROGRESS,
            )
            .values(
                status=status,
                score=score,
                is_passed=is_passed,
                answers=answers,
                end_time=end_time,
            )
        )
        await self.db.refresh(attempt)
        return result.rowcount == 1
