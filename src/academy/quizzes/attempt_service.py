"""Attempt lifecycle manager: start, submit, expire, get and list attempts.

State machine per attempt:

    in_progress -> completed   (submitted within the time limit)
    in_progress -> timed_out   (submitted late, or expired by an explicit check)

Both end states are terminal. An attempt is written once at creation and
once at the transition; it is never touched again.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models import QuizAttempt
from academy.errors import AlreadySubmitted, AttemptConflict, AttemptLimitExceeded, NotFoundError
from academy.quizzes.attempt_store import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_TIMED_OUT,
    AttemptStore,
)
from academy.quizzes.catalog import QuizCatalog
from academy.quizzes.scoring import QuizDefinition, score_answers

logger = structlog.get_logger()


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_overdue(quiz: QuizDefinition, start_time: datetime, now: datetime) -> bool:
    """True when the quiz has a time limit and more than that much time has elapsed."""
    if quiz.time_limit_minutes <= 0:
        return False
    elapsed = as_utc(now) - as_utc(start_time)
    return elapsed > timedelta(minutes=quiz.time_limit_minutes)


class AttemptService:
    """Orchestrates attempt state transitions over the catalog and the attempt store."""

    def __init__(
        self,
        db: AsyncSession,
        catalog: QuizCatalog | None = None,
        store: AttemptStore | None = None,
    ) -> None:
        self.db = db
        self.catalog = catalog or QuizCatalog(db)
        self.store = store or AttemptStore(db)

    async def _require_quiz(self, quiz_id: str) -> QuizDefinition:
        quiz = await self.catalog.find_quiz(quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz with ID {quiz_id} not found")
        return quiz

    async def start_attempt(self, user_id: int, quiz_id: str) -> QuizAttempt:
        """Open a new in_progress attempt numbered after the user's previous ones."""
        quiz = await self._require_quiz(quiz_id)

        previous = await self.store.count_for(user_id, quiz_id)
        if previous >= quiz.max_attempts:
            raise AttemptLimitExceeded(
                f"Maximum allowed attempts ({quiz.max_attempts}) reached for this quiz"
            )

        try:
            attempt = await self.store.create(
                user_id=user_id,
                quiz_id=quiz_id,
                attempt_number=previous + 1,
                start_time=datetime.now(timezone.utc),
            )
        except IntegrityError:
            # Lost the race for this attempt number to a concurrent start
            current = await self.store.count_for(user_id, quiz_id)
            logger.warning("attempt_start_conflict", user_id=user_id, quiz_id=quiz_id, attempts=current)
            if current >= quiz.max_attempts:
                raise AttemptLimitExceeded(
                    f"Maximum allowed attempts ({quiz.max_attempts}) reached for this quiz"
                ) from None
            raise AttemptConflict("Another attempt for this quiz was started at the same time") from None

        logger.info(
            "attempt_started",
            attempt_id=attempt.id,
            user_id=user_id,
            quiz_id=quiz_id,
            attempt_number=attempt.attempt_number,
        )
        return attempt

    async def get_attempt(self, attempt_id: str) -> QuizAttempt:
        """Read-only fetch. Never evaluates the time limit."""
        attempt = await self.store.get(attempt_id)
        if attempt is None:
            raise NotFoundError(f"Quiz attempt with ID {attempt_id} not found")
        return attempt

    async def list_attempts(self, user_id: int, quiz_id: str) -> list[QuizAttempt]:
        return await self.store.list_for(user_id, quiz_id)

    async def submit_attempt(self, attempt_id: str, answers: dict[str, Any] | None) -> QuizAttempt:
        """Score and close an in_progress attempt.

        A late submission is forfeit: status becomes timed_out and the score
        stays 0 regardless of the answers.
        """
        attempt = await self.get_attempt(attempt_id)
        if attempt.status != STATUS_IN_PROGRESS:
            raise AlreadySubmitted("This quiz attempt has already been submitted")

        quiz = await self._require_quiz(attempt.quiz_id)
        answers = {str(k): v for k, v in (answers or {}).items()}
        now = datetime.now(timezone.utc)

        if is_overdue(quiz, attempt.start_time, now):
            status, score, passed = STATUS_TIMED_OUT, 0.0, False
        else:
            result = score_answers(quiz, answers)
            status, score, passed = STATUS_COMPLETED, result.score_percent, result.is_passed

        if not await self.store.finalize(attempt, status, score, passed, answers, now):
            raise AlreadySubmitted("This quiz attempt has already been submitted")

        logger.info(
            "attempt_timed_out" if status == STATUS_TIMED_OUT else "attempt_submitted",
            attempt_id=attempt.id,
            user_id=attempt.user_id,
            quiz_id=attempt.quiz_id,
            score=score,
            is_passed=passed,
        )
        return attempt

    async def expire_attempt(self, attempt_id: str) -> QuizAttempt:
        """Explicit timeout check: close an overdue in_progress attempt as timed_out.

        Attempts that are not overdue, or already terminal, come back unchanged.
        """
        attempt = await self.get_attempt(attempt_id)
        if attempt.status != STATUS_IN_PROGRESS:
            return attempt

        quiz = await self._require_quiz(attempt.quiz_id)
        now = datetime.now(timezone.utc)
        if not is_overdue(quiz, attempt.start_time, now):
            return attempt

        if await self.store.finalize(attempt, STATUS_TIMED_OUT, 0.0, False, attempt.answers or {}, now):
            logger.info("attempt_timed_out", attempt_id=attempt.id, user_id=attempt.user_id, quiz_id=attempt.quiz_id)
        return attempt
