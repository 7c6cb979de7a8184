"""Quiz catalog accessor: read-only lookup of quiz configuration."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models import Quiz
from academy.quizzes.scoring import QuestionDefinition, QuizDefinition


def to_definition(quiz: Quiz) -> QuizDefinition:
    """Snapshot an ORM quiz (with questions loaded) as an immutable definition."""
    return QuizDefinition(
        id=quiz.id,
        questions=tuple(
            QuestionDefinition(
                id=str(q.id),
                text=q.question_text,
                correct_answers=frozenset(str(a) for a in (q.correct_answer or [])),
                options=tuple(q.options or ()),
                question_type=q.question_type,
            )
            for q in quiz.questions
        ),
        passing_score_percent=quiz.passing_score,
        time_limit_minutes=quiz.time_limit_minutes,
        max_attempts=quiz.max_attempts,
    )


class QuizCatalog:
    """Looks up quizzes and their questions."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_quiz(self, quiz_id: str) -> Quiz | None:
        """Fetch the ORM row with questions eagerly loaded."""
        result = await self.db.execute(select(Quiz).where(Quiz.id == quiz_id))
        return result.scalar_one_or_none()

    async def find_quiz(self, quiz_id: str) -> QuizDefinition | None:
        quiz = await self.get_quiz(quiz_id)
        if quiz is None:
            return None
        return to_definition(quiz)
