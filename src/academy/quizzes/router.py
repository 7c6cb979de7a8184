"""Quiz detail and attempt lifecycle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from academy.auth.dependencies import get_current_user, is_admin
from academy.database import get_session
from academy.db.models import QuizAttempt, User
from academy.errors import NotFoundError, PermissionDenied
from academy.quizzes.attempt_service import AttemptService, as_utc
from academy.quizzes.catalog import QuizCatalog
from academy.quizzes.schemas import (
    AttemptResponse,
    QuestionResponse,
    QuizResponse,
    SubmitAttemptRequest,
)

router = APIRouter(prefix="/api/v1", tags=["Quizzes"])


def _attempt_response(attempt: QuizAttempt) -> AttemptResponse:
    return AttemptResponse(
        id=attempt.id,
        user_id=attempt.user_id,
        quiz_id=attempt.quiz_id,
        attempt_number=attempt.attempt_number,
        score=attempt.score,
        is_passed=attempt.is_passed,
        status=attempt.status,
        answers=attempt.answers or {},
        start_time=as_utc(attempt.start_time),
        end_time=as_utc(attempt.end_time) if attempt.end_time else None,
    )


def _ensure_can_read(user: User, attempt: QuizAttempt) -> None:
    if attempt.user_id != user.id and not is_admin(user):
        raise PermissionDenied("You do not have access to this quiz attempt")


# ── Quiz catalog ──


@router.get("/quizzes/{quiz_id}", response_model=QuizResponse)
async def get_quiz(quiz_id: str, db: AsyncSession = Depends(get_session)):
    """Quiz detail with questions. Correct answers are never exposed."""
    quiz = await QuizCatalog(db).get_quiz(quiz_id)
    if quiz is None:
        raise NotFoundError(f"Quiz with ID {quiz_id} not found")

    return QuizResponse(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        lesson_id=quiz.lesson_id,
        passing_score=quiz.passing_score,
        time_limit_minutes=quiz.time_limit_minutes,
        max_attempts=quiz.max_attempts,
        questions=[
            QuestionResponse(
                id=q.id,
                question_text=q.question_text,
                question_type=q.question_type,
                options=list(q.options or []),
                order=q.order,
            )
            for q in quiz.questions
        ],
    )


# ── Attempts ──


@router.post("/quizzes/{quiz_id}/attempts", response_model=AttemptResponse, status_code=201)
async def start_attempt(
    quiz_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Start a new attempt. 404 for unknown quiz, 400 once max_attempts is reached."""
    attempt = await AttemptService(db).start_attempt(user.id, quiz_id)
    await db.commit()
    return _attempt_response(attempt)


@router.get("/quizzes/{quiz_id}/attempts", response_model=list[AttemptResponse])
async def list_attempts(
    quiz_id: str,
    user_id: int | None = Query(None, description="Admins only: list another user's attempts"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Attempt history for a quiz, most recent attempt first."""
    target_id = user.id
    if user_id is not None and user_id != user.id:
        if not is_admin(user):
            raise PermissionDenied("You can only list your own attempts")
        target_id = user_id

    attempts = await AttemptService(db).list_attempts(target_id, quiz_id)
    return [_attempt_response(a) for a in attempts]


@router.get("/attempts/{attempt_id}", response_model=AttemptResponse)
async def get_attempt(
    attempt_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Fetch one attempt (owner or admin)."""
    attempt = await AttemptService(db).get_attempt(attempt_id)
    _ensure_can_read(user, attempt)
    return _attempt_response(attempt)


@router.post("/attempts/{attempt_id}/submit", response_model=AttemptResponse)
async def submit_attempt(
    attempt_id: str,
    body: SubmitAttemptRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Submit answers. 400 if the attempt was already submitted."""
    svc = AttemptService(db)
    attempt = await svc.get_attempt(attempt_id)
    if attempt.user_id != user.id:
        raise PermissionDenied("You can only submit your own quiz attempts")

    attempt = await svc.submit_attempt(attempt_id, body.answers)
    await db.commit()
    return _attempt_response(attempt)


@router.post("/attempts/{attempt_id}/expire", response_model=AttemptResponse)
async def expire_attempt(
    attempt_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Close the attempt as timed_out if its time limit has passed."""
    svc = AttemptService(db)
    attempt = await svc.get_attempt(attempt_id)
    _ensure_can_read(user, attempt)

    attempt = await svc.expire_attempt(attempt_id)
    await db.commit()
    return _attempt_response(attempt)
