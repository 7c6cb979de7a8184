"""Pydantic request/response models for quiz and attempt endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, StrictInt, StrictStr


# --- Quiz ---


class QuestionResponse(BaseModel):
    id: int
    question_text: str
    question_type: str
    options: list[str] = []
    order: int


class QuizResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    lesson_id: str | None = None
    passing_score: int
    time_limit_minutes: int
    max_attempts: int
    questions: list[QuestionResponse]


# --- Attempt ---


# Option ids may arrive as JSON numbers; scoring compares them as strings
AnswerValue = StrictStr | StrictInt


class SubmitAttemptRequest(BaseModel):
    answers: dict[str, list[AnswerValue] | AnswerValue] = {}


class AttemptResponse(BaseModel):
    id: str
    user_id: int
    quiz_id: str
    attempt_number: int
    score: float
    is_passed: bool
    status: str
    answers: dict[str, Any] = {}
    start_time: datetime
    end_time: datetime | None = None
