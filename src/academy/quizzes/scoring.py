"""Quiz scoring engine: pure mapping of (quiz, answers) to (score, passed).

A question counts as correct only when the submitted answer set equals
the correct-answer set exactly. Order and duplicates do not matter.
Missing answers are wrong, unknown question ids are ignored. The score is
the equal-weight percentage of correct questions.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

QUESTION_MULTIPLE_CHOICE = "multiple_choice"
QUESTION_TRUE_FALSE = "true_false"
QUESTION_TEXT = "text"


@dataclass(frozen=True)
class QuestionDefinition:
    """Read-only view of a quiz question."""

    id: str
    text: str
    correct_answers: frozenset[str]
    options: tuple[str, ...] = ()
    question_type: str = QUESTION_MULTIPLE_CHOICE


@dataclass(frozen=True)
class QuizDefinition:
    """Read-only quiz configuration consumed by the attempt engine."""

    id: str
    questions: tuple[QuestionDefinition, ...]
    passing_score_percent: int
    time_limit_minutes: int
    max_attempts: int


class ScoreResult(NamedTuple):
    score_percent: float
    is_passed: bool


def _as_answer_set(submitted: Any) -> frozenset[str]:  # noqa: ANN401
    """Coerce a submitted answer (single value or list) to a set of strings."""
    if submitted is None:
        return frozenset()
    if isinstance(submitted, str):
        return frozenset({submitted})
    if isinstance(submitted, Iterable):
        return frozenset(str(item) for item in submitted if item is not None)
    return frozenset({str(submitted)})


def _normalize_text(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.strip().lower() for v in values)


def is_correct(question: QuestionDefinition, submitted: Any) -> bool:  # noqa: ANN401
    """Check one question. Free-text answers compare trimmed and case-insensitive."""
    answers = _as_answer_set(submitted)
    if not answers:
        return False
    if question.question_type == QUESTION_TEXT:
        return _normalize_text(answers) == _normalize_text(question.correct_answers)
    return answers == question.correct_answers


def score_answers(quiz: QuizDefinition, answers: Mapping[Any, Any] | None) -> ScoreResult:
    """Score submitted answers against the quiz definition.

    A quiz without questions scores 0.
    """
    submitted = {str(k): v for k, v in (answers or {}).items()}
    total = len(quiz.questions)
    if total == 0:
        return ScoreResult(0.0, 0.0 >= quiz.passing_score_percent)

    correct = sum(1 for q in quiz.questions if is_correct(q, submitted.get(q.id)))
    score = 100.0 * correct / total
    return ScoreResult(score, score >= quiz.passing_score_percent)
