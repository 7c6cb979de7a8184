"""Scoring engine tests: exact-set matching, percentages and pass threshold."""

from __future__ import annotations

import pytest

from academy.quizzes.scoring import (
    QUESTION_TEXT,
    QUESTION_TRUE_FALSE,
    QuestionDefinition,
    QuizDefinition,
    is_correct,
    score_answers,
)


def _quiz(*questions: QuestionDefinition, passing: int = 60) -> QuizDefinition:
    return QuizDefinition(
        id="quiz-1",
        questions=tuple(questions),
        passing_score_percent=passing,
        time_limit_minutes=0,
        max_attempts=3,
    )


Q1 = QuestionDefinition(id="1", text="What is 2 + 2?", correct_answers=frozenset({"4"}), options=("3", "4", "5"))
Q2 = QuestionDefinition(
    id="2",
    text="Select all prime numbers",
    correct_answers=frozenset({"2", "3", "5", "7"}),
    options=("2", "3", "4", "5", "6", "7"),
)


class TestIsCorrect:
    """Per-question matching."""

    def test_exact_single_answer(self):
        assert is_correct(Q1, ["4"]) is True

    def test_bare_string_answer(self):
        assert is_correct(Q1, "4") is True

    def test_numeric_answers_compare_as_strings(self):
        assert is_correct(Q1, [4]) is True
        assert is_correct(Q2, [2, 3, 5, 7]) is True

    def test_order_and_duplicates_do_not_matter(self):
        assert is_correct(Q2, ["7", "5", "3", "2", "2"]) is True

    def test_superset_is_wrong(self):
        assert is_correct(Q2, ["2", "3", "4", "5", "7"]) is False

    def test_subset_is_wrong(self):
        assert is_correct(Q2, ["2", "3", "5"]) is False

    def test_missing_or_empty_is_wrong(self):
        assert is_correct(Q1, None) is False
        assert is_correct(Q1, []) is False

    def test_true_false_compares_exactly(self):
        q = QuestionDefinition(
            id="3", text="The sky is green", correct_answers=frozenset({"false"}),
            options=("true", "false"), question_type=QUESTION_TRUE_FALSE,
        )
        assert is_correct(q, ["false"]) is True
        assert is_correct(q, ["False"]) is False

    def test_text_answers_ignore_case_and_whitespace(self):
        q = QuestionDefinition(
            id="4", text="Capital of France?", correct_answers=frozenset({"Paris"}),
            question_type=QUESTION_TEXT,
        )
        assert is_correct(q, "  paris ") is True
        assert is_correct(q, ["PARIS"]) is True
        assert is_correct(q, "Lyon") is False


class TestScoreAnswers:
    """Whole-quiz scoring."""

    def test_all_correct_scores_100(self):
        result = score_answers(_quiz(Q1, Q2), {"1": ["4"], "2": ["2", "3", "5", "7"]})
        assert result.score_percent == 100.0
        assert result.is_passed is True

    def test_none_correct_scores_0(self):
        result = score_answers(_quiz(Q1, Q2), {"1": ["3"], "2": ["4"]})
        assert result.score_percent == 0.0
        assert result.is_passed is False

    def test_half_correct_below_threshold_fails(self):
        result = score_answers(_quiz(Q1, Q2), {"1": ["4"], "2": ["2"]})
        assert result.score_percent == 50.0
        assert result.is_passed is False

    def test_passing_at_exact_threshold(self):
        result = score_answers(_quiz(Q1, Q2, passing=50), {"1": ["4"]})
        assert result.score_percent == 50.0
        assert result.is_passed is True

    def test_thirds_are_not_rounded(self):
        q3 = QuestionDefinition(id="3", text="1 + 1?", correct_answers=frozenset({"2"}))
        result = score_answers(_quiz(Q1, Q2, q3), {"1": ["4"]})
        assert result.score_percent == pytest.approx(100.0 / 3)

    def test_unknown_question_ids_are_ignored(self):
        result = score_answers(_quiz(Q1, Q2), {"1": ["4"], "2": ["2", "3", "5", "7"], "99": ["x"]})
        assert result.score_percent == 100.0

    def test_integer_keys_are_normalized(self):
        result = score_answers(_quiz(Q1, Q2), {1: ["4"], 2: ["2", "3", "5", "7"]})
        assert result.score_percent == 100.0

    def test_no_answers(self):
        assert score_answers(_quiz(Q1, Q2), None).score_percent == 0.0
        assert score_answers(_quiz(Q1, Q2), {}).score_percent == 0.0

    def test_quiz_without_questions_scores_0(self):
        result = score_answers(_quiz(passing=60), {"1": ["4"]})
        assert result.score_percent == 0.0
        assert result.is_passed is False

    def test_quiz_without_questions_and_zero_threshold_passes(self):
        assert score_answers(_quiz(passing=0), {}).is_passed is True

    @pytest.mark.parametrize(
        "answers",
        [
            {},
            {"1": ["4"]},
            {"2": ["2", "3", "5", "7"]},
            {"1": ["3", "4"], "2": ["2", "3", "5", "7", "9"]},
            {"1": "4", "2": ["7", "5", "3", "2"]},
        ],
    )
    def test_score_is_always_a_percentage(self, answers):
        result = score_answers(_quiz(Q1, Q2), answers)
        assert 0.0 <= result.score_percent <= 100.0
        assert result.is_passed == (result.score_percent >= 60)
