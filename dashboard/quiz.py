"""Quiz answer scoring."""

import math
from typing import List, Optional

from dashboard.models import QuizQuestion, QuizResult


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_quiz(answers: List[Optional[str]], questions: List[QuizQuestion]) -> QuizResult:
    """
    Grade a submitted quiz.

    An answer counts when it equals the question's correct answer at the
    same position; unanswered or surplus positions count as wrong.

    Raises:
        ValueError: if there are no questions to grade
    """
    if not questions:
        raise ValueError("Quiz has no questions")

    correct = sum(
        1 for index, question in enumerate(questions)
        if index < len(answers) and answers[index] == question.correct_answer
    )
    score = round_half_up(correct / len(questions) * 100)

    return QuizResult(
        score=score,
        correct_answers=correct,
        total_questions=len(questions),
        percentage=score
    )
