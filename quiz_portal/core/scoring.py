"""Score calculation for submitted attempts."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from quiz_portal.core.models import AttemptAnswer, Question


def round_percentage(part: int, whole: int) -> int:
    """Return ``part / whole`` as a percentage rounded half-up, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def calculate_score(answers: Iterable[AttemptAnswer], questions: Sequence[Question]) -> int:
    """Percentage of the quiz's questions answered correctly.

    The denominator is the number of questions, so unanswered questions count
    as wrong. Answers for unknown question ids are ignored, and only the last
    answer per question id counts.
    """
    selected = {answer.question_id: answer.selected_option for answer in answers}
    correct = sum(
        1
        for question in questions
        if selected.get(question.id) == question.correct_answer
    )
    return round_percentage(correct, len(questions))
