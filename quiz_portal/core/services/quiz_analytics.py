"""Aggregate views over quizzes and attempts for dashboards and result pages."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from quiz_portal.constants.quiz_constants import SCORE_BUCKETS
from quiz_portal.core.models import Attempt, Quiz
from quiz_portal.core.scoring import round_percentage


@dataclass(slots=True)
class ScoreBucket:
    """Number of completed attempts whose score falls in a band."""

    label: str
    count: int


@dataclass(slots=True)
class QuestionStats:
    """Correctness of one question across completed attempts."""

    question_number: int
    question_id: str
    question_text: str
    correct_count: int
    total_answered: int
    correct_percentage: int


@dataclass(slots=True)
class QuizSummary:
    """Attempt counts and average score for a single quiz."""

    quiz_id: str
    title: str
    attempts: int
    completed: int
    average_score: int


def progress_percent(attempt: Attempt, quiz: Quiz) -> int:
    """Share of the quiz's questions the attempt has answered."""
    question_ids = {question.id for question in quiz.questions}
    answered = sum(1 for answer in attempt.answers if answer.question_id in question_ids)
    return round_percentage(answered, len(quiz.questions))


def unanswered_question_ids(attempt: Attempt, quiz: Quiz) -> list[str]:
    answered = {answer.question_id for answer in attempt.answers}
    return [question.id for question in quiz.questions if question.id not in answered]


def completed_attempts(attempts: Iterable[Attempt]) -> list[Attempt]:
    return [attempt for attempt in attempts if attempt.is_completed]


def in_progress_attempts(attempts: Iterable[Attempt]) -> list[Attempt]:
    return [attempt for attempt in attempts if not attempt.is_completed]


def average_score(attempts: Iterable[Attempt]) -> int:
    """Rounded mean score of the completed attempts, 0 when there are none."""
    scores = [attempt.score for attempt in completed_attempts(attempts)]
    return round_percentage(sum(scores), 100 * len(scores)) if scores else 0


def score_distribution(attempts: Iterable[Attempt]) -> list[ScoreBucket]:
    buckets = [ScoreBucket(label=label, count=0) for label, _ in SCORE_BUCKETS]
    for attempt in completed_attempts(attempts):
        for bucket, (_, upper) in zip(buckets, SCORE_BUCKETS):
            if attempt.score <= upper:
                bucket.count += 1
                break
    return buckets


def question_analysis(quiz: Quiz, attempts: Iterable[Attempt]) -> list[QuestionStats]:
    """Per-question correctness; the percentage is relative to students who answered."""
    finished = completed_attempts(attempts)
    stats: list[QuestionStats] = []
    for number, question in enumerate(quiz.questions, start=1):
        correct = 0
        answered = 0
        for attempt in finished:
            answer = next((a for a in attempt.answers if a.question_id == question.id), None)
            if answer is None:
                continue
            answered += 1
            if answer.selected_option == question.correct_answer:
                correct += 1
        stats.append(
            QuestionStats(
                question_number=number,
                question_id=question.id,
                question_text=question.text,
                correct_count=correct,
                total_answered=answered,
                correct_percentage=round_percentage(correct, answered),
            )
        )
    return stats


def quiz_summary(quiz: Quiz, attempts: Iterable[Attempt]) -> QuizSummary:
    relevant = [attempt for attempt in attempts if attempt.quiz_id == quiz.id]
    return QuizSummary(
        quiz_id=quiz.id,
        title=quiz.title,
        attempts=len(relevant),
        completed=len(completed_attempts(relevant)),
        average_score=average_score(relevant),
    )


def performance_label(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Average"
    return "Needs Improvement"
