"""Service recording student attempts and finalizing them with a score."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime, timezone
import logging
from uuid import uuid4

from quiz_portal.core.errors import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from quiz_portal.core.models import Attempt, AttemptAnswer, Completed, InProgress, Quiz
from quiz_portal.core.scoring import calculate_score
from quiz_portal.core.services.data_store import ATTEMPTS, InMemoryDataStore, Row, StoreError
from quiz_portal.core.services.quiz_catalog import QuizCatalog

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def merge_answer(
    answers: Iterable[AttemptAnswer], question_id: str, selected_option: int
) -> tuple[AttemptAnswer, ...]:
    """Replace the answer for ``question_id`` in place, or append it."""
    merged = list(answers)
    replacement = AttemptAnswer(question_id=question_id, selected_option=selected_option)
    for index, answer in enumerate(merged):
        if answer.question_id == question_id:
            merged[index] = replacement
            return tuple(merged)
    merged.append(replacement)
    return tuple(merged)


def dedupe_answers(answers: Iterable[AttemptAnswer]) -> tuple[AttemptAnswer, ...]:
    """Keep one answer per question id; later entries win."""
    result: tuple[AttemptAnswer, ...] = ()
    for answer in answers:
        result = merge_answer(result, answer.question_id, answer.selected_option)
    return result


class AttemptLedger:
    """Tracks attempts from start to completion.

    Starting an attempt does not check that the quiz is published; callers
    resolve the quiz by access code first, which only returns published ones.
    """

    def __init__(
        self,
        store: InMemoryDataStore,
        catalog: QuizCatalog,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._clock = clock

    def start_attempt(self, quiz_id: str, student_id: str, student_name: str) -> Attempt:
        self._catalog.get_quiz(quiz_id)
        attempt = Attempt(
            id=uuid4().hex,
            quiz_id=quiz_id,
            student_id=student_id,
            student_name=student_name.strip() or student_id,
            started_at=self._clock(),
        )
        try:
            self._store.insert(ATTEMPTS, [_attempt_to_row(attempt)])
        except StoreError as exc:
            raise PersistenceError(f"Could not start attempt: {exc}") from exc
        logger.info("Student %s started attempt %s on quiz %s", student_id, attempt.id, quiz_id)
        return attempt

    def record_answer(self, attempt_id: str, question_id: str, selected_option: int) -> Attempt:
        """Upsert a single answer; the score is untouched until finalization."""
        attempt = self.get_attempt(attempt_id)
        if attempt.is_completed:
            raise InvalidStateError("Attempt has already been submitted.")
        quiz = self._catalog.get_quiz(attempt.quiz_id)
        _validate_selection(quiz, question_id, selected_option)

        attempt.status = InProgress(
            answers=merge_answer(attempt.status.answers, question_id, selected_option)
        )
        self._save(attempt)
        return attempt

    def finalize_attempt(self, attempt_id: str, answers: Iterable[AttemptAnswer]) -> Attempt:
        """Score the submitted answers and mark the attempt completed."""
        attempt = self.get_attempt(attempt_id)
        if attempt.is_completed:
            raise InvalidStateError("Attempt has already been submitted.")
        quiz = self._catalog.get_quiz(attempt.quiz_id)
        submitted = dedupe_answers(answers)

        attempt.status = Completed(
            answers=submitted,
            score=calculate_score(submitted, quiz.questions),
            completed_at=self._clock(),
        )
        self._save(attempt)
        logger.info(
            "Attempt %s on quiz %s completed with score %d%%",
            attempt.id,
            attempt.quiz_id,
            attempt.score,
        )
        return attempt

    def get_attempt(self, attempt_id: str) -> Attempt:
        rows = self._store.select(ATTEMPTS, id=attempt_id)
        if not rows:
            raise NotFoundError(f"Attempt '{attempt_id}' does not exist.")
        return _row_to_attempt(rows[0])

    def list_by_student(self, student_id: str) -> list[Attempt]:
        return [_row_to_attempt(row) for row in self._store.select(ATTEMPTS, student_id=student_id)]

    def list_by_quiz(self, quiz_id: str) -> list[Attempt]:
        return [_row_to_attempt(row) for row in self._store.select(ATTEMPTS, quiz_id=quiz_id)]

    def find_in_progress(self, quiz_id: str, student_id: str) -> Attempt | None:
        """Most recently started unfinished attempt of this student on this quiz."""
        candidates = [
            attempt
            for attempt in (
                _row_to_attempt(row)
                for row in self._store.select(ATTEMPTS, quiz_id=quiz_id, student_id=student_id)
            )
            if not attempt.is_completed
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda attempt: attempt.started_at)

    def _save(self, attempt: Attempt) -> None:
        row = _attempt_to_row(attempt)
        try:
            updated = self._store.update(
                ATTEMPTS,
                {key: row[key] for key in ("answers", "completed_at", "score")},
                id=attempt.id,
            )
        except StoreError as exc:
            raise PersistenceError(f"Could not save attempt: {exc}") from exc
        if not updated:
            # quiz deleted concurrently, attempt cascaded away
            raise NotFoundError(f"Attempt '{attempt.id}' does not exist.")


def _validate_selection(quiz: Quiz, question_id: str, selected_option: int) -> None:
    question = next((q for q in quiz.questions if q.id == question_id), None)
    if question is None:
        raise ValidationError(f"Question '{question_id}' is not part of this quiz.")
    if isinstance(selected_option, bool) or not isinstance(selected_option, int):
        raise ValidationError("Selected option must be an integer index.")
    if not 0 <= selected_option < len(question.options):
        raise ValidationError(
            f"Selected option must be between 0 and {len(question.options) - 1}."
        )


def _attempt_to_row(attempt: Attempt) -> Row:
    return {
        "id": attempt.id,
        "quiz_id": attempt.quiz_id,
        "student_id": attempt.student_id,
        "student_name": attempt.student_name,
        "started_at": attempt.started_at,
        "completed_at": attempt.completed_at,
        "answers": [
            {"question_id": answer.question_id, "selected_option": answer.selected_option}
            for answer in attempt.answers
        ],
        "score": attempt.score,
    }


def _row_to_attempt(row: Row) -> Attempt:
    answers = tuple(
        AttemptAnswer(question_id=item["question_id"], selected_option=item["selected_option"])
        for item in row["answers"]
    )
    if row["completed_at"] is None:
        status = InProgress(answers=answers)
    else:
        status = Completed(answers=answers, score=row["score"], completed_at=row["completed_at"])
    return Attempt(
        id=row["id"],
        quiz_id=row["quiz_id"],
        student_id=row["student_id"],
        student_name=row["student_name"],
        started_at=row["started_at"],
        status=status,
    )
