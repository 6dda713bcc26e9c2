"""Service for authoring quizzes and resolving them by id or access code."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import logging
from typing import Any
from uuid import uuid4

from quiz_portal.constants.quiz_constants import (
    MAX_CODE_GENERATION_TRIES,
    MAX_OPTIONS_PER_QUESTION,
    MIN_OPTIONS_PER_QUESTION,
)
from quiz_portal.core.access_codes import (
    AccessCodeGenerator,
    normalize_code,
    validate_manual_code,
)
from quiz_portal.core.errors import (
    CollisionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from quiz_portal.core.models import Question, Quiz, QuizDraft
from quiz_portal.core.services.data_store import (
    QUESTIONS,
    QUIZZES,
    InMemoryDataStore,
    Row,
    StoreError,
)

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({"title", "description", "code", "is_published", "questions"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizCatalog:
    """Owns quizzes and their ordered questions inside the data store."""

    def __init__(
        self,
        store: InMemoryDataStore,
        code_generator: AccessCodeGenerator | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._codes = code_generator or AccessCodeGenerator()
        self._clock = clock

    # --- Writes ---

    def create_quiz(self, owner_id: str, draft: QuizDraft, code: str | None = None) -> Quiz:
        """Validate and persist a new quiz together with its questions.

        Without an explicit ``code`` a unique one is generated. Nothing is
        written when validation fails.
        """
        title = self._validate_title(draft.title)
        questions = self._prepare_questions(draft.questions)
        if code is None:
            code = self._generate_unique_code()
        else:
            code = validate_manual_code(code)
            self._ensure_code_available(code)

        quiz = Quiz(
            id=uuid4().hex,
            title=title,
            description=draft.description.strip(),
            created_by=owner_id,
            created_at=self._clock(),
            code=code,
            questions=questions,
            is_published=draft.is_published,
        )
        try:
            self._store.insert(QUIZZES, [_quiz_to_row(quiz)])
        except StoreError as exc:
            raise PersistenceError(f"Could not save quiz: {exc}") from exc
        try:
            self._store.insert(QUESTIONS, _questions_to_rows(quiz.id, questions))
        except StoreError as exc:
            logger.warning("Removing quiz %s after its questions failed to save", quiz.id)
            self._store.delete(QUIZZES, id=quiz.id)
            raise PersistenceError(f"Could not save quiz questions: {exc}") from exc

        logger.info("Created quiz %s (%s) with code %s", quiz.id, quiz.title, quiz.code)
        return quiz

    def update_quiz(self, quiz_id: str, **fields: Any) -> Quiz:
        """Apply the provided fields; ``questions`` replaces the whole question set."""
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}.")
        current = self.get_quiz(quiz_id)

        values: Row = {}
        if "title" in fields:
            values["title"] = self._validate_title(fields["title"])
        if "description" in fields:
            values["description"] = (fields["description"] or "").strip()
        if "is_published" in fields:
            values["is_published"] = bool(fields["is_published"])
        if "code" in fields:
            code = validate_manual_code(fields["code"])
            if code != current.code:
                self._ensure_code_available(code)
                values["code"] = code
        new_questions = None
        if "questions" in fields:
            new_questions = self._prepare_questions(fields["questions"])

        # Questions first: the replace undoes itself on failure, and the
        # previous rows are put back if the quiz row update fails afterwards.
        previous_questions = None
        if new_questions is not None:
            previous_questions = self._replace_questions(quiz_id, new_questions)
        if values:
            try:
                self._store.update(QUIZZES, values, id=quiz_id)
            except StoreError as exc:
                if previous_questions is not None:
                    logger.warning("Restoring previous questions of quiz %s after failed update", quiz_id)
                    self._restore_questions(quiz_id, previous_questions)
                raise PersistenceError(f"Could not update quiz: {exc}") from exc

        logger.info("Updated quiz %s (%s)", quiz_id, ", ".join(sorted(fields)) or "no fields")
        return self.get_quiz(quiz_id)

    def delete_quiz(self, quiz_id: str) -> None:
        """Delete a quiz; its questions and every attempt on it go with it."""
        try:
            removed = self._store.delete(QUIZZES, id=quiz_id)
        except StoreError as exc:
            raise PersistenceError(f"Could not delete quiz: {exc}") from exc
        if not removed:
            raise NotFoundError(f"Quiz '{quiz_id}' does not exist.")
        logger.info("Deleted quiz %s with its questions and attempts", quiz_id)

    # --- Reads ---

    def get_quiz(self, quiz_id: str) -> Quiz:
        rows = self._store.select(QUIZZES, id=quiz_id)
        if not rows:
            raise NotFoundError(f"Quiz '{quiz_id}' does not exist.")
        return self._hydrate(rows[0])

    def get_by_code(self, code: str) -> Quiz | None:
        """Return the published quiz with this code, or None."""
        normalized = normalize_code(code)
        if not normalized:
            return None
        rows = self._store.select(QUIZZES, code=normalized, is_published=True)
        return self._hydrate(rows[0]) if rows else None

    def list_for_owner(self, owner_id: str) -> list[Quiz]:
        return [self._hydrate(row) for row in self._store.select(QUIZZES, created_by=owner_id)]

    def list_published(self) -> list[Quiz]:
        return [self._hydrate(row) for row in self._store.select(QUIZZES, is_published=True)]

    def code_in_use(self, code: str) -> bool:
        return bool(self._store.select(QUIZZES, code=normalize_code(code)))

    # --- Helpers ---

    def _generate_unique_code(self) -> str:
        for _ in range(MAX_CODE_GENERATION_TRIES):
            candidate = self._codes.generate()
            if not self.code_in_use(candidate):
                return candidate
            logger.debug("Generated code %s already in use, retrying", candidate)
        raise CollisionError("Could not generate an unused quiz code.")

    def _ensure_code_available(self, code: str) -> None:
        if self.code_in_use(code):
            raise CollisionError(f"Quiz code '{code}' is already in use.")

    def _replace_questions(self, quiz_id: str, questions: list[Question]) -> list[Row]:
        """Swap the question rows of a quiz and return the rows that were replaced."""
        previous = self._store.select(QUESTIONS, quiz_id=quiz_id)
        try:
            self._store.delete(QUESTIONS, quiz_id=quiz_id)
            self._store.insert(QUESTIONS, _questions_to_rows(quiz_id, questions))
        except StoreError as exc:
            logger.warning("Restoring previous questions of quiz %s after failed replace", quiz_id)
            self._restore_questions(quiz_id, previous)
            raise PersistenceError(f"Could not replace quiz questions: {exc}") from exc
        return previous

    def _restore_questions(self, quiz_id: str, rows: list[Row]) -> None:
        self._store.delete(QUESTIONS, quiz_id=quiz_id)
        self._store.insert(QUESTIONS, rows)

    def _hydrate(self, row: Row) -> Quiz:
        question_rows = sorted(
            self._store.select(QUESTIONS, quiz_id=row["id"]),
            key=lambda question_row: question_row["position"],
        )
        return Quiz(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            created_by=row["created_by"],
            created_at=row["created_at"],
            code=row["code"],
            questions=[
                Question(
                    id=question_row["id"],
                    text=question_row["text"],
                    options=list(question_row["options"]),
                    correct_answer=question_row["correct_answer"],
                )
                for question_row in question_rows
            ],
            is_published=row["is_published"],
        )

    @staticmethod
    def _validate_title(title: str | None) -> str:
        cleaned = (title or "").strip()
        if not cleaned:
            raise ValidationError("Quiz title must not be empty.")
        return cleaned

    def _prepare_questions(self, questions: list[Question] | None) -> list[Question]:
        """Validate and normalize questions; ids are assigned when missing."""
        if not questions:
            raise ValidationError("Quiz must contain at least one question.")
        prepared: list[Question] = []
        seen_ids: set[str] = set()
        for number, question in enumerate(questions, start=1):
            cleaned = self._prepare_question(number, question)
            if cleaned.id in seen_ids:
                raise ValidationError(f"Question {number}: duplicate question id '{cleaned.id}'.")
            seen_ids.add(cleaned.id)
            prepared.append(cleaned)
        return prepared

    @staticmethod
    def _prepare_question(number: int, question: Question) -> Question:
        text = (question.text or "").strip()
        if not text:
            raise ValidationError(f"Question {number}: question text must not be empty.")
        if len(question.options) < MIN_OPTIONS_PER_QUESTION:
            raise ValidationError(
                f"Question {number}: at least {MIN_OPTIONS_PER_QUESTION} options are required."
            )
        if len(question.options) > MAX_OPTIONS_PER_QUESTION:
            raise ValidationError(
                f"Question {number}: at most {MAX_OPTIONS_PER_QUESTION} options are allowed."
            )
        options = [(option or "").strip() for option in question.options]
        for index, option in enumerate(options):
            if not option:
                raise ValidationError(f"Question {number}: option {index + 1} must not be empty.")
        correct = question.correct_answer
        if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(options):
            raise ValidationError(f"Question {number}: a valid correct option must be selected.")
        return Question(
            id=(question.id or "").strip() or uuid4().hex,
            text=text,
            options=options,
            correct_answer=correct,
        )


def _quiz_to_row(quiz: Quiz) -> Row:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "created_by": quiz.created_by,
        "created_at": quiz.created_at,
        "code": quiz.code,
        "is_published": quiz.is_published,
    }


def _questions_to_rows(quiz_id: str, questions: list[Question]) -> list[Row]:
    return [
        {
            "id": question.id,
            "quiz_id": quiz_id,
            "position": position,
            "text": question.text,
            "options": list(question.options),
            "correct_answer": question.correct_answer,
        }
        for position, question in enumerate(questions)
    ]
