"""Business logic shared by the API layer: identity gates over the quiz services."""

from __future__ import annotations

from collections.abc import Iterable
import logging
from threading import Lock
from typing import Any

from quiz_portal.core.access_codes import AccessCodeGenerator
from quiz_portal.core.errors import AuthorizationError, CollisionError, NotFoundError
from quiz_portal.core.models import Attempt, AttemptAnswer, Quiz, QuizDraft, UserIdentity
from quiz_portal.core.quiz_exporter import serialize_questions
from quiz_portal.core.quiz_importer import parse_quiz_text
from quiz_portal.core.sample_data import DEMO_TEACHER_ID, SAMPLE_QUIZZES
from quiz_portal.core.services import quiz_analytics
from quiz_portal.core.services.attempt_ledger import AttemptLedger
from quiz_portal.core.services.data_store import InMemoryDataStore
from quiz_portal.core.services.quiz_catalog import QuizCatalog

logger = logging.getLogger(__name__)


class QuizManager:
    """Facade for quiz services: Catalog, Ledger and Analytics."""

    def __init__(
        self,
        store: InMemoryDataStore | None = None,
        code_generator: AccessCodeGenerator | None = None,
    ) -> None:
        self._lock = Lock()

        # Services
        self._store = store or InMemoryDataStore()
        self._catalog = QuizCatalog(self._store, code_generator=code_generator)
        self._ledger = AttemptLedger(self._store, self._catalog)

    # --- Quiz Catalog Delegation ---

    def create_quiz(self, user: UserIdentity, draft: QuizDraft) -> Quiz:
        _require_teacher(user)
        with self._lock:
            return self._catalog.create_quiz(user.id, draft)

    def import_quiz(
        self,
        user: UserIdentity,
        title: str,
        text: str,
        description: str = "",
        is_published: bool = False,
    ) -> Quiz:
        _require_teacher(user)
        imported = parse_quiz_text(text)
        draft = QuizDraft(
            title=title,
            description=description,
            questions=imported.questions,
            is_published=is_published,
        )
        with self._lock:
            return self._catalog.create_quiz(user.id, draft)

    def export_quiz(self, user: UserIdentity, quiz_id: str) -> str:
        with self._lock:
            quiz = self._owned_quiz(user, quiz_id)
        return serialize_questions(quiz.questions)

    def update_quiz(self, user: UserIdentity, quiz_id: str, **fields: Any) -> Quiz:
        with self._lock:
            self._owned_quiz(user, quiz_id)
            return self._catalog.update_quiz(quiz_id, **fields)

    def delete_quiz(self, user: UserIdentity, quiz_id: str) -> None:
        with self._lock:
            self._owned_quiz(user, quiz_id)
            self._catalog.delete_quiz(quiz_id)

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            return self._catalog.get_quiz(quiz_id)

    def find_quiz_by_code(self, code: str) -> Quiz | None:
        with self._lock:
            quiz = self._catalog.get_by_code(code)
        if quiz is None:
            logger.info("No published quiz for code %r", code)
        return quiz

    def list_my_quizzes(self, user: UserIdentity) -> list[Quiz]:
        _require_teacher(user)
        with self._lock:
            return self._catalog.list_for_owner(user.id)

    def list_published_quizzes(self) -> list[Quiz]:
        with self._lock:
            return self._catalog.list_published()

    # --- Attempt Ledger Delegation ---

    def start_attempt(self, user: UserIdentity, quiz_id: str, resume: bool = False) -> Attempt:
        """Begin a new attempt, or continue the latest unfinished one when ``resume`` is set.

        Unpublished quizzes are hidden from everyone but their owner.
        """
        with self._lock:
            quiz = self._catalog.get_quiz(quiz_id)
            if not quiz.is_published and quiz.created_by != user.id:
                raise NotFoundError(f"Quiz '{quiz_id}' does not exist.")
            if resume:
                existing = self._ledger.find_in_progress(quiz_id, user.id)
                if existing is not None:
                    return existing
            return self._ledger.start_attempt(quiz_id, user.id, user.name)

    def record_answer(
        self, user: UserIdentity, attempt_id: str, question_id: str, selected_option: int
    ) -> Attempt:
        with self._lock:
            self._own_attempt(user, attempt_id)
            return self._ledger.record_answer(attempt_id, question_id, selected_option)

    def submit_attempt(
        self, user: UserIdentity, attempt_id: str, answers: Iterable[AttemptAnswer] | None = None
    ) -> Attempt:
        """Finalize an attempt. Without ``answers`` the recorded ones are scored."""
        with self._lock:
            attempt = self._own_attempt(user, attempt_id)
            submitted = attempt.answers if answers is None else list(answers)
            return self._ledger.finalize_attempt(attempt_id, submitted)

    def get_attempt(self, user: UserIdentity, attempt_id: str) -> tuple[Attempt, Quiz]:
        """Return an attempt with its quiz, for its student or the quiz owner."""
        with self._lock:
            attempt = self._ledger.get_attempt(attempt_id)
            quiz = self._catalog.get_quiz(attempt.quiz_id)
        if attempt.student_id != user.id and quiz.created_by != user.id:
            raise AuthorizationError("This attempt belongs to another student.")
        return attempt, quiz

    def list_my_attempts(self, user: UserIdentity) -> list[Attempt]:
        with self._lock:
            return self._ledger.list_by_student(user.id)

    def list_quiz_attempts(self, user: UserIdentity, quiz_id: str) -> list[Attempt]:
        with self._lock:
            self._owned_quiz(user, quiz_id)
            return self._ledger.list_by_quiz(quiz_id)

    # --- Analytics ---

    def quiz_results(self, user: UserIdentity, quiz_id: str) -> dict[str, object]:
        with self._lock:
            quiz = self._owned_quiz(user, quiz_id)
            attempts = self._ledger.list_by_quiz(quiz_id)
        completed = quiz_analytics.completed_attempts(attempts)
        return {
            "quiz": quiz,
            "summary": quiz_analytics.quiz_summary(quiz, attempts),
            "distribution": quiz_analytics.score_distribution(completed),
            "questions": quiz_analytics.question_analysis(quiz, completed),
            "attempts": sorted(completed, key=lambda attempt: -attempt.score),
        }

    def owner_summaries(self, user: UserIdentity) -> list[quiz_analytics.QuizSummary]:
        _require_teacher(user)
        with self._lock:
            quizzes = self._catalog.list_for_owner(user.id)
            attempts_by_quiz = {quiz.id: self._ledger.list_by_quiz(quiz.id) for quiz in quizzes}
        return [quiz_analytics.quiz_summary(quiz, attempts_by_quiz[quiz.id]) for quiz in quizzes]

    # --- Demo data ---

    def seed_demo_quizzes(self) -> list[Quiz]:
        """Create the sample quizzes unless their codes are already taken."""
        created: list[Quiz] = []
        with self._lock:
            for code, draft in SAMPLE_QUIZZES:
                try:
                    created.append(self._catalog.create_quiz(DEMO_TEACHER_ID, draft, code=code))
                except CollisionError:
                    logger.info("Demo quiz %s already present, skipping", code)
        return created

    # --- Guards ---

    def _owned_quiz(self, user: UserIdentity, quiz_id: str) -> Quiz:
        _require_teacher(user)
        quiz = self._catalog.get_quiz(quiz_id)
        if quiz.created_by != user.id:
            raise AuthorizationError("Only the quiz owner may do this.")
        return quiz

    def _own_attempt(self, user: UserIdentity, attempt_id: str) -> Attempt:
        attempt = self._ledger.get_attempt(attempt_id)
        if attempt.student_id != user.id:
            raise AuthorizationError("This attempt belongs to another student.")
        return attempt


def _require_teacher(user: UserIdentity) -> None:
    if not user.is_teacher:
        raise AuthorizationError("Only teachers can manage quizzes.")
