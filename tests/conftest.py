"""Shared fixtures for the quiz portal tests."""

from __future__ import annotations

import pytest

from quiz_portal.core.access_codes import AccessCodeGenerator
from quiz_portal.core.models import Question, QuizDraft, StudentProfile, TeacherProfile, UserIdentity
from quiz_portal.core.quiz_manager import QuizManager
from quiz_portal.core.services.attempt_ledger import AttemptLedger
from quiz_portal.core.services.data_store import InMemoryDataStore
from quiz_portal.core.services.quiz_catalog import QuizCatalog


class ScriptedCodes(AccessCodeGenerator):
    """Returns the given codes in order, then repeats the last one."""

    def __init__(self, *codes: str) -> None:
        super().__init__()
        self._codes = list(codes)

    def generate(self) -> str:
        if len(self._codes) > 1:
            return self._codes.pop(0)
        return self._codes[0]


def math_basics(published: bool = True) -> QuizDraft:
    return QuizDraft(
        title="Math Basics",
        description="Basic arithmetic",
        is_published=published,
        questions=[
            Question(id="q1", text="What is 2 + 2?", options=["3", "4", "5", "6"], correct_answer=1),
            Question(id="q2", text="What is 10 - 5?", options=["3", "4", "5", "6"], correct_answer=2),
        ],
    )


@pytest.fixture
def store() -> InMemoryDataStore:
    return InMemoryDataStore()


@pytest.fixture
def catalog(store: InMemoryDataStore) -> QuizCatalog:
    return QuizCatalog(store)


@pytest.fixture
def ledger(store: InMemoryDataStore, catalog: QuizCatalog) -> AttemptLedger:
    return AttemptLedger(store, catalog)


@pytest.fixture
def manager() -> QuizManager:
    return QuizManager()


@pytest.fixture
def teacher() -> UserIdentity:
    return UserIdentity(id="t-1", email="teacher@example.com", name="Ms Teacher", profile=TeacherProfile("T-100"))


@pytest.fixture
def other_teacher() -> UserIdentity:
    return UserIdentity(id="t-2", email="other@example.com", name="Mr Other", profile=TeacherProfile())


@pytest.fixture
def student() -> UserIdentity:
    return UserIdentity(
        id="s-1",
        email="student@example.com",
        name="Student Demo",
        profile=StudentProfile(roll_number="42", class_name="7", section="B"),
    )


@pytest.fixture
def other_student() -> UserIdentity:
    return UserIdentity(id="s-2", email="s2@example.com", name="Another Student", profile=StudentProfile())
