"""Domain models for the quiz portal."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(slots=True)
class Question:
    """Multiple-choice question with one designated correct option."""

    id: str
    text: str
    options: list[str]
    correct_answer: int


@dataclass(slots=True)
class Quiz:
    """A named, ordered collection of questions shared through an access code."""

    id: str
    title: str
    description: str
    created_by: str
    created_at: datetime
    code: str
    questions: list[Question] = field(default_factory=list)
    is_published: bool = False


@dataclass(slots=True)
class QuizDraft:
    """Instructor-supplied content for a quiz that does not exist yet."""

    title: str
    questions: list[Question]
    description: str = ""
    is_published: bool = False


@dataclass(slots=True)
class AttemptAnswer:
    """Selected option for a single question."""

    question_id: str
    selected_option: int


@dataclass(slots=True, frozen=True)
class InProgress:
    """Attempt status while the learner is still answering."""

    answers: tuple[AttemptAnswer, ...] = ()


@dataclass(slots=True, frozen=True)
class Completed:
    """Attempt status after final submission. Terminal."""

    answers: tuple[AttemptAnswer, ...]
    score: int
    completed_at: datetime


AttemptStatus = InProgress | Completed


@dataclass(slots=True)
class Attempt:
    """One learner's run through a quiz."""

    id: str
    quiz_id: str
    student_id: str
    student_name: str
    started_at: datetime
    status: AttemptStatus = field(default_factory=InProgress)

    @property
    def answers(self) -> list[AttemptAnswer]:
        return list(self.status.answers)

    @property
    def is_completed(self) -> bool:
        return isinstance(self.status, Completed)

    @property
    def completed_at(self) -> datetime | None:
        return self.status.completed_at if isinstance(self.status, Completed) else None

    @property
    def score(self) -> int | None:
        return self.status.score if isinstance(self.status, Completed) else None


class UserRole(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"


@dataclass(slots=True, frozen=True)
class TeacherProfile:
    teacher_id: str = ""


@dataclass(slots=True, frozen=True)
class StudentProfile:
    roll_number: str = ""
    class_name: str = ""
    section: str = ""


@dataclass(slots=True, frozen=True)
class UserIdentity:
    """Caller identity as supplied by the external identity provider."""

    id: str
    email: str
    name: str
    profile: TeacherProfile | StudentProfile

    @property
    def role(self) -> UserRole:
        if isinstance(self.profile, TeacherProfile):
            return UserRole.TEACHER
        return UserRole.STUDENT

    @property
    def is_teacher(self) -> bool:
        return self.role is UserRole.TEACHER
