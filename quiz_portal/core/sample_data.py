"""Demo quizzes used to seed an empty portal."""

from __future__ import annotations

from quiz_portal.core.models import Question, QuizDraft

DEMO_TEACHER_ID = "demo-teacher"

SAMPLE_QUIZZES: list[tuple[str, QuizDraft]] = [
    (
        "MATH01",
        QuizDraft(
            title="Math Basics",
            description="Test your knowledge of basic mathematics concepts",
            is_published=True,
            questions=[
                Question(id="q1", text="What is 2 + 2?", options=["3", "4", "5", "6"], correct_answer=1),
                Question(id="q2", text="What is 10 - 5?", options=["3", "4", "5", "6"], correct_answer=2),
            ],
        ),
    ),
    (
        "SCI001",
        QuizDraft(
            title="Science Quiz",
            description="Basic science concepts test",
            is_published=True,
            questions=[
                Question(
                    id="q1",
                    text="What is the chemical symbol for water?",
                    options=["W", "H2O", "WTR", "O2H"],
                    correct_answer=1,
                ),
                Question(
                    id="q2",
                    text="Which planet is closest to the Sun?",
                    options=["Earth", "Venus", "Mercury", "Mars"],
                    correct_answer=2,
                ),
            ],
        ),
    ),
]
