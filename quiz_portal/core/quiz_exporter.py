"""Utilities for exporting quizzes to the plain-text format used for imports."""

from __future__ import annotations

from quiz_portal.core.models import Question
from quiz_portal.core.quiz_importer import OPTION_LETTERS, QuizImportError, is_marker_line


def serialize_questions(questions: list[Question]) -> str:
    """Render questions in the import format.

    Content the importer would read back differently (blank lines, lines that
    look like section markers) raises ``QuizImportError``.
    """
    if not questions:
        raise QuizImportError("Cannot export an empty quiz.")
    blocks = [_serialize_question(number, question) for number, question in enumerate(questions, start=1)]
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(number: int, question: Question) -> str:
    if len(question.options) > len(OPTION_LETTERS):
        raise QuizImportError(
            f"Question {number}: cannot export more than {len(OPTION_LETTERS)} options."
        )
    lines: list[str] = []

    question_lines = _exportable_lines(number, "question text", question.text)
    lines.append(f"Q: {question_lines[0]}")
    lines.extend(question_lines[1:])

    for letter, option_text in zip(OPTION_LETTERS, question.options):
        option_lines = _exportable_lines(number, f"option {letter}", option_text)
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    lines.append(f"CORRECT: {OPTION_LETTERS[question.correct_answer]}")
    return "\n".join(lines)


def _exportable_lines(number: int, label: str, text: str) -> list[str]:
    lines = text.splitlines() or [text]
    for line in lines[1:]:
        if not line.strip():
            raise QuizImportError(
                f"Question {number}: {label} contains a blank line, which the text format cannot hold."
            )
        if is_marker_line(line):
            raise QuizImportError(
                f"Question {number}: {label} has a line that reads as a section marker: '{line.strip()}'."
            )
    return lines
