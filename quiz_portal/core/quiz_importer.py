"""Utilities for importing quiz questions from a human-friendly text format.

Blocks are separated by blank lines or '---':

    Q: Question text (supports markdown). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    C: Third option text      (two to eight options, A-H, in order)
    CORRECT: A|B|C|...

Example:

    Q: What is 2 + 2?
    A: 3
    B: 4
    C: 5
    D: 6
    CORRECT: B
"""

from __future__ import annotations

from dataclasses import dataclass

from quiz_portal.constants.quiz_constants import MAX_OPTIONS_PER_QUESTION, MIN_OPTIONS_PER_QUESTION
from quiz_portal.core.errors import ValidationError
from quiz_portal.core.models import Question

OPTION_LETTERS = "ABCDEFGH"[:MAX_OPTIONS_PER_QUESTION]


class QuizImportError(ValidationError):
    """Raised when a quiz definition cannot be parsed or written."""


@dataclass(slots=True)
class ImportedQuiz:
    """Questions parsed from a text document."""

    questions: list[Question]


def is_marker_line(line: str) -> bool:
    """True when the importer reads ``line`` as a section marker or block separator."""
    stripped = line.strip()
    upper = stripped.upper()
    if stripped == "---" or upper.startswith(("Q:", "CORRECT:")):
        return True
    return len(stripped) >= 2 and upper[0] in OPTION_LETTERS and stripped[1] == ":"


def parse_quiz_text(text: str) -> ImportedQuiz:
    questions = [
        _parse_block(number, block)
        for number, block in enumerate(_split_blocks(text), start=1)
    ]
    if not questions:
        raise QuizImportError("Quiz text did not contain any questions.")
    return ImportedQuiz(questions=questions)


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---" or not stripped:
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _parse_block(number: int, block: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            if current_section is not None or question_lines:
                raise QuizImportError(f"Question {number}: repeated Q: line inside one question.")
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if len(line) >= 2 and line[0].upper() in OPTION_LETTERS and line[1] == ":":
            letter = line[0].upper()
            if letter in options:
                raise QuizImportError(f"Question {number}: option {letter} defined twice.")
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Question {number}: text outside of a known section: '{line}'."
            )

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError(f"Question {number}: question text missing (Q: ...).")

    expected = OPTION_LETTERS[: len(options)]
    if len(options) < MIN_OPTIONS_PER_QUESTION or set(options) != set(expected):
        raise QuizImportError(
            f"Question {number}: define {MIN_OPTIONS_PER_QUESTION} to {len(OPTION_LETTERS)} "
            f"options using consecutive letters starting at A."
        )
    option_list = [options[letter].strip() for letter in expected]
    if any(not option for option in option_list):
        raise QuizImportError(f"Question {number}: option text cannot be empty.")

    if correct_letter is None:
        raise QuizImportError(f"Question {number}: CORRECT line missing.")
    if len(correct_letter) != 1 or correct_letter not in expected:
        raise QuizImportError(f"Question {number}: CORRECT must be one of {', '.join(expected)}.")

    return Question(
        id=f"q{number}",
        text=question_text,
        options=option_list,
        correct_answer=expected.index(correct_letter),
    )
