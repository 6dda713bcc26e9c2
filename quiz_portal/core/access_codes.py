"""Short access codes used by students to find a published quiz."""

from __future__ import annotations

import random
import re

from quiz_portal.constants.quiz_constants import (
    ACCESS_CODE_ALPHABET,
    ACCESS_CODE_LENGTH,
    MANUAL_CODE_MAX_LENGTH,
    MANUAL_CODE_MIN_LENGTH,
)
from quiz_portal.core.errors import ValidationError

_MANUAL_CODE_PATTERN = re.compile(r"^[A-Z0-9]+$")


class AccessCodeGenerator:
    """Draws random codes from an alphabet free of look-alike characters.

    The generator knows nothing about existing quizzes; uniqueness is checked
    by the catalog before a code is committed.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.SystemRandom()

    def generate(self) -> str:
        return "".join(
            self._rng.choice(ACCESS_CODE_ALPHABET) for _ in range(ACCESS_CODE_LENGTH)
        )


def normalize_code(code: str) -> str:
    return code.strip().upper()


def validate_manual_code(code: str) -> str:
    """Normalize an instructor-typed code and check its format."""
    normalized = normalize_code(code)
    if len(normalized) < MANUAL_CODE_MIN_LENGTH:
        raise ValidationError(
            f"Quiz code must be at least {MANUAL_CODE_MIN_LENGTH} characters long."
        )
    if len(normalized) > MANUAL_CODE_MAX_LENGTH:
        raise ValidationError(
            f"Quiz code must be at most {MANUAL_CODE_MAX_LENGTH} characters long."
        )
    if not _MANUAL_CODE_PATTERN.match(normalized):
        raise ValidationError("Quiz code may only contain letters and digits.")
    return normalized
