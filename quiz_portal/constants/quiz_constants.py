"""Quiz-related constants shared across core and API layers."""

import os

# Uppercase letters without I and O, digits without 0 and 1.
ACCESS_CODE_ALPHABET: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ACCESS_CODE_LENGTH: int = 6
MANUAL_CODE_MIN_LENGTH: int = 4
MANUAL_CODE_MAX_LENGTH: int = 6
MAX_CODE_GENERATION_TRIES: int = 20

MIN_OPTIONS_PER_QUESTION: int = 2
MAX_OPTIONS_PER_QUESTION: int = 8

SCORE_BUCKETS: tuple[tuple[str, int], ...] = (
    ("0-20%", 20),
    ("21-40%", 40),
    ("41-60%", 60),
    ("61-80%", 80),
    ("81-100%", 100),
)

SEED_DEMO_DATA: bool = os.environ.get("QUIZ_PORTAL_SEED_DEMO", "0") == "1"
