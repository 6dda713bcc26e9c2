"""Network configuration constants for the quiz service."""

import os

DEFAULT_HOST: str = os.environ.get("QUIZ_PORTAL_HOST", "0.0.0.0")
DEFAULT_PORT: int = int(os.environ.get("QUIZ_PORTAL_PORT", "8000"))
KEEP_ALIVE_TIMEOUT_SECONDS: int = 5

# Identity headers set by the upstream identity provider / gateway.
USER_ID_HEADER: str = "X-User-Id"
USER_ROLE_HEADER: str = "X-User-Role"
USER_NAME_HEADER: str = "X-User-Name"
USER_EMAIL_HEADER: str = "X-User-Email"

# Optional profile headers; teachers send the first, students the other three.
USER_TEACHER_ID_HEADER: str = "X-User-Teacher-Id"
USER_ROLL_NUMBER_HEADER: str = "X-User-Roll-Number"
USER_CLASS_HEADER: str = "X-User-Class"
USER_SECTION_HEADER: str = "X-User-Section"
