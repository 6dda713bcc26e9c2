"""Exception hierarchy raised by the quiz portal core."""

from __future__ import annotations


class QuizPortalError(Exception):
    """Base class for all quiz portal errors."""


class ValidationError(QuizPortalError, ValueError):
    """Raised when submitted quiz or answer content violates a constraint."""


class CollisionError(QuizPortalError):
    """Raised when an access code is already used by another quiz."""


class NotFoundError(QuizPortalError):
    """Raised when a quiz or attempt id does not exist."""


class PersistenceError(QuizPortalError):
    """Raised when the data store rejects a write."""


class InvalidStateError(QuizPortalError, RuntimeError):
    """Raised when a completed attempt would be mutated."""


class AuthorizationError(QuizPortalError):
    """Raised when the caller's role or ownership does not permit an operation."""
