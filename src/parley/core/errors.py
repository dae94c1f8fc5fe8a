"""Domain error taxonomy shared by the services and the HTTP layer.

Every rule violation raised by the conversation and message services is one of
the classes below. Each carries a stable :class:`ErrorKind` so callers can
branch on the kind instead of inspecting the human-readable message.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-checkable identifier attached to every domain error."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


class DomainError(Exception):
    """Base class for all expected failures of a domain operation."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(DomainError):
    """Raised for malformed or missing input, before storage is touched."""

    kind = ErrorKind.VALIDATION


class InvalidCursorError(ValidationError):
    """Raised when a pagination cursor cannot be decoded."""


class UnauthorizedError(DomainError):
    """Raised when the bearer credential is missing or invalid."""

    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(DomainError):
    """Raised when an authenticated user lacks the required membership or role."""

    kind = ErrorKind.FORBIDDEN


class NotFoundError(DomainError):
    """Raised when a conversation, message, participant or user does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(DomainError):
    """Raised when a write would duplicate an existing participant."""

    kind = ErrorKind.CONFLICT


__all__ = [
    "ErrorKind",
    "DomainError",
    "ValidationError",
    "InvalidCursorError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
]
