"""Domain exceptions raised by the attempt and reward services.

Each class carries the HTTP status the error handler maps it to. None of
these are retried: they are business-rule rejections, not transient
failures.
"""

from __future__ import annotations


class AcademyError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(AcademyError):
    """Referenced quiz, attempt or user does not exist."""

    status_code = 404


class PermissionDenied(AcademyError):
    """Caller does not own the requested resource."""

    status_code = 403


class BusinessRuleViolation(AcademyError):
    """Request is well-formed but breaks a business rule."""


class AttemptLimitExceeded(BusinessRuleViolation):
    """User already has max_attempts attempts for the quiz."""


class AlreadySubmitted(BusinessRuleViolation):
    """Attempt has left the in_progress state."""


class InvalidProgressUpdate(BusinessRuleViolation):
    """Progress request carries neither a positive delta nor an activity."""


class AttemptConflict(BusinessRuleViolation):
    """A concurrent start claimed the same attempt number."""

    status_code = 409
