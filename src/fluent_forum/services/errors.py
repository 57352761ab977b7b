# src/fluent_forum/services/errors.py
"""Error taxonomy shared by the voting and acceptance services."""

from __future__ import annotations


class ForumError(RuntimeError):
    """Base exception for domain failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ForumError):
    """Raised when a target question, answer or parent question does not exist."""

    status_code = 404


class InvalidArgumentError(ForumError):
    """Raised when a request argument falls outside its allowed values."""

    status_code = 400


class ForbiddenError(ForumError):
    """Raised when the caller is not allowed to perform the operation."""

    status_code = 403


class PartialFailureError(ForumError):
    """Raised when one step of a multi-step write fails.

    The enclosing transaction has already been rolled back, so none of the
    steps are visible. ``step`` names the step that failed.
    """

    status_code = 500

    def __init__(self, message: str, *, step: str) -> None:
        super().__init__(message)
        self.step = step
