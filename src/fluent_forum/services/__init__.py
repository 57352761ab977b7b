# src/fluent_forum/services/__init__.py
"""Business logic services for the Fluent Forum application."""

from .acceptance import AcceptanceService
from .errors import (
    ForbiddenError,
    ForumError,
    InvalidArgumentError,
    NotFoundError,
    PartialFailureError,
)
from .voting import VoteService

__all__ = [
    "AcceptanceService",
    "VoteService",
    "ForumError",
    "ForbiddenError",
    "InvalidArgumentError",
    "NotFoundError",
    "PartialFailureError",
]
