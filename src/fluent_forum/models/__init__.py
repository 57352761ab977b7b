# src/fluent_forum/models/__init__.py
"""SQLAlchemy models for the Fluent Forum application."""

from .activity import Activity, SavedContent
from .content import Answer, Question
from .user import User
from .vote import TargetKind, Vote, VoteDirection

__all__ = [
    "Activity", "SavedContent",
    "Answer", "Question",
    "User",
    "TargetKind", "Vote", "VoteDirection",
]
