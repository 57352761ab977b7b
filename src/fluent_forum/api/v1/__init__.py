# src/fluent_forum/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    answers_router,
    auth_router,
    questions_router,
    users_router,
    votes_router,
)

__all__ = [
    "answers_router",
    "auth_router",
    "questions_router",
    "users_router",
    "votes_router",
]
