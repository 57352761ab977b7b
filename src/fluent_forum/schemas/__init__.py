# src/fluent_forum/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .activity import ActivityPage, ActivityResponse, SaveContentRequest, SavedContentResponse
from .common import Pagination
from .content import (
    AnswerCreate,
    AnswerPage,
    AnswerResponse,
    AnswerUpdate,
    QuestionCreate,
    QuestionDetail,
    QuestionPage,
    QuestionResponse,
    QuestionUpdate,
)
from .user import LoginRequest, ProfileUpdate, RegisterRequest, TokenResponse, UserResponse
from .vote import AcceptResponse, ReconcileResponse, VoteCreate, VoteResponse, VoteStatusResponse

__all__ = [
    "ActivityPage", "ActivityResponse", "SaveContentRequest", "SavedContentResponse",
    "Pagination",
    "AnswerCreate", "AnswerPage", "AnswerResponse", "AnswerUpdate",
    "QuestionCreate", "QuestionDetail", "QuestionPage", "QuestionResponse", "QuestionUpdate",
    "LoginRequest", "ProfileUpdate", "RegisterRequest", "TokenResponse", "UserResponse",
    "AcceptResponse", "ReconcileResponse", "VoteCreate", "VoteResponse", "VoteStatusResponse",
]
