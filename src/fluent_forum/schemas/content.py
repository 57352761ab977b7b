"""Question and answer Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .common import Pagination

Category = Literal[
    "grammar",
    "vocabulary",
    "pronunciation",
    "writing",
    "speaking",
    "reading",
    "listening",
    "business",
    "academic",
    "casual",
    "technical",
    "other",
]
Difficulty = Literal["beginner", "intermediate", "advanced", "expert"]


class QuestionCreate(BaseModel):
    """Schema for asking a new question."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)
    categories: list[Category] = Field(..., min_length=1)
    difficulty_levels: list[Difficulty] = Field(default_factory=list)


class QuestionUpdate(BaseModel):
    """Partial update of a question; omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    tags: list[str] | None = None
    categories: list[Category] | None = Field(None, min_length=1)
    difficulty_levels: list[Difficulty] | None = None


class AnswerCreate(BaseModel):
    """Schema for answering a question."""

    content: str = Field(..., min_length=10, description="Answer body, at least 10 characters")


class AnswerUpdate(BaseModel):
    """Replacement body for an answer."""

    content: str = Field(..., min_length=10)


class AnswerResponse(BaseModel):
    """Answer information returned by the API."""

    id: int
    question_id: int
    author_id: int
    content: str
    votes: int
    is_accepted: bool
    ai_generated: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuestionResponse(BaseModel):
    """Question information returned by the API."""

    id: int
    author_id: int
    title: str
    content: str
    tags: list[str]
    categories: list[str]
    difficulty_levels: list[str]
    votes: int
    view_count: int
    accepted_answer_id: int | None
    answer_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuestionDetail(QuestionResponse):
    """A question together with its answers."""

    answers: list[AnswerResponse] = Field(default_factory=list)


class QuestionPage(BaseModel):
    """One page of questions."""

    items: list[QuestionResponse]
    pagination: Pagination


class AnswerPage(BaseModel):
    """One page of answers to a question."""

    items: list[AnswerResponse]
    pagination: Pagination
