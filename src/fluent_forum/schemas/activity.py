"""Activity feed and saved-content Pydantic schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .common import Pagination


class ActivityResponse(BaseModel):
    """One entry of a user's activity feed."""

    id: int
    type: str
    target_id: int
    target_type: str
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityPage(BaseModel):
    """One page of a user's activity feed."""

    items: list[ActivityResponse]
    pagination: Pagination


class SaveContentRequest(BaseModel):
    """Schema for bookmarking a question or answer."""

    content_id: int
    content_type: Literal["question", "answer"]
    tags: list[str] = Field(default_factory=list)
    notes: str = Field("", max_length=500)


class SavedContentResponse(BaseModel):
    """A bookmarked question or answer."""

    id: int
    content_id: int
    content_type: str
    tags: list[str]
    notes: str
    saved_at: datetime

    model_config = ConfigDict(from_attributes=True)
