"""User-related Pydantic schemas."""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


class RegisterRequest(BaseModel):
    """Schema for creating an account."""

    username: str = Field(..., min_length=3, max_length=20)
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str) -> str:
        value = value.strip()
        if not _USERNAME_RE.match(value):
            raise ValueError("Username may only contain letters, digits, '.', '_' and '-'")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not _EMAIL_RE.match(value):
            raise ValueError("Please enter a valid email")
        return value


class LoginRequest(BaseModel):
    """Credentials for obtaining an access token."""

    login: str = Field(..., description="Username or email")
    password: str


class TokenResponse(BaseModel):
    """Bearer token issued after registration or login."""

    access_token: str
    token_type: str = "bearer"
    user_id: int


class UserResponse(BaseModel):
    """Public profile of a user."""

    id: int
    username: str
    role: str
    reputation: int
    bio: str | None
    native_language: str | None
    english_level: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """Editable profile fields; omitted fields are left unchanged."""

    bio: str | None = Field(None, max_length=500)
    native_language: str | None = Field(None, max_length=50)
    english_level: Literal["beginner", "intermediate", "advanced"] | None = None
