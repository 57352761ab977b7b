# src/fluent_forum/api/v1/endpoints/auth.py
"""Authentication endpoints for the Fluent Forum API."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, HTTPException, status
from jose import jwt
from sqlalchemy import or_, select

from fluent_forum.api.v1.dependencies import CurrentUserDep, SessionDep
from fluent_forum.core.security import hash_password, verify_password
from fluent_forum.core.settings import settings
from fluent_forum.models import User
from fluent_forum.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def create_access_token(user_id: int, extra_claims: dict[str, str] | None = None) -> str:
    """Create JWT access token for user authentication."""
    to_encode: dict[str, object] = {"sub": str(user_id)}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: SessionDep) -> TokenResponse:
    """Create an account and return an access token."""
    clash = db.execute(
        select(User).where(or_(User.username == payload.username, User.email == payload.email))
    ).scalars().first()
    if clash is not None:
        field = "Username" if clash.username == payload.username else "Email"
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} is already registered",
        )

    user = User(
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.username)
    return TokenResponse(access_token=create_access_token(user.id), user_id=user.id)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: SessionDep) -> TokenResponse:
    """Exchange a username or email and password for an access token."""
    login_value = payload.login.strip()
    user = db.execute(
        select(User).where(or_(User.username == login_value, User.email == login_value.lower()))
    ).scalars().first()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return TokenResponse(access_token=create_access_token(user.id), user_id=user.id)


@router.get("/me", response_model=UserResponse)
async def me(current_user: CurrentUserDep) -> User:
    """Return the authenticated user's profile."""
    return current_user
