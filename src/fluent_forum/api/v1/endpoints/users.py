# src/fluent_forum/api/v1/endpoints/users.py
"""User profile, per-user content listings, activity and saved-content endpoints."""

from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fluent_forum.api.v1.dependencies import CurrentUserDep, SessionDep
from fluent_forum.api.v1.endpoints.questions import question_page
from fluent_forum.core.settings import settings
from fluent_forum.models import Answer, Question, SavedContent, User
from fluent_forum.schemas.activity import (
    ActivityPage,
    ActivityResponse,
    SaveContentRequest,
    SavedContentResponse,
)
from fluent_forum.schemas.common import Pagination
from fluent_forum.schemas.content import AnswerPage, AnswerResponse, QuestionPage
from fluent_forum.schemas.user import ProfileUpdate, UserResponse
from fluent_forum.services.activity import list_activity
from fluent_forum.services.saved_content import (
    list_saved_content,
    save_content,
    unsave_content,
)

router = APIRouter(prefix="/users", tags=["users"])

QuestionStatus = Literal["all", "answered", "unanswered"]
AnswerStatus = Literal["all", "accepted"]


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _questions_by(
    db: Session, user_id: int, *, page: int, limit: int, answered: QuestionStatus
) -> QuestionPage:
    filters = [Question.author_id == user_id]
    # "answered" means an answer has been accepted, not merely posted.
    if answered == "answered":
        filters.append(Question.accepted_answer_id.is_not(None))
    elif answered == "unanswered":
        filters.append(Question.accepted_answer_id.is_(None))

    total = db.execute(select(func.count()).select_from(Question).where(*filters)).scalar_one()
    questions = list(
        db.execute(
            select(Question)
            .where(*filters)
            .order_by(Question.created_at.desc(), Question.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()
    )
    return question_page(db, questions, page=page, limit=limit, total=total)


def _answers_by(
    db: Session, user_id: int, *, page: int, limit: int, accepted: AnswerStatus
) -> AnswerPage:
    filters = [Answer.author_id == user_id]
    if accepted == "accepted":
        filters.append(Answer.is_accepted.is_(True))

    total = db.execute(select(func.count()).select_from(Answer).where(*filters)).scalar_one()
    answers = db.execute(
        select(Answer)
        .where(*filters)
        .order_by(Answer.created_at.desc(), Answer.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars()
    return AnswerPage(
        items=[AnswerResponse.model_validate(answer) for answer in answers],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.put("/me/profile", response_model=UserResponse)
async def update_profile(
    payload: ProfileUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> User:
    """Update the authenticated user's profile."""
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(current_user, key, value)
    db.commit()
    db.refresh(current_user)
    return current_user


@router.post(
    "/me/saved",
    response_model=SavedContentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save(
    payload: SaveContentRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> SavedContent:
    """Bookmark a question or answer."""
    return save_content(
        db,
        user_id=current_user.id,
        content_type=payload.content_type,
        content_id=payload.content_id,
        tags=payload.tags,
        notes=payload.notes,
    )


@router.delete("/me/saved/{content_type}/{content_id}")
async def unsave(
    content_type: Literal["question", "answer"],
    content_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, object]:
    """Remove a bookmark."""
    unsave_content(db, user_id=current_user.id, content_type=content_type, content_id=content_id)
    return {"success": True, "message": f"{content_type} unsaved successfully"}


@router.get("/me/saved", response_model=list[SavedContentResponse])
async def list_saved(
    current_user: CurrentUserDep,
    db: SessionDep,
    content_type: Literal["question", "answer"] | None = Query(None),
) -> list[SavedContent]:
    """List the authenticated user's bookmarks."""
    return list_saved_content(db, current_user.id, content_type=content_type)


@router.get("/me/questions", response_model=QuestionPage)
async def list_my_questions(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    answered: QuestionStatus = Query("all", alias="status"),
) -> QuestionPage:
    """List the authenticated user's questions, newest first."""
    return _questions_by(db, current_user.id, page=page, limit=limit, answered=answered)


@router.get("/me/answers", response_model=AnswerPage)
async def list_my_answers(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    accepted: AnswerStatus = Query("all", alias="status"),
) -> AnswerPage:
    """List the authenticated user's answers, newest first."""
    return _answers_by(db, current_user.id, page=page, limit=limit, accepted=accepted)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: SessionDep) -> User:
    """Return a user's public profile."""
    return _get_user_or_404(db, user_id)


@router.get("/{user_id}/questions", response_model=QuestionPage)
async def list_user_questions(
    user_id: int,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    answered: QuestionStatus = Query("all", alias="status"),
) -> QuestionPage:
    """List a user's questions, optionally only those with or without an accepted answer."""
    _get_user_or_404(db, user_id)
    return _questions_by(db, user_id, page=page, limit=limit, answered=answered)


@router.get("/{user_id}/answers", response_model=AnswerPage)
async def list_user_answers(
    user_id: int,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    accepted: AnswerStatus = Query("all", alias="status"),
) -> AnswerPage:
    """List a user's answers, optionally only accepted ones."""
    _get_user_or_404(db, user_id)
    return _answers_by(db, user_id, page=page, limit=limit, accepted=accepted)


@router.get("/{user_id}/activity", response_model=ActivityPage)
async def get_activity(
    user_id: int,
    _current_user: CurrentUserDep,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: str | None = Query(None),
) -> ActivityPage:
    """Return a user's activity feed, newest first."""
    _get_user_or_404(db, user_id)
    items, total = list_activity(db, user_id, page=page, limit=limit, type=type)
    return ActivityPage(
        items=[ActivityResponse.model_validate(item) for item in items],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )
