# src/fluent_forum/api/v1/endpoints/questions.py
"""Question endpoints for the Fluent Forum API, including nested answers."""

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.orm import Session

from fluent_forum.api.v1.dependencies import CurrentUserDep, SessionDep
from fluent_forum.core.settings import settings
from fluent_forum.models import Answer, Question, SavedContent
from fluent_forum.models.vote import TargetKind
from fluent_forum.repositories.content_repo import ContentRepository
from fluent_forum.schemas.common import Pagination
from fluent_forum.schemas.content import (
    AnswerCreate,
    AnswerPage,
    AnswerResponse,
    Category,
    Difficulty,
    QuestionCreate,
    QuestionDetail,
    QuestionPage,
    QuestionResponse,
    QuestionUpdate,
)
from fluent_forum.services.activity import record_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questions", tags=["questions"])

_QUESTION_SORTS = {
    "newest": (Question.created_at.desc(), Question.id.desc()),
    "oldest": (Question.created_at.asc(), Question.id.asc()),
    "votes": (Question.votes.desc(), Question.created_at.desc()),
    "views": (Question.view_count.desc(), Question.created_at.desc()),
}
_ANSWER_SORTS = {
    "oldest": (Answer.created_at.asc(), Answer.id.asc()),
    "newest": (Answer.created_at.desc(), Answer.id.desc()),
    "votes": (Answer.votes.desc(), Answer.created_at.asc()),
}


def _get_question_or_404(db: Session, question_id: int) -> Question:
    question = db.get(Question, question_id)
    if question is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    return question


def _answer_counts(db: Session, question_ids: list[int]) -> dict[int, int]:
    if not question_ids:
        return {}
    rows = db.execute(
        select(Answer.question_id, func.count())
        .where(Answer.question_id.in_(question_ids))
        .group_by(Answer.question_id)
    ).all()
    return {question_id: count for question_id, count in rows}


def _to_response(question: Question, answer_count: int) -> QuestionResponse:
    response = QuestionResponse.model_validate(question)
    return response.model_copy(update={"answer_count": answer_count})


def question_page(
    db: Session, questions: list[Question], *, page: int, limit: int, total: int
) -> QuestionPage:
    """Wrap one page of questions with their answer counts."""
    counts = _answer_counts(db, [question.id for question in questions])
    return QuestionPage(
        items=[_to_response(question, counts.get(question.id, 0)) for question in questions],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


def _json_list_contains(column, value: str):
    # Values come from closed vocabularies, so a text match on the quoted item is exact.
    return cast(column, String).like(f'%"{value}"%')


@router.get("/", response_model=QuestionPage)
async def list_questions(
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    category: Category | None = Query(None),
    difficulty: Difficulty | None = Query(None),
    search: str | None = Query(None, min_length=1, max_length=200),
    sort: Literal["newest", "oldest", "votes", "views"] = Query("newest"),
) -> QuestionPage:
    """List questions with optional filters, search and ordering."""
    filters = []
    if category is not None:
        filters.append(_json_list_contains(Question.categories, category))
    if difficulty is not None:
        filters.append(_json_list_contains(Question.difficulty_levels, difficulty))
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Question.title.ilike(pattern), Question.content.ilike(pattern)))

    total = db.execute(select(func.count()).select_from(Question).where(*filters)).scalar_one()
    questions = list(
        db.execute(
            select(Question)
            .where(*filters)
            .order_by(*_QUESTION_SORTS[sort])
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()
    )
    return question_page(db, questions, page=page, limit=limit, total=total)


@router.post("/", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
async def create_question(
    payload: QuestionCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> QuestionResponse:
    """Ask a new question."""
    question = Question(
        author_id=current_user.id,
        title=payload.title.strip(),
        content=payload.content.strip(),
        tags=[tag.strip() for tag in payload.tags if tag.strip()],
        categories=list(dict.fromkeys(payload.categories)),
        difficulty_levels=list(dict.fromkeys(payload.difficulty_levels)),
    )
    db.add(question)
    db.flush()
    record_activity(
        db,
        user_id=current_user.id,
        type="question_created",
        target_id=question.id,
        target_type="question",
        metadata={"title": question.title},
    )
    db.commit()
    db.refresh(question)
    return _to_response(question, 0)


@router.get("/{question_id}", response_model=QuestionDetail)
async def get_question(question_id: int, db: SessionDep) -> QuestionDetail:
    """Get a question with its answers; counts as one view."""
    _get_question_or_404(db, question_id)
    ContentRepository(db).increment_field(Question, question_id, "view_count", 1)
    db.commit()

    question = _get_question_or_404(db, question_id)
    db.refresh(question)
    answers = list(
        db.execute(
            select(Answer)
            .where(Answer.question_id == question_id)
            .order_by(*_ANSWER_SORTS["votes"])
        ).scalars()
    )
    base = _to_response(question, len(answers))
    return QuestionDetail(
        **base.model_dump(),
        answers=[AnswerResponse.model_validate(answer) for answer in answers],
    )


@router.put("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: int,
    payload: QuestionUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> QuestionResponse:
    """Edit a question; allowed for its author, teachers and admins."""
    question = _get_question_or_404(db, question_id)
    if question.author_id != current_user.id and not current_user.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to update this question",
        )

    previous_title = question.title
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in changes.items():
        if key in ("categories", "difficulty_levels"):
            value = list(dict.fromkeys(value))
        elif key == "tags":
            value = [tag.strip() for tag in value if tag.strip()]
        elif isinstance(value, str):
            value = value.strip()
        setattr(question, key, value)

    if changes:
        record_activity(
            db,
            user_id=current_user.id,
            type="question_edited",
            target_id=question.id,
            target_type="question",
            metadata={"title": question.title, "previousTitle": previous_title},
        )
    db.commit()
    db.refresh(question)
    return _to_response(question, _answer_counts(db, [question.id]).get(question.id, 0))


@router.delete("/{question_id}")
async def delete_question(
    question_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, object]:
    """Delete a question, its answers and every vote on them."""
    question = _get_question_or_404(db, question_id)
    if question.author_id != current_user.id and current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to delete this question",
        )

    repo = ContentRepository(db)
    answer_ids = list(
        db.execute(select(Answer.id).where(Answer.question_id == question_id)).scalars()
    )
    repo.delete_votes_for(TargetKind.ANSWER, answer_ids)
    repo.delete_votes_for(TargetKind.QUESTION, [question_id])
    db.execute(
        delete(SavedContent).where(
            or_(
                (SavedContent.content_type == "question") & (SavedContent.content_id == question_id),
                (SavedContent.content_type == "answer") & SavedContent.content_id.in_(answer_ids),
            )
        )
    )
    db.execute(delete(Answer).where(Answer.question_id == question_id))
    record_activity(
        db,
        user_id=current_user.id,
        type="question_deleted",
        target_id=question_id,
        target_type="question",
        metadata={"title": question.title, "answersDeleted": len(answer_ids)},
    )
    db.delete(question)
    db.commit()
    logger.info("Question %s deleted with %d answers", question_id, len(answer_ids))
    return {"success": True, "message": "Question deleted successfully"}


@router.post(
    "/{question_id}/answers",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_answer(
    question_id: int,
    payload: AnswerCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Answer:
    """Answer a question."""
    question = _get_question_or_404(db, question_id)
    answer = Answer(
        question_id=question.id,
        author_id=current_user.id,
        content=payload.content.strip(),
    )
    db.add(answer)
    db.flush()
    record_activity(
        db,
        user_id=current_user.id,
        type="answer_created",
        target_id=answer.id,
        target_type="answer",
        metadata={"questionId": question.id, "questionTitle": question.title},
    )
    db.commit()
    db.refresh(answer)
    return answer


@router.get("/{question_id}/answers", response_model=AnswerPage)
async def list_answers(
    question_id: int,
    db: SessionDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort: Literal["oldest", "newest", "votes"] = Query("oldest"),
) -> AnswerPage:
    """List the answers to a question."""
    _get_question_or_404(db, question_id)
    total = db.execute(
        select(func.count()).select_from(Answer).where(Answer.question_id == question_id)
    ).scalar_one()
    answers = db.execute(
        select(Answer)
        .where(Answer.question_id == question_id)
        .order_by(*_ANSWER_SORTS[sort])
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars()
    return AnswerPage(
        items=[AnswerResponse.model_validate(answer) for answer in answers],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )
