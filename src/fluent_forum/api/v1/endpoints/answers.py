# src/fluent_forum/api/v1/endpoints/answers.py
"""Answer endpoints for the Fluent Forum API."""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import delete
from sqlalchemy.orm import Session

from fluent_forum.api.v1.dependencies import CurrentUserDep, SessionDep
from fluent_forum.models import Answer, SavedContent
from fluent_forum.models.vote import TargetKind
from fluent_forum.repositories.content_repo import ContentRepository
from fluent_forum.schemas.content import AnswerResponse, AnswerUpdate
from fluent_forum.schemas.vote import AcceptResponse
from fluent_forum.services.acceptance import AcceptanceService
from fluent_forum.services.activity import record_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/answers", tags=["answers"])


def _get_answer_or_404(db: Session, answer_id: int) -> Answer:
    answer = db.get(Answer, answer_id)
    if answer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Answer not found")
    return answer


@router.put("/{answer_id}", response_model=AnswerResponse)
async def update_answer(
    answer_id: int,
    payload: AnswerUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Answer:
    """Edit an answer; allowed for its author, teachers and admins."""
    answer = _get_answer_or_404(db, answer_id)
    if answer.author_id != current_user.id and not current_user.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to update this answer",
        )

    content = payload.content.strip()
    if content != answer.content:
        answer.content = content
        record_activity(
            db,
            user_id=current_user.id,
            type="answer_edited",
            target_id=answer.id,
            target_type="answer",
            metadata={"questionId": answer.question_id},
        )
    db.commit()
    db.refresh(answer)
    return answer


@router.delete("/{answer_id}")
async def delete_answer(
    answer_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, object]:
    """Delete an answer and its votes, clearing acceptance if it was accepted."""
    answer = _get_answer_or_404(db, answer_id)
    if answer.author_id != current_user.id and current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to delete this answer",
        )

    AcceptanceService(db).clear_for_answer(answer)
    ContentRepository(db).delete_votes_for(TargetKind.ANSWER, [answer.id])
    db.execute(
        delete(SavedContent).where(
            SavedContent.content_type == "answer",
            SavedContent.content_id == answer.id,
        )
    )
    record_activity(
        db,
        user_id=current_user.id,
        type="answer_deleted",
        target_id=answer.id,
        target_type="answer",
        metadata={"questionId": answer.question_id},
    )
    db.delete(answer)
    db.commit()
    logger.info("Answer %s deleted by user %s", answer_id, current_user.id)
    return {"success": True, "message": "Answer deleted successfully"}


@router.patch("/{answer_id}/accept", response_model=AcceptResponse)
async def accept_answer(
    answer_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> AcceptResponse:
    """Mark an answer as the accepted answer of its question."""
    result = AcceptanceService(db).accept_answer(current_user.id, answer_id)
    return AcceptResponse(bonus_granted=result.bonus_granted)
