# src/fluent_forum/api/v1/endpoints/votes.py
"""Vote-related endpoints for the Fluent Forum API."""

from fastapi import APIRouter, status

from fluent_forum.api.v1.dependencies import AdminUserDep, CurrentUserDep, SessionDep
from fluent_forum.models.vote import TargetKind
from fluent_forum.schemas.vote import (
    ReconcileResponse,
    VoteCreate,
    VoteResponse,
    VoteStatusResponse,
)
from fluent_forum.services.voting import VoteOutcome, VoteService

router = APIRouter(prefix="/votes", tags=["votes"])


def _to_response(outcome: VoteOutcome) -> VoteResponse:
    user_vote = outcome.user_vote.value if outcome.user_vote else None
    return VoteResponse(votes=outcome.votes, user_vote=user_vote)


@router.post("/questions/{question_id}", response_model=VoteResponse)
async def vote_question(
    question_id: int,
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteResponse:
    """Cast, flip or retract a vote on a question."""
    outcome = VoteService(db).cast_vote(
        current_user.id, question_id, TargetKind.QUESTION, vote_data.vote_type
    )
    return _to_response(outcome)


@router.post("/answers/{answer_id}", response_model=VoteResponse)
async def vote_answer(
    answer_id: int,
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteResponse:
    """Cast, flip or retract a vote on an answer."""
    outcome = VoteService(db).cast_vote(
        current_user.id, answer_id, TargetKind.ANSWER, vote_data.vote_type
    )
    return _to_response(outcome)


@router.get("/{target_kind}/{target_id}/my-vote", response_model=VoteStatusResponse)
async def get_my_vote(
    target_kind: str,
    target_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteStatusResponse:
    """Get current user's vote on a specific question or answer."""
    direction = VoteService(db).get_vote_status(current_user.id, target_kind, target_id)
    return VoteStatusResponse(
        user_vote=direction.value if direction else None,
        has_voted=direction is not None,
    )


@router.post(
    "/{target_kind}/{target_id}/reconcile",
    response_model=ReconcileResponse,
    status_code=status.HTTP_200_OK,
)
async def reconcile_votes(
    target_kind: str,
    target_id: int,
    _admin: AdminUserDep,
    db: SessionDep,
    dry_run: bool = False,
) -> ReconcileResponse:
    """Recompute a target's cached vote count from the ledger."""
    result = VoteService(db).reconcile(target_kind, target_id, dry_run=dry_run)
    return ReconcileResponse(
        target_kind=result.target_kind.value,
        target_id=result.target_id,
        previous=result.previous,
        votes=result.votes,
        drifted=result.drifted,
    )
