"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class VoteCreate(BaseModel):
    """Schema for casting a vote.

    ``voteType`` is validated by the vote service so an unknown value is
    reported as a rejected direction rather than a schema error.
    """

    vote_type: str = Field(..., alias="voteType", description='"up" or "down"')

    model_config = ConfigDict(populate_by_name=True)


class VoteResponse(BaseModel):
    """New aggregate after a vote, plus the caller's resulting vote."""

    votes: int
    user_vote: Literal["up", "down"] | None = Field(None, alias="userVote")

    model_config = ConfigDict(populate_by_name=True)


class VoteStatusResponse(BaseModel):
    """The caller's current vote on a target."""

    user_vote: Literal["up", "down"] | None = Field(None, alias="userVote")
    has_voted: bool = Field(..., alias="hasVoted")

    model_config = ConfigDict(populate_by_name=True)


class ReconcileResponse(BaseModel):
    """Result of recomputing a cached vote counter from the ledger."""

    target_kind: Literal["Question", "Answer"]
    target_id: int
    previous: int
    votes: int
    drifted: bool


class AcceptResponse(BaseModel):
    """Acknowledgement for an accepted answer."""

    success: bool = True
    message: str = "Answer accepted successfully"
    bonus_granted: bool = Field(False, alias="bonusGranted")

    model_config = ConfigDict(populate_by_name=True)
