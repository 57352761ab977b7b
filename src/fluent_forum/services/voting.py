"""Vote ledger and aggregate updater.

A vote request is resolved against the ledger into one of three cases:

- **created**: no prior vote, a ledger row is inserted;
- **retracted**: the same direction again, the row is deleted;
- **flipped**: the opposite direction, the row is updated in place.

Each case derives a vote-count delta for the target and a reputation
delta for the target's author. The ledger write, both deltas and the
activity entry are applied in one transaction; counters are changed with
atomic SQL increments so concurrent voters cannot lose updates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fluent_forum.core.settings import settings
from fluent_forum.models import User
from fluent_forum.models.vote import TargetKind, VoteDirection
from fluent_forum.repositories.content_repo import ContentRepository, model_for
from fluent_forum.services.activity import record_activity
from fluent_forum.services.errors import (
    ForumError,
    InvalidArgumentError,
    NotFoundError,
    PartialFailureError,
)

logger = logging.getLogger(__name__)

# Reputation granted to the content author for a single new vote.
# Answers are weighted higher than questions.
REPUTATION_PER_VOTE: dict[TargetKind, dict[VoteDirection, int]] = {
    TargetKind.QUESTION: {VoteDirection.UP: 2, VoteDirection.DOWN: -1},
    TargetKind.ANSWER: {VoteDirection.UP: 5, VoteDirection.DOWN: -1},
}


class VoteAction(str, Enum):
    """Ledger effect of a vote request."""

    CREATED = "created"
    RETRACTED = "retracted"
    FLIPPED = "flipped"


@dataclass(frozen=True)
class VoteDelta:
    """Changes a vote request applies to the ledger and the aggregates."""

    action: VoteAction
    count: int
    reputation: int


@dataclass(frozen=True)
class VoteOutcome:
    """Result of a cast vote."""

    votes: int
    user_vote: VoteDirection | None
    action: VoteAction
    reputation_delta: int


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of recomputing a cached vote counter from the ledger."""

    target_kind: TargetKind
    target_id: int
    previous: int
    votes: int

    @property
    def drifted(self) -> bool:
        """Return True when the cached counter disagreed with the ledger."""
        return self.previous != self.votes


def parse_direction(value: object) -> VoteDirection:
    """Validate a raw vote direction."""
    try:
        return VoteDirection(value)
    except ValueError as err:
        raise InvalidArgumentError('Vote type must be "up" or "down"') from err


def parse_target_kind(value: object) -> TargetKind:
    """Validate a raw target kind."""
    try:
        return TargetKind(value)
    except ValueError as err:
        raise InvalidArgumentError('Target type must be "Question" or "Answer"') from err


def plan_vote(
    kind: TargetKind,
    existing: VoteDirection | None,
    requested: VoteDirection,
) -> VoteDelta:
    """Derive the ledger action and deltas for a vote request.

    A flip moves the count by two and the author's reputation by twice the
    upvote value for the kind, signed toward the new direction.
    """
    values = REPUTATION_PER_VOTE[kind]
    if existing is None:
        return VoteDelta(VoteAction.CREATED, requested.sign, values[requested])
    if existing is requested:
        return VoteDelta(VoteAction.RETRACTED, -requested.sign, -values[requested])
    return VoteDelta(
        VoteAction.FLIPPED,
        2 * requested.sign,
        2 * values[VoteDirection.UP] * requested.sign,
    )


class VoteService:
    """Apply votes to the ledger and keep cached aggregates in step."""

    def __init__(self, db: Session, *, retries: int | None = None) -> None:
        self.db = db
        self.repo = ContentRepository(db)
        self.retries = settings.vote_write_retries if retries is None else retries
        self._step = "lookup"

    def cast_vote(
        self,
        voter_id: int,
        target_id: int,
        target_kind: TargetKind | str,
        direction: VoteDirection | str,
    ) -> VoteOutcome:
        """Cast, flip or retract ``voter_id``'s vote on a target.

        Args:
            voter_id: User casting the vote.
            target_id: Identifier of the question or answer.
            target_kind: ``Question`` or ``Answer``.
            direction: ``up`` or ``down``.

        Returns:
            The target's vote count after the change and the caller's
            resulting vote (None after a retraction).

        Raises:
            InvalidArgumentError: If the direction or kind is not allowed.
            NotFoundError: If the target does not exist.
            PartialFailureError: If a write failed; nothing was applied.
        """
        requested = parse_direction(direction)
        kind = parse_target_kind(target_kind)

        attempt = 0
        while True:
            try:
                outcome = self._apply(voter_id, target_id, kind, requested)
                self.db.commit()
            except ForumError:
                self.db.rollback()
                raise
            except IntegrityError as err:
                # A concurrent request from the same voter inserted the ledger row first.
                self.db.rollback()
                if attempt < self.retries:
                    attempt += 1
                    logger.warning(
                        "Ledger conflict for voter %s on %s %s, retrying (%d/%d)",
                        voter_id, kind.value, target_id, attempt, self.retries,
                    )
                    continue
                logger.error(
                    "Ledger conflict for voter %s on %s %s persisted after %d retries",
                    voter_id, kind.value, target_id, self.retries,
                )
                raise PartialFailureError("Vote could not be recorded", step=self._step) from err
            except SQLAlchemyError as err:
                self.db.rollback()
                logger.error(
                    "Vote on %s %s rolled back at step %s: %s",
                    kind.value, target_id, self._step, err,
                )
                raise PartialFailureError("Vote could not be recorded", step=self._step) from err

            logger.info(
                "Vote %s: voter=%s target=%s:%s direction=%s votes=%d",
                outcome.action.value, voter_id, kind.value, target_id,
                requested.value, outcome.votes,
            )
            return outcome

    def _apply(
        self,
        voter_id: int,
        target_id: int,
        kind: TargetKind,
        requested: VoteDirection,
    ) -> VoteOutcome:
        self._step = "lookup"
        target = self.repo.get(kind, target_id)
        if target is None:
            raise NotFoundError(f"{kind.value} not found")

        existing = self.repo.get_vote(voter_id, kind, target_id, for_update=True)
        existing_direction = VoteDirection(existing.direction) if existing else None
        delta = plan_vote(kind, existing_direction, requested)

        self._step = "ledger"
        if existing is None:
            self.repo.add_vote(voter_id, kind, target_id, requested.value)
        elif delta.action is VoteAction.RETRACTED:
            self.repo.delete_vote(existing)
        else:
            existing.direction = requested.value
            self.repo.save(existing)

        self._step = "reputation"
        self.repo.increment_field(User, target.author_id, "reputation", delta.reputation)

        self._step = "aggregate"
        votes = self.repo.increment_field(model_for(kind), target_id, "votes", delta.count)

        self._step = "activity"
        record_activity(
            self.db,
            user_id=voter_id,
            type="vote_cast",
            target_id=target_id,
            target_type=kind.value.lower(),
            metadata={
                "voteType": requested.value,
                "targetKind": kind.value,
                "action": delta.action.value,
            },
        )
        self.db.flush()

        user_vote = None if delta.action is VoteAction.RETRACTED else requested
        return VoteOutcome(
            votes=votes,
            user_vote=user_vote,
            action=delta.action,
            reputation_delta=delta.reputation,
        )

    def get_vote_status(
        self,
        voter_id: int,
        target_kind: TargetKind | str,
        target_id: int,
    ) -> VoteDirection | None:
        """Return the caller's current vote on a target, if any."""
        kind = parse_target_kind(target_kind)
        vote = self.repo.get_vote(voter_id, kind, target_id)
        return VoteDirection(vote.direction) if vote else None

    def reconcile(
        self,
        target_kind: TargetKind | str,
        target_id: int,
        *,
        dry_run: bool = False,
    ) -> ReconcileResult:
        """Recompute a target's cached vote counter from the ledger.

        The counter is overwritten only when it drifted and ``dry_run`` is
        false.
        """
        kind = parse_target_kind(target_kind)
        target = self.repo.get(kind, target_id, for_update=True)
        if target is None:
            self.db.rollback()
            raise NotFoundError(f"{kind.value} not found")

        previous = int(target.votes)
        actual = self.repo.ledger_sum(kind, target_id)
        result = ReconcileResult(kind, target_id, previous, actual)

        if not result.drifted or dry_run:
            self.db.rollback()
            return result

        try:
            self.repo.set_field(model_for(kind), target_id, "votes", actual)
            self.db.commit()
        except SQLAlchemyError as err:
            self.db.rollback()
            raise PartialFailureError("Vote count could not be repaired", step="aggregate") from err

        logger.warning(
            "Repaired vote count drift on %s %s: %d -> %d",
            kind.value, target_id, previous, actual,
        )
        return result

    def reconcile_all(
        self,
        target_kind: TargetKind | str | None = None,
        *,
        dry_run: bool = False,
    ) -> list[ReconcileResult]:
        """Reconcile every target of one kind, or of both kinds."""
        kinds = [parse_target_kind(target_kind)] if target_kind is not None else list(TargetKind)
        results: list[ReconcileResult] = []
        for kind in kinds:
            for target_id in self.repo.target_ids(kind):
                results.append(self.reconcile(kind, target_id, dry_run=dry_run))
        return results
