"""Accepted-answer state machine.

A question is either ``Unaccepted`` or ``Accepted(answer_id)``. Every change
goes through :func:`transition`, which yields the answer to demote, the
answer to promote and whether the acceptance bonus is granted, so the
question pointer and the answers' ``is_accepted`` flags move together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fluent_forum.core.settings import settings
from fluent_forum.models import Answer, Question, User
from fluent_forum.repositories.content_repo import ContentRepository
from fluent_forum.services.activity import record_activity
from fluent_forum.services.errors import (
    ForbiddenError,
    ForumError,
    NotFoundError,
    PartialFailureError,
)

logger = logging.getLogger(__name__)

# Flat reputation bonus for the author of an accepted answer.
ACCEPT_BONUS = 15


@dataclass(frozen=True)
class Unaccepted:
    """No answer is accepted."""


@dataclass(frozen=True)
class Accepted:
    """``answer_id`` is the accepted answer."""

    answer_id: int


QuestionAcceptance = Unaccepted | Accepted


@dataclass(frozen=True)
class AcceptanceTransition:
    """Writes needed to move a question from one acceptance state to another."""

    state: QuestionAcceptance
    demote: int | None
    promote: int | None
    grant_bonus: bool


@dataclass(frozen=True)
class AcceptanceResult:
    """Outcome of an accept request."""

    question_id: int
    answer_id: int
    previous_answer_id: int | None
    bonus_granted: bool


def acceptance_of(question: Question) -> QuestionAcceptance:
    """Read the acceptance state of a question."""
    if question.accepted_answer_id is None:
        return Unaccepted()
    return Accepted(question.accepted_answer_id)


def transition(
    current: QuestionAcceptance,
    target: QuestionAcceptance,
    *,
    regrant_bonus: bool = False,
) -> AcceptanceTransition:
    """Plan the move from ``current`` to ``target``.

    The previously accepted answer is demoted without revoking its bonus.
    Re-accepting the current answer only grants the bonus again when
    ``regrant_bonus`` is set.
    """
    demote = None
    if isinstance(current, Accepted) and current != target:
        demote = current.answer_id

    promote = target.answer_id if isinstance(target, Accepted) else None
    grant_bonus = promote is not None and (current != target or regrant_bonus)
    return AcceptanceTransition(
        state=target,
        demote=demote,
        promote=promote,
        grant_bonus=grant_bonus,
    )


def apply_transition(
    repo: ContentRepository,
    question: Question,
    plan: AcceptanceTransition,
    *,
    bonus_recipient: int | None = None,
) -> None:
    """Stage the writes of an acceptance transition on the repository's session."""
    if plan.demote is not None:
        repo.set_field(Answer, plan.demote, "is_accepted", False)
    if plan.promote is not None:
        repo.set_field(Answer, plan.promote, "is_accepted", True)
    question.accepted_answer_id = plan.promote
    repo.save(question)
    if plan.grant_bonus and bonus_recipient is not None:
        repo.increment_field(User, bonus_recipient, "reputation", ACCEPT_BONUS)


class AcceptanceService:
    """Service handling the accepted-answer state of questions."""

    def __init__(self, db: Session, *, regrant_bonus: bool | None = None) -> None:
        self.db = db
        self.repo = ContentRepository(db)
        self.regrant_bonus = (
            settings.accept_regrants_bonus if regrant_bonus is None else regrant_bonus
        )

    def accept_answer(self, requester_id: int, answer_id: int) -> AcceptanceResult:
        """Mark ``answer_id`` as the accepted answer of its question.

        Raises:
            NotFoundError: If the answer or its question does not exist.
            ForbiddenError: If the requester did not author the question.
            PartialFailureError: If a write failed; nothing was applied.
        """
        try:
            result = self._accept(requester_id, answer_id)
            self.db.commit()
        except ForumError:
            self.db.rollback()
            raise
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Accepting answer %s rolled back: %s", answer_id, err)
            raise PartialFailureError("Answer could not be accepted", step="acceptance") from err

        logger.info(
            "Answer %s accepted on question %s (previous=%s, bonus=%s)",
            result.answer_id, result.question_id,
            result.previous_answer_id, result.bonus_granted,
        )
        return result

    def _accept(self, requester_id: int, answer_id: int) -> AcceptanceResult:
        answer = self.repo.get_answer(answer_id)
        if answer is None:
            raise NotFoundError("Answer not found")

        question = self.repo.get_question(answer.question_id, for_update=True)
        if question is None:
            raise NotFoundError("Question not found")

        if question.author_id != requester_id:
            raise ForbiddenError("Only the question author can accept answers")

        current = acceptance_of(question)
        plan = transition(current, Accepted(answer.id), regrant_bonus=self.regrant_bonus)
        apply_transition(self.repo, question, plan, bonus_recipient=answer.author_id)

        record_activity(
            self.db,
            user_id=requester_id,
            type="answer_accepted",
            target_id=answer.id,
            target_type="answer",
            metadata={"questionId": question.id, "questionTitle": question.title},
        )
        self.db.flush()

        previous = current.answer_id if isinstance(current, Accepted) else None
        return AcceptanceResult(
            question_id=question.id,
            answer_id=answer.id,
            previous_answer_id=previous,
            bonus_granted=plan.grant_bonus,
        )

    def clear_for_answer(self, answer: Answer) -> None:
        """Move the answer's question back to ``Unaccepted`` if it points at ``answer``.

        Used before deleting an answer. Does not commit.
        """
        question = self.repo.get_question(answer.question_id, for_update=True)
        if question is None:
            return
        current = acceptance_of(question)
        if current != Accepted(answer.id):
            return
        apply_transition(self.repo, question, transition(current, Unaccepted()))
