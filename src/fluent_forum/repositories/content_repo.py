"""Data access helpers for questions, answers, users and the vote ledger."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.orm import Session

from fluent_forum.models import Answer, Question, User, Vote
from fluent_forum.models.vote import TargetKind

__all__ = ["ContentRepository", "model_for"]

_MODELS: dict[TargetKind, type[Question] | type[Answer]] = {
    TargetKind.QUESTION: Question,
    TargetKind.ANSWER: Answer,
}


def model_for(kind: TargetKind) -> type[Question] | type[Answer]:
    """Return the ORM class backing a votable target kind."""
    return _MODELS[kind]


class ContentRepository:
    """Thin wrapper around database access for votable content.

    None of the methods commit; the calling service owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get(
        self,
        kind: TargetKind,
        target_id: int,
        *,
        for_update: bool = False,
    ) -> Question | Answer | None:
        """Return a question or answer by identifier.

        A ``for_update`` read also overwrites any copy already loaded in the
        session, so callers see the locked row's current values.
        """
        model = model_for(kind)
        stmt = select(model).where(model.id == target_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalars().first()

    def get_question(self, question_id: int, *, for_update: bool = False) -> Question | None:
        """Return a question by identifier."""
        question = self.get(TargetKind.QUESTION, question_id, for_update=for_update)
        return question  # type: ignore[return-value]

    def get_answer(self, answer_id: int, *, for_update: bool = False) -> Answer | None:
        """Return an answer by identifier."""
        answer = self.get(TargetKind.ANSWER, answer_id, for_update=for_update)
        return answer  # type: ignore[return-value]

    def save(self, entity: object) -> None:
        """Stage an entity for insert or update and flush it."""
        self.session.add(entity)
        self.session.flush()

    def increment_field(
        self,
        model: type[Question] | type[Answer] | type[User],
        entity_id: int,
        field: str,
        delta: int,
    ) -> int:
        """Atomically add ``delta`` to an integer column and return the new value.

        The increment is a single ``UPDATE ... SET field = field + delta``
        statement, so concurrent writers cannot lose each other's updates.
        """
        column = getattr(model, field)
        self.session.execute(
            update(model)
            .where(model.id == entity_id)
            .values({field: column + delta})
            .execution_options(synchronize_session="fetch")
        )
        return int(
            self.session.execute(select(column).where(model.id == entity_id)).scalar_one()
        )

    def set_field(
        self,
        model: type[Question] | type[Answer],
        entity_id: int,
        field: str,
        value: object,
    ) -> None:
        """Write a single column without loading the row."""
        self.session.execute(
            update(model)
            .where(model.id == entity_id)
            .values({field: value})
            .execution_options(synchronize_session="fetch")
        )

    # Vote ledger

    def get_vote(
        self,
        voter_id: int,
        kind: TargetKind,
        target_id: int,
        *,
        for_update: bool = False,
    ) -> Vote | None:
        """Return the ledger entry for (voter, kind, target), if any."""
        stmt = select(Vote).where(
            Vote.voter_id == voter_id,
            Vote.target_kind == kind.value,
            Vote.target_id == target_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalars().first()

    def add_vote(self, voter_id: int, kind: TargetKind, target_id: int, direction: str) -> Vote:
        """Insert a ledger entry; raises ``IntegrityError`` on a duplicate."""
        vote = Vote(
            voter_id=voter_id,
            target_kind=kind.value,
            target_id=target_id,
            direction=direction,
        )
        self.save(vote)
        return vote

    def delete_vote(self, vote: Vote) -> None:
        """Remove a ledger entry."""
        self.session.delete(vote)
        self.session.flush()

    def delete_votes_for(self, kind: TargetKind, target_ids: Sequence[int]) -> int:
        """Remove every ledger entry on the given targets and return the count."""
        if not target_ids:
            return 0
        result = self.session.execute(
            delete(Vote).where(
                Vote.target_kind == kind.value,
                Vote.target_id.in_(list(target_ids)),
            )
        )
        return result.rowcount or 0

    def ledger_sum(self, kind: TargetKind, target_id: int) -> int:
        """Return the signed sum of ledger directions for a target."""
        signed = case((Vote.direction == "up", 1), else_=-1)
        total = self.session.execute(
            select(func.coalesce(func.sum(signed), 0)).where(
                Vote.target_kind == kind.value,
                Vote.target_id == target_id,
            )
        ).scalar_one()
        return int(total)

    def target_ids(self, kind: TargetKind) -> list[int]:
        """Return every identifier of the given content kind."""
        model = model_for(kind)
        return list(self.session.execute(select(model.id).order_by(model.id)).scalars())
