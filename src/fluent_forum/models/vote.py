# src/fluent_forum/models/vote.py
"""Models capturing voting interactions on questions and answers."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from fluent_forum.db.session import Base
from fluent_forum.db.time import utcnow


class TargetKind(str, Enum):
    """Kinds of content that can be voted on."""

    QUESTION = "Question"
    ANSWER = "Answer"


class VoteDirection(str, Enum):
    """Allowed vote directions."""

    UP = "up"
    DOWN = "down"

    @property
    def sign(self) -> int:
        """Return +1 for an upvote and -1 for a downvote."""
        return 1 if self is VoteDirection.UP else -1


class Vote(Base):
    """Ledger entry: one vote per (voter, target kind, target id).

    Changing direction mutates the row; repeating the same direction
    deletes it.
    """

    __tablename__ = "vote"
    __table_args__ = (
        CheckConstraint("direction IN ('up', 'down')", name="ck_vote_direction"),
        CheckConstraint("target_kind IN ('Question', 'Answer')", name="ck_vote_target_kind"),
        Index("ix_vote_target", "target_kind", "target_id"),
    )

    # Composite primary key prevents duplicate votes from the same user.
    voter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    target_kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    target_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    direction: Mapped[str] = mapped_column(String(4), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
