# src/fluent_forum/models/content.py
"""SQLAlchemy models for questions and answers."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fluent_forum.db.session import Base
from fluent_forum.db.time import utcnow

CATEGORIES = (
    "grammar",
    "vocabulary",
    "pronunciation",
    "writing",
    "speaking",
    "reading",
    "listening",
    "business",
    "academic",
    "casual",
    "technical",
    "other",
)
DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced", "expert")


class Question(Base):
    """A learner's question; the root of an answer thread."""

    __tablename__ = "question"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    difficulty_levels: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Cached aggregate of the vote ledger, maintained by atomic increments.
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Logical reference to answer.id; kept without a FK to avoid a table cycle.
    # Only the acceptance state machine writes it.
    accepted_answer_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Answer(Base):
    """A reply to a question."""

    __tablename__ = "answer"
    __table_args__ = (Index("ix_answer_question_id", "question_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("question.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
