# src/fluent_forum/models/activity.py
"""Per-user activity log and saved content."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from fluent_forum.db.session import Base
from fluent_forum.db.time import utcnow

ACTIVITY_TYPES = (
    "question_created",
    "question_edited",
    "question_deleted",
    "answer_created",
    "answer_edited",
    "answer_deleted",
    "answer_accepted",
    "vote_cast",
    "question_saved",
    "answer_saved",
    "question_unsaved",
    "answer_unsaved",
)


class Activity(Base):
    """Something a user did, kept for their dashboard feed."""

    __tablename__ = "activity"
    __table_args__ = (
        Index("ix_activity_user_created", "user_id", "created_at"),
        Index("ix_activity_target", "target_type", "target_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    # question | answer | vote
    target_type: Mapped[str] = mapped_column(String(16), nullable=False)

    # Column is named "metadata" but the attribute cannot shadow DeclarativeBase.metadata.
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class SavedContent(Base):
    """A question or answer bookmarked by a user."""

    __tablename__ = "saved_content"
    __table_args__ = (
        UniqueConstraint("user_id", "content_id", "content_type", name="uq_saved_content"),
        CheckConstraint(
            "content_type IN ('question', 'answer')", name="ck_saved_content_type"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    content_id: Mapped[int] = mapped_column(Integer, nullable=False)
    content_type: Mapped[str] = mapped_column(String(16), nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
