# src/fluent_forum/models/user.py
"""SQLAlchemy models for forum users."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fluent_forum.db.session import Base
from fluent_forum.db.time import utcnow

USER_ROLES = ("student", "teacher", "admin")
ENGLISH_LEVELS = ("beginner", "intermediate", "advanced")


class User(Base):
    """Registered learner, teacher or administrator."""

    __tablename__ = "user_account"
    __table_args__ = (
        CheckConstraint("role IN ('student', 'teacher', 'admin')", name="ck_user_account_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="student")

    # Driven by votes received and accepted answers; no floor is enforced.
    reputation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)
    native_language: Mapped[str | None] = mapped_column(String(50), nullable=True)
    english_level: Mapped[str] = mapped_column(String(16), nullable=False, default="beginner")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def is_staff(self) -> bool:
        """Return True for teachers and administrators."""
        return self.role in ("teacher", "admin")
