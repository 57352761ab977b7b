"""Bookmarking of questions and answers."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from fluent_forum.models import SavedContent
from fluent_forum.models.vote import TargetKind
from fluent_forum.repositories.content_repo import ContentRepository
from fluent_forum.services.activity import record_activity
from fluent_forum.services.errors import InvalidArgumentError, NotFoundError

__all__ = ["CONTENT_TYPES", "save_content", "unsave_content", "list_saved_content"]

CONTENT_TYPES: dict[str, TargetKind] = {
    "question": TargetKind.QUESTION,
    "answer": TargetKind.ANSWER,
}


def _kind_for(content_type: str) -> TargetKind:
    try:
        return CONTENT_TYPES[content_type]
    except KeyError as err:
        raise InvalidArgumentError(
            'Content type must be either "question" or "answer"'
        ) from err


def _find_saved(
    db: Session, user_id: int, content_type: str, content_id: int
) -> SavedContent | None:
    return db.execute(
        select(SavedContent).where(
            SavedContent.user_id == user_id,
            SavedContent.content_type == content_type,
            SavedContent.content_id == content_id,
        )
    ).scalars().first()


def save_content(
    db: Session,
    *,
    user_id: int,
    content_type: str,
    content_id: int,
    tags: list[str] | None = None,
    notes: str = "",
) -> SavedContent:
    """Bookmark a question or answer for ``user_id`` and commit.

    Raises:
        InvalidArgumentError: For an unknown content type or a duplicate save.
        NotFoundError: If the content does not exist.
    """
    kind = _kind_for(content_type)
    content = ContentRepository(db).get(kind, content_id)
    if content is None:
        raise NotFoundError(f"{content_type} not found")

    if _find_saved(db, user_id, content_type, content_id) is not None:
        raise InvalidArgumentError(f"{content_type} already saved")

    saved = SavedContent(
        user_id=user_id,
        content_id=content_id,
        content_type=content_type,
        tags=[tag.strip().lower() for tag in tags or [] if tag.strip()],
        notes=notes,
    )
    db.add(saved)
    record_activity(
        db,
        user_id=user_id,
        type=f"{content_type}_saved",
        target_id=content_id,
        target_type=content_type,
        metadata={"title": getattr(content, "title", "Answer")},
    )
    db.commit()
    db.refresh(saved)
    return saved


def unsave_content(db: Session, *, user_id: int, content_type: str, content_id: int) -> None:
    """Remove a bookmark and commit.

    Raises:
        NotFoundError: If the content was not saved by ``user_id``.
    """
    _kind_for(content_type)
    saved = _find_saved(db, user_id, content_type, content_id)
    if saved is None:
        raise NotFoundError("Saved content not found")

    db.delete(saved)
    record_activity(
        db,
        user_id=user_id,
        type=f"{content_type}_unsaved",
        target_id=content_id,
        target_type=content_type,
    )
    db.commit()


def list_saved_content(
    db: Session, user_id: int, *, content_type: str | None = None
) -> list[SavedContent]:
    """Return a user's bookmarks, most recent first."""
    stmt = select(SavedContent).where(SavedContent.user_id == user_id)
    if content_type is not None:
        _kind_for(content_type)
        stmt = stmt.where(SavedContent.content_type == content_type)
    stmt = stmt.order_by(SavedContent.saved_at.desc(), SavedContent.id.desc())
    return list(db.execute(stmt).scalars())
