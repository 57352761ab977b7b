"""Activity log helpers.

Entries are staged on the caller's session and committed together with
the action they describe.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fluent_forum.models import Activity
from fluent_forum.models.activity import ACTIVITY_TYPES
from fluent_forum.services.errors import InvalidArgumentError

__all__ = ["record_activity", "list_activity"]


def record_activity(
    db: Session,
    *,
    user_id: int,
    type: str,
    target_id: int,
    target_type: str,
    metadata: dict[str, Any] | None = None,
) -> Activity:
    """Stage an activity entry without committing."""
    if type not in ACTIVITY_TYPES:
        raise InvalidArgumentError(f"Unknown activity type: {type}")
    activity = Activity(
        user_id=user_id,
        type=type,
        target_id=target_id,
        target_type=target_type,
        metadata_=dict(metadata or {}),
    )
    db.add(activity)
    return activity


def list_activity(
    db: Session,
    user_id: int,
    *,
    page: int = 1,
    limit: int = 20,
    type: str | None = None,
) -> tuple[list[Activity], int]:
    """Return one page of a user's activity, newest first, and the total count."""
    filters = [Activity.user_id == user_id]
    if type is not None:
        filters.append(Activity.type == type)

    total = db.execute(select(func.count()).select_from(Activity).where(*filters)).scalar_one()
    items = db.execute(
        select(Activity)
        .where(*filters)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars()
    return list(items), int(total)
