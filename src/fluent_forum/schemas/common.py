"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

import math

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Page metadata returned by list endpoints."""

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        """Compute the page count for ``total`` items."""
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
