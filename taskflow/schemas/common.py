"""Common schemas."""
from math import ceil

from pydantic import BaseModel


class PaginationMeta(BaseModel):
    """Page metadata for list responses."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )
