"""Pagination helpers for list endpoints."""


import math

from fastapi import Query
from pydantic import BaseModel

from gatepass.core.config import settings


class PaginationParams:
    """FastAPI dependency for `?page=1&limit=10`."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(
            default=settings.default_page_size,
            ge=1,
            le=settings.max_page_size,
            description="Items per page",
        ),
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_count(total: int, limit: int) -> int:
    """Number of pages needed to show *total* rows, *limit* at a time."""
    return math.ceil(total / limit) if limit else 1


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int

    model_config = {"populate_by_name": True}
