"""
Shared query parameter validation for API endpoints.

Out-of-range values are rejected by FastAPI and reported as 400 responses.
"""

from typing import Optional
from pydantic import BaseModel, Field
from fastapi import Query

MAX_PAGE = 10000
MAX_LIMIT = 100


class PaginationParams(BaseModel):
    """Standard pagination parameters with validation."""

    page: int = Field(default=1, ge=1, le=MAX_PAGE, description="1-based page number")
    limit: int = Field(default=10, ge=1, le=MAX_LIMIT, description="Items per page")


def pagination(default_limit: int = 10):
    """Build a dependency that reads ``page`` and ``limit`` from the query string."""

    def dependency(
        page: int = Query(1, ge=1, le=MAX_PAGE, description="1-based page number"),
        limit: int = Query(
            default_limit, ge=1, le=MAX_LIMIT, description="Items per page"
        ),
    ) -> PaginationParams:
        return PaginationParams(page=page, limit=limit)

    return dependency


def clean_search(value: Optional[str], max_length: int = 200) -> Optional[str]:
    """Trim a free-text search term; blank terms count as no search."""
    if value is None:
        return None
    value = value.strip()[:max_length]
    return value or None


# Common query parameters
SearchParam = Query(None, max_length=200, description="Case-insensitive text search")
SortOrderParam = Query("desc", pattern="^(asc|desc)$", description="Sort direction")
