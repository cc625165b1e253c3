from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional

from .base import APIModel


def _normalize_slug(v: str) -> str:
    v = v.strip().lower()
    if not v:
        raise ValueError("Slug cannot be empty")
    if any(ch.isspace() for ch in v):
        raise ValueError("Slug cannot contain whitespace")
    return v


class CategorySummary(APIModel):
    id: str
    name: str
    slug: str


class CategoryCreate(APIModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    parent_category: Optional[str] = None  # Parent category ID
    image: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        return _normalize_slug(v)


class CategoryUpdate(APIModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    parent_category: Optional[str] = None
    image: Optional[str] = None
    active: Optional[bool] = None


class Category(APIModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    parent_category: Optional[CategorySummary] = None
    image: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryResponse(APIModel):
    message: str
    category: Category
