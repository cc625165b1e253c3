from pydantic import Field, field_validator
from datetime import datetime
from typing import Optional, List

from newsdesk.models.article import ArticleStatus
from .base import APIModel
from .category import CategorySummary
from .user import UserSummary

MAX_TAG_LENGTH = 50


def _normalize_tags(v):
    """Strip, drop empties and de-duplicate while keeping the submitted order."""
    if v is None:
        return v
    seen = []
    for tag in v:
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tag cannot exceed {MAX_TAG_LENGTH} characters")
        if tag not in seen:
            seen.append(tag)
    return seen


class ArticleWrite(APIModel):
    """Fields shared by create and update requests."""

    summary: Optional[str] = None
    categories: Optional[List[str]] = None  # Category IDs
    tags: Optional[List[str]] = None
    featured_image: Optional[str] = None
    gallery: Optional[List[str]] = None
    status: Optional[ArticleStatus] = None
    is_breaking_news: Optional[bool] = None
    is_featured: Optional[bool] = None
    publish_date: Optional[datetime] = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _normalize_tags(v)


class ArticleCreate(ArticleWrite):
    title: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        v = v.strip().lower()
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("Slug must be a non-empty string without whitespace")
        return v


class ArticleUpdate(ArticleWrite):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)


class Article(APIModel):
    id: str
    title: str
    slug: str
    content: str
    summary: Optional[str] = None
    author: UserSummary
    categories: List[CategorySummary] = []
    tags: List[str] = []
    featured_image: Optional[str] = None
    gallery: List[str] = []
    status: ArticleStatus
    view_count: int = 0
    is_breaking_news: bool = False
    is_featured: bool = False
    publish_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", "gallery", mode="before")
    @classmethod
    def coerce_sequence(cls, v):
        # ORM collections and proxies arrive as list-like objects or None
        return list(v) if v is not None else []


class ArticleResponse(APIModel):
    message: str
    article: Article


class ArticlePage(APIModel):
    items: List[Article]
    page: int
    limit: int
    total_pages: int
    total_articles: int
