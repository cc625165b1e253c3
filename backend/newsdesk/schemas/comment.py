from pydantic import Field
from datetime import datetime
from typing import Optional, List

from .base import APIModel
from .user import UserSummary


class CommentCreate(APIModel):
    content: str = Field(min_length=1, max_length=10000)
    parent_comment: Optional[str] = None  # Parent comment ID


class CommentModerate(APIModel):
    approved: bool


class Comment(APIModel):
    id: str
    article_id: str
    author: UserSummary
    content: str
    parent_comment_id: Optional[str] = None
    approved: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommentThread(Comment):
    """Top-level comment with its approved direct replies."""

    replies: List[Comment] = []


class CommentResponse(APIModel):
    message: str
    comment: Comment


class CommentPage(APIModel):
    items: List[CommentThread]
    page: int
    limit: int
    total_pages: int
    total_comments: int
