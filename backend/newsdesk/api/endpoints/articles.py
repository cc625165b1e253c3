from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging

from newsdesk.api.deps import get_article_service, get_comment_service
from newsdesk.api.validation import (
    PaginationParams,
    SearchParam,
    SortOrderParam,
    clean_search,
    pagination,
)
from newsdesk.core.auth import Identity, get_current_identity, get_optional_identity
from newsdesk.models.article import ArticleStatus
from newsdesk.schemas.article import (
    Article as ArticleSchema,
    ArticleCreate,
    ArticlePage,
    ArticleResponse,
    ArticleUpdate,
)
from newsdesk.schemas.base import MessageResponse, total_pages
from newsdesk.schemas.comment import (
    Comment as CommentSchema,
    CommentCreate,
    CommentPage,
    CommentResponse,
    CommentThread,
)
from newsdesk.services.article_service import ArticleQuery, ArticleService
from newsdesk.services.comment_service import CommentService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=ArticlePage)
def get_articles(
    paging: PaginationParams = Depends(pagination(default_limit=10)),
    category: Optional[str] = Query(None, max_length=36, description="Category ID"),
    author: Optional[str] = Query(None, max_length=36, description="Author user ID"),
    tag: Optional[str] = Query(None, max_length=50),
    article_status: ArticleStatus = Query(ArticleStatus.PUBLISHED, alias="status"),
    search: Optional[str] = SearchParam,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = SortOrderParam,
    identity: Optional[Identity] = Depends(get_optional_identity),
    articles: ArticleService = Depends(get_article_service),
):
    """List articles, newest first by default.

    Only published articles are public. Other statuses require a token:
    editors and admins see all of them, other users only their own.
    """
    query = ArticleQuery(
        page=paging.page,
        limit=paging.limit,
        category=category,
        author=author,
        tag=tag,
        status=article_status,
        search=clean_search(search),
        sort_by=sort_by,
        sort_order=sort_order,
    )
    items, total = articles.list_articles(query, identity)

    return ArticlePage(
        items=[ArticleSchema.model_validate(a) for a in items],
        page=paging.page,
        limit=paging.limit,
        total_pages=total_pages(total, paging.limit),
        total_articles=total,
    )


@router.get("/{slug}", response_model=ArticleSchema)
def get_article(
    slug: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    articles: ArticleService = Depends(get_article_service),
):
    """Get an article by slug and count the view."""
    return ArticleSchema.model_validate(articles.read_by_slug(slug, identity))


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
def create_article(
    data: ArticleCreate,
    identity: Identity = Depends(get_current_identity),
    articles: ArticleService = Depends(get_article_service),
):
    """Create an article owned by the caller."""
    article = articles.create(identity, data)
    return ArticleResponse(
        message="Article created successfully",
        article=ArticleSchema.model_validate(article),
    )


@router.put("/{article_id}", response_model=ArticleResponse)
def update_article(
    article_id: str,
    data: ArticleUpdate,
    identity: Identity = Depends(get_current_identity),
    articles: ArticleService = Depends(get_article_service),
):
    """Update an article; owners and editorial staff only."""
    article = articles.update(identity, article_id, data)
    return ArticleResponse(
        message="Article updated successfully",
        article=ArticleSchema.model_validate(article),
    )


@router.delete("/{article_id}", response_model=MessageResponse)
def delete_article(
    article_id: str,
    identity: Identity = Depends(get_current_identity),
    articles: ArticleService = Depends(get_article_service),
):
    """Delete an article and all of its comments."""
    articles.delete(identity, article_id)
    return MessageResponse(message="Article deleted successfully")


@router.get("/{article_id}/comments", response_model=CommentPage)
def get_comments(
    article_id: str,
    paging: PaginationParams = Depends(pagination(default_limit=20)),
    identity: Optional[Identity] = Depends(get_optional_identity),
    comments: CommentService = Depends(get_comment_service),
):
    """Approved top-level comments, newest first, each with its approved replies."""
    threads, total = comments.list_threads(article_id, paging.page, paging.limit, identity)

    # Replies come from the service, which has already dropped unapproved ones
    items = [
        CommentThread(
            **CommentSchema.model_validate(comment).model_dump(),
            replies=[CommentSchema.model_validate(r) for r in replies],
        )
        for comment, replies in threads
    ]

    return CommentPage(
        items=items,
        page=paging.page,
        limit=paging.limit,
        total_pages=total_pages(total, paging.limit),
        total_comments=total,
    )


@router.post(
    "/{article_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    article_id: str,
    data: CommentCreate,
    identity: Identity = Depends(get_current_identity),
    comments: CommentService = Depends(get_comment_service),
):
    """Comment on an article, or reply to a comment on it."""
    comment = comments.create(identity, article_id, data)
    message = (
        "Comment added successfully"
        if comment.approved
        else "Comment submitted and awaiting moderation"
    )
    return CommentResponse(message=message, comment=CommentSchema.model_validate(comment))
