"""
Article service: listing, reading, and role-gated writes.

Callers with the ``user`` role can edit the body of their own articles but
not the publishing fields. Those are decided here, before the record is
written, according to the caller's role.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from newsdesk.core.access import AccessPolicy, Action
from newsdesk.core.auth import Identity
from newsdesk.core.database import utcnow
from newsdesk.core.errors import NotFound, Unauthorized, ValidationError
from newsdesk.core.logging_config import log_security_event
from newsdesk.models.article import Article, ArticleStatus, ArticleTag
from newsdesk.models.category import Category
from newsdesk.models.comment import Comment
from newsdesk.schemas.article import ArticleCreate, ArticleUpdate

logger = logging.getLogger(__name__)

# Public sort keys mapped to columns
SORT_COLUMNS = {
    "createdAt": Article.created_at,
    "updatedAt": Article.updated_at,
    "publishDate": Article.publish_date,
    "viewCount": Article.view_count,
    "title": Article.title,
}


@dataclass
class ArticleQuery:
    """Filters and paging for the article list."""

    page: int = 1
    limit: int = 10
    category: Optional[str] = None
    author: Optional[str] = None
    tag: Optional[str] = None
    status: ArticleStatus = ArticleStatus.PUBLISHED
    search: Optional[str] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"


class ArticleService:
    def __init__(self, db: Session, policy: AccessPolicy):
        self.db = db
        self.policy = policy

    def _base_query(self):
        return self.db.query(Article).options(
            selectinload(Article.author),
            selectinload(Article.categories),
            selectinload(Article.tag_links),
        )

    def get(self, article_id: str) -> Article:
        article = self._base_query().filter(Article.id == article_id).first()
        if not article:
            raise NotFound("Article not found")
        return article

    def list_articles(
        self, query: ArticleQuery, identity: Optional[Identity] = None
    ) -> Tuple[List[Article], int]:
        """
        Return one page of articles and the total number of matches.

        Published articles are public. Asking for any other status requires a
        token: editors and admins see every match, other users only their own.
        """
        q = self._base_query()

        if query.status != ArticleStatus.PUBLISHED:
            if identity is None:
                raise Unauthorized("Authentication required to list unpublished articles")
            if not self.policy.is_elevated(identity):
                q = q.filter(Article.author_id == identity.id)
        q = q.filter(Article.status == query.status)

        if query.category:
            q = q.filter(Article.categories.any(Category.id == query.category))
        if query.author:
            q = q.filter(Article.author_id == query.author)
        if query.tag:
            q = q.filter(Article.tag_links.any(ArticleTag.name == query.tag.strip()))
        if query.search:
            pattern = f"%{query.search.strip()}%"
            q = q.filter(
                or_(
                    Article.title.ilike(pattern),
                    Article.content.ilike(pattern),
                    Article.summary.ilike(pattern),
                )
            )

        sort_column = SORT_COLUMNS.get(query.sort_by)
        if sort_column is None:
            raise ValidationError(
                f"Invalid sortBy, expected one of: {', '.join(SORT_COLUMNS)}"
            )
        if query.sort_order == "asc":
            q = q.order_by(sort_column.asc(), Article.id)
        else:
            q = q.order_by(sort_column.desc(), Article.id)

        total = q.count()
        articles = q.offset((query.page - 1) * query.limit).limit(query.limit).all()
        return articles, total

    def read_by_slug(self, slug: str, identity: Optional[Identity] = None) -> Article:
        """Fetch an article for display and count the view."""
        article = self._base_query().filter(Article.slug == slug).first()
        if not article:
            raise NotFound("Article not found")

        if article.status != ArticleStatus.PUBLISHED and not self.policy.can_see_unpublished(
            identity, article.author_id
        ):
            raise NotFound("Article not found")

        # Column-only UPDATE so a read never bumps updated_at
        self.db.query(Article).filter(Article.id == article.id).update(
            {Article.view_count: Article.view_count + 1}, synchronize_session=False
        )
        self.db.commit()
        self.db.refresh(article)
        return article

    def create(self, identity: Optional[Identity], data: ArticleCreate) -> Article:
        self.policy.authorize(identity, Action.CREATE_ARTICLE)

        if self.db.query(Article).filter(Article.slug == data.slug).first():
            raise ValidationError("Article with this slug already exists")

        article = Article(
            title=data.title,
            slug=data.slug,
            content=data.content,
            summary=data.summary,
            author_id=identity.id,
            featured_image=data.featured_image,
            gallery=list(data.gallery or []),
            view_count=0,
        )
        article.categories = self._resolve_categories(data.categories or [])
        self._replace_tags(article, data.tags or [])

        if self.policy.is_elevated(identity):
            article.status = data.status or ArticleStatus.DRAFT
            article.is_breaking_news = bool(data.is_breaking_news)
            article.is_featured = bool(data.is_featured)
            article.publish_date = data.publish_date or utcnow()
        else:
            article.status = ArticleStatus.DRAFT
            article.is_breaking_news = False
            article.is_featured = False
            article.publish_date = utcnow()

        self.db.add(article)
        self.db.commit()

        logger.info(f"Article {article.slug} created by {identity.id} as {article.status.value}")
        return self.get(article.id)

    def update(
        self, identity: Optional[Identity], article_id: str, data: ArticleUpdate
    ) -> Article:
        if identity is None:
            raise Unauthorized("Authentication required")
        article = self.get(article_id)
        self.policy.authorize(identity, Action.UPDATE_ARTICLE, owner_id=article.author_id)

        update_data = data.model_dump(exclude_unset=True)

        for key in ("title", "content"):
            if update_data.get(key) is not None:
                setattr(article, key, update_data[key])
        for key in ("summary", "featured_image"):
            if key in update_data:
                setattr(article, key, update_data[key])
        if "gallery" in update_data:
            article.gallery = list(update_data["gallery"] or [])
        if "categories" in update_data:
            article.categories = self._resolve_categories(update_data["categories"] or [])
        if "tags" in update_data:
            self._replace_tags(article, update_data["tags"] or [])

        requested_status = update_data.get("status")
        if self.policy.is_elevated(identity):
            if requested_status is not None:
                article.status = requested_status
            # null leaves these unchanged
            for key in ("is_breaking_news", "is_featured", "publish_date"):
                if update_data.get(key) is not None:
                    setattr(article, key, update_data[key])
        elif requested_status is not None:
            article.status = self._user_status_transition(article.status, requested_status)

        # Tag and category edits never touch the articles row, so onupdate alone misses them
        article.updated_at = utcnow()
        self.db.commit()
        return self.get(article.id)

    @staticmethod
    def _user_status_transition(
        current: ArticleStatus, requested: ArticleStatus
    ) -> ArticleStatus:
        """
        Status a ``user``-role author ends up with after asking for ``requested``.

        A draft stays a draft. A published article takes whatever was asked
        for. Anything else keeps its status.
        """
        if current == ArticleStatus.DRAFT:
            return ArticleStatus.DRAFT
        if current == ArticleStatus.PUBLISHED:
            return requested
        return current

    def delete(self, identity: Optional[Identity], article_id: str) -> None:
        """Delete an article together with every comment on it, in one commit."""
        if identity is None:
            raise Unauthorized("Authentication required")
        article = self.get(article_id)
        self.policy.authorize(identity, Action.DELETE_ARTICLE, owner_id=article.author_id)

        comment_count = (
            self.db.query(Comment).filter(Comment.article_id == article.id).count()
        )
        slug = article.slug

        try:
            self.db.delete(article)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log_security_event(
            event_type="article.deleted",
            message=f"Article {slug} deleted with {comment_count} comments",
            actor=identity,
            event_category="content",
            entity_type="article",
            entity_id=article_id,
            comments_removed=comment_count,
        )

    def _resolve_categories(self, category_ids: List[str]) -> List[Category]:
        unique_ids = list(dict.fromkeys(category_ids))
        if not unique_ids:
            return []
        categories = self.db.query(Category).filter(Category.id.in_(unique_ids)).all()
        found = {c.id for c in categories}
        missing = [cid for cid in unique_ids if cid not in found]
        if missing:
            raise ValidationError(f"Unknown categories: {', '.join(missing)}")
        return categories

    @staticmethod
    def _replace_tags(article: Article, tags: List[str]) -> None:
        """Replace the tag set, reusing rows for tags that are kept."""
        wanted = list(dict.fromkeys(tags))
        existing = {link.name: link for link in article.tag_links}
        article.tag_links = [existing.get(name) or ArticleTag(name) for name in wanted]
