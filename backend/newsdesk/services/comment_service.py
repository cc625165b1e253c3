"""
Threaded comments with moderation.

Threads are at most two levels deep: a reply always points at a top-level
comment. Only approved comments are ever listed.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload

from newsdesk.core.access import AccessPolicy, Action
from newsdesk.core.auth import Identity
from newsdesk.core.errors import NotFound, Unauthorized
from newsdesk.core.logging_config import log_security_event
from newsdesk.models.article import Article, ArticleStatus
from newsdesk.models.comment import Comment
from newsdesk.schemas.comment import CommentCreate

logger = logging.getLogger(__name__)

CommentThread = Tuple[Comment, List[Comment]]


class CommentService:
    def __init__(self, db: Session, policy: AccessPolicy):
        self.db = db
        self.policy = policy

    def get(self, comment_id: str) -> Comment:
        comment = (
            self.db.query(Comment)
            .options(selectinload(Comment.author))
            .filter(Comment.id == comment_id)
            .first()
        )
        if not comment:
            raise NotFound("Comment not found")
        return comment

    def _visible_article(self, identity: Optional[Identity], article_id: str) -> Article:
        """Article the caller may read; unpublished ones look missing to everyone else."""
        article = self.db.query(Article).filter(Article.id == article_id).first()
        if not article:
            raise NotFound("Article not found")
        if article.status != ArticleStatus.PUBLISHED and not self.policy.can_see_unpublished(
            identity, article.author_id
        ):
            raise NotFound("Article not found")
        return article

    def create(
        self, identity: Optional[Identity], article_id: str, data: CommentCreate
    ) -> Comment:
        """
        Add a comment or a reply to an article.

        A reply to a reply is attached to the top-level comment of that
        thread. Comments by editors and admins are approved immediately.

        Raises:
            NotFound: If the article or the parent comment does not exist, the
                article is unpublished and not the caller's, or the parent
                belongs to a different article
        """
        self.policy.authorize(identity, Action.CREATE_COMMENT)
        article = self._visible_article(identity, article_id)

        parent_id = None
        if data.parent_comment:
            parent = (
                self.db.query(Comment)
                .filter(Comment.id == data.parent_comment)
                .first()
            )
            if not parent or parent.article_id != article.id:
                raise NotFound("Parent comment not found")
            parent_id = parent.parent_comment_id or parent.id

        comment = Comment(
            article_id=article.id,
            author_id=identity.id,
            content=data.content,
            parent_comment_id=parent_id,
            approved=self.policy.is_elevated(identity),
        )
        self.db.add(comment)
        self.db.commit()

        logger.info(
            f"Comment {comment.id} on article {article.id} by {identity.id} "
            f"(approved={comment.approved})"
        )
        return self.get(comment.id)

    def list_threads(
        self,
        article_id: str,
        page: int = 1,
        limit: int = 20,
        identity: Optional[Identity] = None,
    ) -> Tuple[List[CommentThread], int]:
        """
        Return approved top-level comments, newest first, with their approved replies.

        Replies are ordered oldest first and are not paginated.
        """
        self._visible_article(identity, article_id)

        base = self.db.query(Comment).filter(
            Comment.article_id == article_id,
            Comment.parent_comment_id.is_(None),
            Comment.approved == True,
        )
        total = base.count()
        top_level = (
            base.options(selectinload(Comment.author))
            .order_by(Comment.created_at.desc(), Comment.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        replies_by_parent: Dict[str, List[Comment]] = defaultdict(list)
        if top_level:
            replies = (
                self.db.query(Comment)
                .options(selectinload(Comment.author))
                .filter(
                    Comment.parent_comment_id.in_([c.id for c in top_level]),
                    Comment.approved == True,
                )
                .order_by(Comment.created_at.asc(), Comment.id)
                .all()
            )
            for reply in replies:
                replies_by_parent[reply.parent_comment_id].append(reply)

        return [(c, replies_by_parent[c.id]) for c in top_level], total

    def moderate(self, identity: Optional[Identity], comment_id: str, approved: bool) -> Comment:
        self.policy.authorize(identity, Action.MODERATE_COMMENT)
        comment = self.get(comment_id)

        comment.approved = approved
        self.db.commit()

        logger.info(f"Comment {comment_id} moderated by {identity.id}: approved={approved}")
        return self.get(comment_id)

    def delete(self, identity: Optional[Identity], comment_id: str) -> int:
        """
        Delete a comment; a top-level comment takes its replies with it.

        Returns:
            Number of comments removed
        """
        if identity is None:
            raise Unauthorized("Authentication required")
        comment = self.get(comment_id)
        self.policy.authorize(identity, Action.DELETE_COMMENT, owner_id=comment.author_id)

        removed = 1 + len(comment.replies)
        try:
            self.db.delete(comment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log_security_event(
            event_type="comment.deleted",
            message=f"Comment {comment_id} deleted ({removed} removed)",
            actor=identity,
            event_category="content",
            entity_type="comment",
            entity_id=comment_id,
        )
        return removed
