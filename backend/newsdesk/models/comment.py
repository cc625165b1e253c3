from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from newsdesk.core.database import Base, generate_id, utcnow


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=generate_id)
    article_id = Column(String(36), ForeignKey("articles.id"), nullable=False, index=True)
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    # Null for top-level comments; replies always point at a top-level comment
    parent_comment_id = Column(
        String(36), ForeignKey("comments.id"), nullable=True, index=True
    )

    approved = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    article = relationship("Article", back_populates="comments")
    author = relationship("User", back_populates="comments")
    parent_comment = relationship(
        "Comment", remote_side=[id], back_populates="replies"
    )
    replies = relationship(
        "Comment",
        back_populates="parent_comment",
        cascade="all",
        order_by="Comment.created_at",
    )

    @property
    def is_reply(self) -> bool:
        return self.parent_comment_id is not None
