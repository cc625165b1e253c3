import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    ForeignKey,
    JSON,
    Enum,
    Table,
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import relationship
from newsdesk.core.database import Base, generate_id, utcnow


class ArticleStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


# Many-to-many association table for articles and categories
article_categories = Table(
    "article_categories",
    Base.metadata,
    Column(
        "article_id",
        String(36),
        ForeignKey("articles.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "category_id",
        String(36),
        ForeignKey("categories.id"),
        primary_key=True,
        index=True,
    ),
)


class ArticleTag(Base):
    __tablename__ = "article_tags"

    article_id = Column(
        String(36), ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True
    )
    name = Column(String(50), primary_key=True, index=True)

    def __init__(self, name: str):
        self.name = name


class Article(Base):
    __tablename__ = "articles"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    summary = Column(Text)

    # Owner, never reassigned after creation
    author_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    featured_image = Column(String, nullable=True)
    gallery = Column(JSON, default=list)  # List of file URLs

    status = Column(
        Enum(ArticleStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=ArticleStatus.DRAFT,
        index=True,
    )
    view_count = Column(Integer, default=0, nullable=False)
    is_breaking_news = Column(Boolean, default=False, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    publish_date = Column(DateTime(timezone=True), nullable=True)

    # Metadata
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    author = relationship("User", back_populates="articles")
    categories = relationship(
        "Category", secondary=article_categories, back_populates="articles"
    )
    tag_links = relationship(
        "ArticleTag", cascade="all, delete-orphan", order_by="ArticleTag.name"
    )
    tags = association_proxy("tag_links", "name")
    # Deleting an article removes its whole comment thread in the same flush
    comments = relationship("Comment", back_populates="article", cascade="all")
