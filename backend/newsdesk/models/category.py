from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from newsdesk.core.database import Base, generate_id, utcnow


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), unique=True, nullable=False, index=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    parent_category_id = Column(
        String(36), ForeignKey("categories.id"), nullable=True, index=True
    )
    image = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)  # Soft delete flag
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    parent_category = relationship("Category", remote_side=[id])
    articles = relationship(
        "Article", secondary="article_categories", back_populates="categories"
    )
