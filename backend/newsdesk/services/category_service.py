"""
Category lifecycle: editorial create / update, admin-only delete.

A category still referenced by articles is deactivated instead of removed,
so Article.categories never points at a missing record.
"""

import logging
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from newsdesk.core.access import AccessPolicy, Action
from newsdesk.core.auth import Identity
from newsdesk.core.errors import NotFound, ValidationError
from newsdesk.core.logging_config import log_security_event
from newsdesk.models.article import article_categories
from newsdesk.models.category import Category
from newsdesk.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: Session, policy: AccessPolicy):
        self.db = db
        self.policy = policy

    def list_active(self) -> List[Category]:
        return (
            self.db.query(Category)
            .filter(Category.active == True)
            .order_by(Category.name)
            .all()
        )

    def get(self, category_id: str) -> Category:
        category = self.db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFound("Category not found")
        return category

    def get_active_by_slug(self, slug: str) -> Category:
        category = (
            self.db.query(Category)
            .filter(Category.slug == slug, Category.active == True)
            .first()
        )
        if not category:
            raise NotFound("Category not found")
        return category

    def create(self, identity: Optional[Identity], data: CategoryCreate) -> Category:
        self.policy.authorize(identity, Action.CREATE_CATEGORY)

        if self.db.query(Category).filter(Category.slug == data.slug).first():
            raise ValidationError("Category with this slug already exists")
        self._ensure_name_free(data.name)

        parent = None
        if data.parent_category:
            parent = self._resolve_parent(data.parent_category)

        category = Category(
            name=data.name,
            slug=data.slug,
            description=data.description,
            parent_category=parent,
            image=data.image,
            active=True,
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)

        logger.info(f"Category {category.slug} created by {identity.id}")
        return category

    def update(
        self, identity: Optional[Identity], category_id: str, data: CategoryUpdate
    ) -> Category:
        self.policy.authorize(identity, Action.UPDATE_CATEGORY)
        category = self.get(category_id)

        update_data = data.model_dump(exclude_unset=True)

        if "name" in update_data and update_data["name"] is not None:
            self._ensure_name_free(update_data["name"], exclude_id=category.id)
            category.name = update_data["name"]

        if "parent_category" in update_data:
            parent_id = update_data["parent_category"]
            if parent_id:
                parent = self._resolve_parent(parent_id)
                self._ensure_no_cycle(category, parent)
                category.parent_category = parent
            else:
                category.parent_category = None

        for key in ("description", "image"):
            if key in update_data:
                setattr(category, key, update_data[key])

        if update_data.get("active") is not None:
            category.active = update_data["active"]

        self.db.commit()
        self.db.refresh(category)
        return category

    def delete(self, identity: Optional[Identity], category_id: str) -> bool:
        """
        Delete a category, or deactivate it if articles still use it.

        Returns:
            True if the record was removed, False if it was deactivated
        """
        self.policy.authorize(identity, Action.DELETE_CATEGORY)
        category = self.get(category_id)

        references = (
            self.db.query(func.count())
            .select_from(article_categories)
            .filter(article_categories.c.category_id == category.id)
            .scalar()
        )

        if references > 0:
            category.active = False
            self.db.commit()
            logger.info(
                f"Category {category.slug} deactivated ({references} articles still reference it)"
            )
            return False

        # Children of a removed category become roots
        self.db.query(Category).filter(
            Category.parent_category_id == category.id
        ).update({Category.parent_category_id: None}, synchronize_session="fetch")

        self.db.delete(category)
        self.db.commit()

        log_security_event(
            event_type="category.deleted",
            message=f"Category {category.slug} deleted",
            actor=identity,
            event_category="content",
            entity_type="category",
            entity_id=category_id,
        )
        return True

    def _ensure_name_free(self, name: str, exclude_id: Optional[str] = None) -> None:
        query = self.db.query(Category).filter(Category.name == name)
        if exclude_id:
            query = query.filter(Category.id != exclude_id)
        if query.first():
            raise ValidationError("Category with this name already exists")

    def _resolve_parent(self, parent_id: str) -> Category:
        parent = self.db.query(Category).filter(Category.id == parent_id).first()
        if not parent:
            raise ValidationError("Parent category not found")
        return parent

    @staticmethod
    def _ensure_no_cycle(category: Category, parent: Category) -> None:
        """Reject a parent that is the category itself or one of its descendants."""
        seen = set()
        node = parent
        while node is not None and node.id not in seen:
            if node.id == category.id:
                raise ValidationError("Category hierarchy cannot contain cycles")
            seen.add(node.id)
            node = node.parent_category
