from fastapi import APIRouter, Depends, status
from typing import List

from newsdesk.api.deps import get_category_service
from newsdesk.core.auth import Identity, get_current_identity
from newsdesk.schemas.base import MessageResponse
from newsdesk.schemas.category import (
    Category as CategorySchema,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from newsdesk.services.category_service import CategoryService

router = APIRouter()


@router.get("", response_model=List[CategorySchema])
def get_categories(categories: CategoryService = Depends(get_category_service)):
    """Get all active categories."""
    return [CategorySchema.model_validate(c) for c in categories.list_active()]


@router.get("/{slug}", response_model=CategorySchema)
def get_category(slug: str, categories: CategoryService = Depends(get_category_service)):
    return CategorySchema.model_validate(categories.get_active_by_slug(slug))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    identity: Identity = Depends(get_current_identity),
    categories: CategoryService = Depends(get_category_service),
):
    """Create a category. Editors and admins only."""
    category = categories.create(identity, data)
    return CategoryResponse(
        message="Category created successfully",
        category=CategorySchema.model_validate(category),
    )


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    data: CategoryUpdate,
    identity: Identity = Depends(get_current_identity),
    categories: CategoryService = Depends(get_category_service),
):
    """Update a category. Editors and admins only."""
    category = categories.update(identity, category_id, data)
    return CategoryResponse(
        message="Category updated successfully",
        category=CategorySchema.model_validate(category),
    )


@router.delete("/{category_id}", response_model=MessageResponse)
def delete_category(
    category_id: str,
    identity: Identity = Depends(get_current_identity),
    categories: CategoryService = Depends(get_category_service),
):
    """
    Delete a category. Admins only.

    A category that articles still use is deactivated instead, so it drops
    out of the public list but the articles keep their reference.
    """
    if categories.delete(identity, category_id):
        return MessageResponse(message="Category deleted successfully")
    return MessageResponse(message="Category is in use and has been deactivated")
