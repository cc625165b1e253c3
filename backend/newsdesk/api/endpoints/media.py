from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import Optional

from newsdesk.api.deps import get_media_service
from newsdesk.api.validation import PaginationParams, pagination
from newsdesk.core.auth import Identity, get_current_identity
from newsdesk.schemas.base import MessageResponse, total_pages
from newsdesk.schemas.media import Media as MediaSchema, MediaPage, MediaResponse
from newsdesk.services.media_service import MediaService

router = APIRouter()


@router.post("/upload", response_model=MediaResponse, status_code=status.HTTP_201_CREATED)
def upload_media(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None, max_length=255),
    identity: Identity = Depends(get_current_identity),
    media: MediaService = Depends(get_media_service),
):
    """Upload an image or PDF to the media library."""
    item = media.upload(identity, file.file, file.filename, file.content_type, name=name)
    return MediaResponse(
        message="File uploaded successfully",
        media=MediaSchema.model_validate(item),
    )


@router.get("", response_model=MediaPage)
def get_media(
    paging: PaginationParams = Depends(pagination(default_limit=20)),
    identity: Identity = Depends(get_current_identity),
    media: MediaService = Depends(get_media_service),
):
    """List uploads. Editors and admins see all files, other users their own."""
    items, total = media.list_media(identity, paging.page, paging.limit)
    return MediaPage(
        items=[MediaSchema.model_validate(m) for m in items],
        page=paging.page,
        limit=paging.limit,
        total_pages=total_pages(total, paging.limit),
        total_media=total,
    )


@router.delete("/{media_id}", response_model=MessageResponse)
def delete_media(
    media_id: str,
    identity: Identity = Depends(get_current_identity),
    media: MediaService = Depends(get_media_service),
):
    """Delete a file record and the stored file. Uploader or admin only."""
    media.delete(identity, media_id)
    return MessageResponse(message="File deleted successfully")
