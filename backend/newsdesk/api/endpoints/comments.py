from fastapi import APIRouter, Depends

from newsdesk.api.deps import get_comment_service
from newsdesk.core.auth import Identity, get_current_identity
from newsdesk.schemas.base import MessageResponse
from newsdesk.schemas.comment import (
    Comment as CommentSchema,
    CommentModerate,
    CommentResponse,
)
from newsdesk.services.comment_service import CommentService

router = APIRouter()


@router.put("/{comment_id}/moderate", response_model=CommentResponse)
def moderate_comment(
    comment_id: str,
    data: CommentModerate,
    identity: Identity = Depends(get_current_identity),
    comments: CommentService = Depends(get_comment_service),
):
    """Approve or hide a comment. Editors and admins only."""
    comment = comments.moderate(identity, comment_id, data.approved)
    message = "Comment approved" if comment.approved else "Comment rejected"
    return CommentResponse(message=message, comment=CommentSchema.model_validate(comment))


@router.delete("/{comment_id}", response_model=MessageResponse)
def delete_comment(
    comment_id: str,
    identity: Identity = Depends(get_current_identity),
    comments: CommentService = Depends(get_comment_service),
):
    """Delete a comment; deleting a top-level comment also removes its replies."""
    comments.delete(identity, comment_id)
    return MessageResponse(message="Comment deleted successfully")
