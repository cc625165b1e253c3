from datetime import datetime
from typing import Optional, List

from .base import APIModel
from .user import UserSummary


class Media(APIModel):
    id: str
    name: str
    file_name: str
    file_type: str
    file_size: int
    url: str
    uploaded_by: UserSummary
    created_at: Optional[datetime] = None


class MediaResponse(APIModel):
    message: str
    media: Media


class MediaPage(APIModel):
    items: List[Media]
    page: int
    limit: int
    total_pages: int
    total_media: int
