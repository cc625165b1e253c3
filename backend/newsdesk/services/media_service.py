"""
Media library: uploaded files and their records.
"""

import logging
from typing import BinaryIO, List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload

from newsdesk.core.access import AccessPolicy, Action
from newsdesk.core.auth import Identity
from newsdesk.core.errors import NotFound, Unauthorized
from newsdesk.core.logging_config import log_security_event
from newsdesk.models.media import Media
from newsdesk.services.file_storage import FileStorage

logger = logging.getLogger(__name__)


class MediaService:
    def __init__(self, db: Session, policy: AccessPolicy, storage: FileStorage):
        self.db = db
        self.policy = policy
        self.storage = storage

    def get(self, media_id: str) -> Media:
        media = (
            self.db.query(Media)
            .options(selectinload(Media.uploaded_by))
            .filter(Media.id == media_id)
            .first()
        )
        if not media:
            raise NotFound("File not found")
        return media

    def upload(
        self,
        identity: Optional[Identity],
        source: BinaryIO,
        original_name: Optional[str],
        content_type: Optional[str],
        name: Optional[str] = None,
    ) -> Media:
        """Store an uploaded file and record it; the display name defaults to the file name."""
        self.policy.authorize(identity, Action.UPLOAD_MEDIA)
        stored = self.storage.save(source, original_name, content_type)

        media = Media(
            name=(name or "").strip() or stored.original_name,
            file_name=stored.file_name,
            file_type=stored.file_type,
            file_size=stored.file_size,
            url=stored.url,
            uploaded_by_id=identity.id,
        )
        self.db.add(media)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.storage.delete(stored.url)
            raise

        logger.info(f"Media {media.id} uploaded by {identity.id}: {stored.file_name}")
        return self.get(media.id)

    def list_media(
        self, identity: Optional[Identity], page: int = 1, limit: int = 20
    ) -> Tuple[List[Media], int]:
        """List uploads newest first; editors and admins see everyone's files."""
        self.policy.authorize(identity, Action.LIST_MEDIA)

        q = self.db.query(Media).options(selectinload(Media.uploaded_by))
        if not self.policy.is_elevated(identity):
            q = q.filter(Media.uploaded_by_id == identity.id)

        total = q.count()
        items = (
            q.order_by(Media.created_at.desc(), Media.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def delete(self, identity: Optional[Identity], media_id: str) -> None:
        """Remove the record, then the stored file. A missing file is not an error."""
        if identity is None:
            raise Unauthorized("Authentication required")
        media = self.get(media_id)
        self.policy.authorize(identity, Action.DELETE_MEDIA, owner_id=media.uploaded_by_id)

        url = media.url
        self.db.delete(media)
        self.db.commit()

        if not self.storage.delete(url):
            logger.warning(f"Media {media_id} removed but its file could not be deleted")

        log_security_event(
            event_type="media.deleted",
            message=f"Media {media_id} deleted",
            actor=identity,
            event_category="content",
            entity_type="media",
            entity_id=media_id,
        )
