"""
Disk storage for uploaded files.

Files are written under the media root with a random name whose extension
follows the MIME type, and served back under the configured URL prefix.
Removal is best-effort: a file that is already gone is not an error.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

from fastapi import Request

from newsdesk.core.errors import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# Stored names take their extension from the accepted MIME type, never the client name
EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
    "text/plain": ".txt",
}


@dataclass(frozen=True)
class StoredFile:
    """Descriptor of a file written by FileStorage."""

    file_name: str
    file_type: str
    file_size: int
    url: str
    original_name: str


class FileStorage:
    """Validates, stores and removes uploaded files."""

    def __init__(
        self,
        root: str,
        url_prefix: str = "/uploads",
        max_size: int = 10 * 1024 * 1024,
        allowed_types: Optional[Iterable[str]] = None,
    ):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_size = max_size
        self.allowed_types = set(allowed_types or [])
        self.root.mkdir(parents=True, exist_ok=True)

    def save(
        self,
        source: BinaryIO,
        original_name: Optional[str],
        content_type: Optional[str],
    ) -> StoredFile:
        """
        Validate and store an uploaded file.

        Args:
            source: Readable binary stream with the upload body
            original_name: File name as sent by the client
            content_type: MIME type as sent by the client

        Returns:
            StoredFile describing the written file

        Raises:
            ValidationError: If the type is not allowed, or the file is empty or too large
        """
        if not original_name:
            raise ValidationError("No file uploaded")

        content_type = (content_type or "").split(";")[0].strip().lower()
        if self.allowed_types and content_type not in self.allowed_types:
            logger.warning(f"Rejected upload '{original_name}' with type '{content_type}'")
            raise ValidationError("Unsupported file type")

        file_name = f"{uuid.uuid4().hex}{EXTENSIONS.get(content_type, '')}"
        path = self.root / file_name

        size = 0
        try:
            with open(path, "wb") as out:
                while True:
                    chunk = source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_size:
                        raise ValidationError("File is too large")
                    out.write(chunk)
        except ValidationError:
            path.unlink(missing_ok=True)
            logger.warning(f"Rejected upload '{original_name}': exceeds {self.max_size} bytes")
            raise

        if size == 0:
            path.unlink(missing_ok=True)
            raise ValidationError("Uploaded file is empty")

        logger.info(f"Stored upload '{original_name}' as {file_name} ({size} bytes)")
        return StoredFile(
            file_name=file_name,
            file_type=content_type,
            file_size=size,
            url=f"{self.url_prefix}/{file_name}",
            original_name=original_name,
        )

    def path_for(self, url: str) -> Optional[Path]:
        """Map a stored-file URL back to its path under the media root."""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        # Only the final component is used so URLs cannot escape the root
        name = Path(url[len(self.url_prefix) + 1 :]).name
        if not name:
            return None
        return self.root / name

    def delete(self, url: str) -> bool:
        """
        Remove a stored file, best-effort.

        Returns:
            True if a file was removed, False if it was already absent or could not be removed
        """
        path = self.path_for(url)
        if path is None:
            logger.warning(f"Not a stored file URL: {url}")
            return False

        try:
            path.unlink()
        except FileNotFoundError:
            logger.info(f"Stored file already absent: {path.name}")
            return False
        except OSError as e:
            logger.warning(f"Could not remove stored file {path.name}: {e}")
            return False

        logger.info(f"Removed stored file {path.name}")
        return True


def get_file_storage(request: Request) -> FileStorage:
    return request.app.state.file_storage
