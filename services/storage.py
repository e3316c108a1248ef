"""
Filesystem storage for memory photos.
Supports images (jpg, png, gif, webp, heic).
"""
import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from config import MAX_UPLOAD_BYTES, UPLOAD_DIR
from exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp", "image/heic"}
MIME_BY_EXTENSION = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "heic": "image/heic",
}
PUBLIC_PREFIX = "/uploads/memories"


@dataclass
class PhotoUpload:
    filename: str
    content_type: Optional[str]
    content: bytes


def resolve_content_type(photo: PhotoUpload) -> Optional[str]:
    """Content type from the upload, falling back to the file extension."""
    if photo.content_type and photo.content_type != "application/octet-stream":
        return photo.content_type
    if photo.filename and "." in photo.filename:
        return MIME_BY_EXTENSION.get(photo.filename.lower().rsplit(".", 1)[-1])
    return None


def read_limited(stream: BinaryIO) -> bytes:
    """Read at most one byte past the size limit; validate_photo rejects the rest."""
    return stream.read(MAX_UPLOAD_BYTES + 1)


def validate_photo(photo: PhotoUpload) -> None:
    content_type = resolve_content_type(photo)
    if not content_type or content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            f"File type not allowed. Allowed: jpg, png, gif, webp, heic. Received: {content_type or 'unknown'}"
        )
    if not photo.content:
        raise ValidationError("Empty file received")
    if len(photo.content) > MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"File too large. Maximum size: {MAX_UPLOAD_BYTES / (1024 * 1024):.1f} MB"
        )


class PhotoStorage:
    def __init__(self, base_dir: Path = UPLOAD_DIR):
        self.memories_dir = Path(base_dir) / "memories"

    def save(self, photo: PhotoUpload) -> str:
        """Write the photo under a unique name and return its public URL."""
        self.memories_dir.mkdir(parents=True, exist_ok=True)
        ext = Path(photo.filename or "").suffix.lower() or ".jpg"
        filename = f"{uuid.uuid4().hex}{ext}"
        with open(self.memories_dir / filename, "wb") as buffer:
            buffer.write(photo.content)
        return f"{PUBLIC_PREFIX}/{filename}"

    def path_for(self, url: str) -> Optional[Path]:
        if not url or not url.startswith(PUBLIC_PREFIX + "/"):
            return None
        name = url[len(PUBLIC_PREFIX) + 1:]
        if "/" in name or name in ("", ".", ".."):
            return None
        return self.memories_dir / name

    def delete(self, url: str) -> bool:
        """Best-effort removal; a missing file is not an error."""
        path = self.path_for(url)
        if path is None:
            return False
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not remove %s: %s", path, e)
            return False


_default_storage = PhotoStorage()


def get_storage() -> PhotoStorage:
    return _default_storage
