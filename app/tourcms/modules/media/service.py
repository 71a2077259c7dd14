from __future__ import annotations

import io
import logging
import os
import re
import secrets
import string
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from PIL import Image, UnidentifiedImageError
from werkzeug.utils import secure_filename

from app.tourcms.audit import record_event
from app.tourcms.constants import (
    ALLOWED_UPLOAD_SUFFIXES,
    DEFAULT_VIDEO_HEIGHT,
    DEFAULT_VIDEO_WIDTH,
    MEDIA_IMAGE_MAX_BYTES,
    MEDIA_IMAGE_TYPES,
    MEDIA_VIDEO_MAX_BYTES,
    MEDIA_VIDEO_TYPES,
    PRODUCT_IMAGE_MAX_BYTES,
    PRODUCT_IMAGE_TYPES,
    UPLOAD_EXTENSIONS,
)
from app.tourcms.errors import ApiError, not_found
from app.tourcms.modules.media.models import Media
from app.tourcms.storage import Storage, StorageError
from app.tourcms.utils import clean_str, iso

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from werkzeug.datastructures import FileStorage
    from app.tourcms.models import User

logger = logging.getLogger(__name__)

PRODUCT_PREFIX = "uploads/products"
IMAGE_PREFIX = "uploads/images"
VIDEO_PREFIX = "uploads/videos"

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Upload:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def read_upload(f: "FileStorage | None") -> Upload:
    """Pull the multipart ``file`` part into memory; a missing part is a 400."""
    if f is None or not f.filename:
        raise ApiError(400, "File not found", "FILE_NOT_FOUND")
    content_type = (f.mimetype or "application/octet-stream").strip().lower()
    return Upload(filename=f.filename, content_type=content_type, data=f.read())


def is_safe_filename(filename: str) -> bool:
    return bool(filename) and ".." not in filename and "/" not in filename and "\\" not in filename


def public_url(key: str) -> str:
    return "/" + key.lstrip("/")


def key_from_url(url: str) -> str:
    return url.lstrip("/")


def _ms_timestamp() -> int:
    return int(time.time() * 1000)


def _random_suffix(n: int = 6) -> str:
    return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(n))


def upload_extension(upload: Upload) -> str:
    """Extension from the client filename when it is one we serve, else from the MIME type."""
    ext = os.path.splitext(upload.filename)[1].lower()
    if ext in ALLOWED_UPLOAD_SUFFIXES:
        return ext
    return UPLOAD_EXTENSIONS.get(upload.content_type, "")


def image_dimensions(data: bytes) -> tuple[int | None, int | None]:
    """Width/height via Pillow; unreadable images give (None, None)."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.info("Could not read image dimensions: %s", e)
        return None, None
    return int(width), int(height)


def serialize_media(m: Media) -> dict[str, Any]:
    return {
        "id": m.id,
        "filename": m.filename,
        "filepath": m.filepath,
        "filesize": m.filesize,
        "mimetype": m.mimetype,
        "mediaType": m.media_type,
        "width": m.width,
        "height": m.height,
        "duration": m.duration,
        "alt": m.alt,
        "title": m.title,
        "uploadedBy": m.uploaded_by,
        "createdAt": iso(m.created_at),
    }


# ---------- Product images (/api/upload) ----------
def store_product_image(storage: Storage, upload: Upload) -> dict[str, Any]:
    if upload.content_type not in PRODUCT_IMAGE_TYPES:
        raise ApiError(
            400,
            "Unsupported file type. Only JPG, PNG and WebP are allowed",
            "INVALID_FILE_TYPE",
        )
    if upload.size > PRODUCT_IMAGE_MAX_BYTES:
        raise ApiError(400, "File too large. Maximum size is 5MB", "FILE_TOO_LARGE")

    # secure_filename strips non-ASCII; keep the extension out of it.
    stem = os.path.splitext(_WHITESPACE.sub("-", upload.filename).lower())[0]
    name = secure_filename(stem) or "image"
    filename = f"{_ms_timestamp()}-{name}{upload_extension(upload)}"
    key = f"{PRODUCT_PREFIX}/{filename}"
    storage.put_bytes(key, upload.data, content_type=upload.content_type)
    logger.info("Stored product image key=%s size=%s", key, upload.size)

    return {
        "success": True,
        "url": public_url(key),
        "filename": filename,
        "size": upload.size,
        "type": upload.content_type,
    }


def delete_product_image(storage: Storage, filename: str | None) -> None:
    if not filename:
        raise ApiError(400, "Filename is required", "FILENAME_REQUIRED")
    if not is_safe_filename(filename):
        raise ApiError(400, "Invalid filename", "INVALID_FILENAME")
    try:
        storage.delete(f"{PRODUCT_PREFIX}/{filename}")
    except FileNotFoundError:
        raise ApiError(404, "File not found", "FILE_NOT_FOUND")
    logger.info("Deleted product image %s", filename)


# ---------- Media library ----------
def upload_media(s: "Session", storage: Storage, upload: Upload, user: "User") -> Media:
    is_video = upload.content_type in MEDIA_VIDEO_TYPES
    if not is_video and upload.content_type not in MEDIA_IMAGE_TYPES:
        raise ApiError(
            400,
            "Unsupported file type. Only JPG, PNG, GIF, WebP, MP4, WebM and OGG are allowed",
            "INVALID_FILE_TYPE",
        )
    max_bytes = MEDIA_VIDEO_MAX_BYTES if is_video else MEDIA_IMAGE_MAX_BYTES
    if upload.size > max_bytes:
        raise ApiError(
            400,
            f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB",
            "FILE_TOO_LARGE",
        )

    stored_name = f"{_ms_timestamp()}-{_random_suffix()}{upload_extension(upload)}"
    key = f"{VIDEO_PREFIX if is_video else IMAGE_PREFIX}/{stored_name}"
    storage.put_bytes(key, upload.data, content_type=upload.content_type)

    if is_video:
        # No probing: record placeholder dimensions.
        width, height, duration = DEFAULT_VIDEO_WIDTH, DEFAULT_VIDEO_HEIGHT, 0.0
    else:
        width, height = image_dimensions(upload.data)
        duration = None

    media = Media(
        filename=upload.filename,
        filepath=public_url(key),
        filesize=upload.size,
        mimetype=upload.content_type,
        media_type="video" if is_video else "image",
        width=width,
        height=height,
        duration=duration,
        uploaded_by=user.email if user else None,
    )
    s.add(media)
    s.flush()

    record_event(
        s,
        actor=user,
        action="media.upload",
        entity_type="Media",
        entity_id=media.id,
        metadata={"filename": upload.filename, "filepath": media.filepath, "size": upload.size},
    )
    return media


def list_media(s: "Session", *, limit: int = 100, search: str | None = None, media_type: str | None = None) -> list[Media]:
    q = s.query(Media)
    if search:
        like = f"%{search}%"
        q = q.filter((Media.filename.ilike(like)) | (Media.title.ilike(like)) | (Media.alt.ilike(like)))
    if media_type in ("image", "video"):
        q = q.filter(Media.media_type == media_type)
    return q.order_by(Media.created_at.desc(), Media.id.desc()).limit(limit).all()


def get_media_or_404(s: "Session", media_id: int) -> Media:
    m = s.get(Media, media_id)
    if not m:
        raise not_found("Media")
    return m


def update_media(s: "Session", m: Media, payload: dict, user: "User") -> Media:
    changed = []
    for key in ("alt", "title"):
        if key in payload:
            setattr(m, key, clean_str(payload.get(key)))
            changed.append(key)
    s.flush()
    record_event(
        s,
        actor=user,
        action="media.edit",
        entity_type="Media",
        entity_id=m.id,
        metadata={"changed": changed},
    )
    return m


def delete_media(s: "Session", storage: Storage, m: Media, user: "User") -> None:
    try:
        storage.delete(key_from_url(m.filepath))
    except (OSError, StorageError) as e:
        # The row goes regardless; an orphaned or missing file is only logged.
        logger.warning("Could not delete media file %s: %s", m.filepath, e)
    record_event(
        s,
        actor=user,
        action="media.delete",
        entity_type="Media",
        entity_id=m.id,
        metadata={"filename": m.filename, "filepath": m.filepath},
    )
    s.delete(m)
