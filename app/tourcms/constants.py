"""
Central constants for the storefront/CMS backend.
"""
from __future__ import annotations

# Product image upload (/api/upload)
PRODUCT_IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})
PRODUCT_IMAGE_MAX_BYTES = 5 * 1024 * 1024

# Media library upload (/api/media/upload)
MEDIA_IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"})
MEDIA_VIDEO_TYPES = frozenset({"video/mp4", "video/webm", "video/ogg"})
MEDIA_IMAGE_MAX_BYTES = 5 * 1024 * 1024
MEDIA_VIDEO_MAX_BYTES = 50 * 1024 * 1024

# Placeholder dimensions recorded for videos (no probing)
DEFAULT_VIDEO_WIDTH = 1920
DEFAULT_VIDEO_HEIGHT = 1080

# Stored extension by upload MIME type, used when the client name has none we accept
UPLOAD_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/ogg": ".ogg",
}
ALLOWED_UPLOAD_SUFFIXES = frozenset(UPLOAD_EXTENSIONS.values()) | {".jpeg"}

VIDEO_CONTENT_TYPES = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".ogg": "video/ogg",
}

# Visitor tracking
VISITED_TODAY_COOKIE = "visited_today"
PAGE_TYPE_PRODUCT = "product"

# Partner section shown when nothing is configured
DEFAULT_PARTNER_SECTION = {
    "title": "Rekanan Kami",
    "description": "Dipercaya oleh partner terbaik",
    "isActive": True,
}

DEFAULT_WHATSAPP_NUMBER = "6281234567890"
