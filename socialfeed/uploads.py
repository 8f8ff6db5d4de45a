"""
Image upload intake: validates the multipart file before handlers see it.
"""

from __future__ import annotations

import mimetypes
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, File, UploadFile

from socialfeed.config import Settings
from socialfeed.dependencies import get_app_settings
from socialfeed.errors import ValidationError

ALLOWED_IMAGE_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
)


@dataclass
class ImageUpload:
    data: bytes
    filename: str
    content_type: str
    size: int


def generate_file_name(original_name: str, content_type: Optional[str] = None) -> str:
    """Return ``<epoch-millis>-<8 hex>.<ext>`` keeping the original extension."""
    if "." in original_name:
        extension = original_name.rsplit(".", 1)[1].lower()
    else:
        guessed = mimetypes.guess_extension(content_type or "") or ".bin"
        extension = guessed.lstrip(".")
    timestamp = int(time.time() * 1000)
    unique_id = uuid.uuid4().hex[:8]
    return f"{timestamp}-{unique_id}.{extension}"


async def read_image_upload(
    image: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_app_settings),
) -> ImageUpload:
    if image is None or not image.filename:
        raise ValidationError("No image file provided")

    content_type = (image.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed")
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Only JPEG, PNG, GIF, and WebP images are allowed")

    # One byte past the ceiling is enough to detect an oversized file.
    data = await image.read(settings.max_image_bytes + 1)
    if len(data) > settings.max_image_bytes:
        limit_mb = settings.max_image_bytes // (1024 * 1024)
        raise ValidationError(f"File size too large. Maximum size is {limit_mb}MB")
    if not data:
        raise ValidationError("No image file provided")

    return ImageUpload(
        data=data,
        filename=image.filename,
        content_type=content_type,
        size=len(data),
    )


def image_proxy_url(api_prefix: str, file_name: str) -> str:
    """URL under which the API serves a stored image."""
    return f"{api_prefix.rstrip('/')}/posts/image/{file_name}"
