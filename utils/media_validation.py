"""Validation helpers for uploaded homework photos."""

import base64
from typing import Optional

from fastapi import HTTPException, UploadFile

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/bmp",
    "image/tiff",
    "text/plain",
    "application/octet-stream",
}


def ensure_base64_image(raw: bytes) -> bytes:
    """Return base64-encoded image bytes, encoding binary input when necessary."""
    try:
        raw.decode("utf-8")
        return raw.strip()
    except Exception:
        return base64.b64encode(raw)


def validate_image_file(image_file: UploadFile) -> None:
    """Reject uploads whose declared content type is not an image.

    Clients that send the picker's base64 text declare `text/plain` or
    `application/octet-stream`; both are accepted and decoded later.
    """
    if image_file.content_type:
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")


async def read_image_upload(image_file: Optional[UploadFile]) -> Optional[bytes]:
    """Read an uploaded image as base64 bytes.

    Returns None when no file was sent or the file is empty, which stands for
    a cancelled selection.
    """
    if image_file is None:
        return None
    validate_image_file(image_file)
    raw = await image_file.read()
    if not raw or not raw.strip():
        return None
    return ensure_base64_image(raw)
