"""
Storage of uploaded images on the local filesystem.

Images are written to ``settings.upload_dir`` under a random name that
keeps the extension implied by the MIME type.  Deleting an image is
best effort: the place or user it belonged to is already gone, so a
failure is only logged.
"""

import logging
import os
import uuid
from pathlib import Path

from fastapi import UploadFile

from .config import settings
from .errors import InvalidInputs


logger = logging.getLogger(__name__)

MIME_TYPE_MAP = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}


def get_upload_dir() -> Path:
    path = Path(settings.upload_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


async def save_image(upload: UploadFile) -> str:
    """Validate and store an uploaded image, returning its path."""
    extension = MIME_TYPE_MAP.get(upload.content_type or "")
    if extension is None:
        raise InvalidInputs("Invalid mime type!")

    # Read one byte past the limit to detect oversized files.
    content = await upload.read(settings.max_image_bytes + 1)
    if len(content) > settings.max_image_bytes:
        raise InvalidInputs("Image is too large.")
    if not content:
        raise InvalidInputs("Image is empty.")

    path = get_upload_dir() / f"{uuid.uuid4()}.{extension}"
    path.write_bytes(content)
    logger.debug("Stored upload %s as %s", upload.filename, path)
    return path.as_posix()


def remove_image(path: str) -> None:
    """Delete a stored image; failures are logged, never raised."""
    try:
        os.remove(path)
    except OSError as exc:
        logger.warning("Could not delete image %s: %s", path, exc)
    else:
        logger.info("Deleted image %s", path)
