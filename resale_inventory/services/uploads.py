"""Local-disk storage for uploaded item photos and shipping labels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO
from uuid import uuid4

from ..core.config import settings

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"
COPY_CHUNK_BYTES = 64 * 1024

ALLOWED_IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/heic": ".heic",
}


class UploadTooLarge(Exception):
    pass


@dataclass(frozen=True)
class StoredImage:
    filename: str
    url: str
    size: int


def uploads_root() -> Path:
    return Path(settings.UPLOADS_DIR)


def public_url(filename: str) -> str:
    return f"{settings.public_base_url}{UPLOADS_URL_PREFIX}/{filename}"


def store_image(
    original_name: str,
    content_type: str,
    file_data: IO[bytes],
    *,
    root: Path | None = None,
    max_bytes: int | None = None,
) -> StoredImage:
    """Copy an uploaded image to disk under a fresh random name.

    The extension is taken from the content type only, so ``StaticFiles``
    never serves an upload as anything but an image. The copy stops as soon
    as ``max_bytes`` is exceeded.
    """

    ext = ALLOWED_IMAGE_TYPES.get(content_type)
    if ext is None:
        raise ValueError(f"Unsupported image type: {content_type}")

    root = root or uploads_root()
    max_bytes = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    root.mkdir(parents=True, exist_ok=True)

    filename = f"{uuid4().hex}{ext}"
    dest_path = root / filename

    try:
        file_data.seek(0)
    except (AttributeError, OSError):
        pass

    size = 0
    try:
        with dest_path.open("wb") as buffer:
            while chunk := file_data.read(COPY_CHUNK_BYTES):
                size += len(chunk)
                if size > max_bytes:
                    raise UploadTooLarge(f"Image exceeds the {max_bytes} byte limit")
                buffer.write(chunk)
        if size == 0:
            raise ValueError("Uploaded image is empty")
    except (UploadTooLarge, ValueError):
        dest_path.unlink(missing_ok=True)
        raise

    logger.info(
        "upload.image.stored",
        extra={
            "extra_data": {
                "filename": filename,
                "original_name": original_name,
                "content_type": content_type,
                "size": size,
            }
        },
    )
    return StoredImage(filename=filename, url=public_url(filename), size=size)
