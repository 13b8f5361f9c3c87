"""Validation and transient storage of uploaded source images.

Uploads are checked before anything else happens to them: the declared
content type must be JPEG or PNG, the payload must fit within the upload
limit and it must start with a JPEG or PNG signature. Accepted bytes are
written under the upload directory for the lifetime of one request:

    {upload_dir}/{uuid}-{original filename}

and removed again when the request finishes, however it finishes.
"""
from __future__ import annotations

import logging
import os
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from photofit.config import get_settings
from photofit.errors import InvalidInput, UploadTooLarge

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png"})

_JPEG_SIGNATURE = b"\xff\xd8\xff"
_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def validate_upload(data: bytes, content_type: str | None, *, max_bytes: int | None = None) -> None:
    """Reject anything that is not a JPEG or PNG within the size limit."""

    if max_bytes is None:
        max_bytes = get_settings().max_upload_bytes

    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise InvalidInput(f"Invalid file type {content_type!r}. Only JPG and PNG allowed.")
    if not data:
        raise InvalidInput("No file uploaded")
    if len(data) > max_bytes:
        raise UploadTooLarge(len(data), max_bytes)
    if not (data.startswith(_JPEG_SIGNATURE) or data.startswith(_PNG_SIGNATURE)):
        raise InvalidInput("Uploaded file is not a JPG or PNG image.")


def content_type_for_path(path: str | os.PathLike) -> str:
    mapping = {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
    }
    return mapping.get(Path(path).suffix.lower(), "application/octet-stream")


def _safe_name(filename: str | None) -> str:
    name = Path(filename or "upload").name
    return "".join(ch if ch.isalnum() or ch in "._-" else "_" for ch in name) or "upload"


@contextmanager
def stored_upload(data: bytes, filename: str | None = None, *, upload_dir: Path | None = None) -> Iterator[Path]:
    """Write *data* to a unique file and yield its path; always delete it afterwards."""

    directory = Path(upload_dir or get_settings().upload_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{uuid.uuid4().hex}-{_safe_name(filename)}"
    try:
        path.write_bytes(data)
        logger.debug("Stored upload at %s (%d bytes)", path, len(data))
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.error("Failed to remove upload %s: %s", path, exc)
