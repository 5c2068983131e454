from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from starlette.datastructures import UploadFile

from zkarchive.config import UPLOAD_DIR

logger = logging.getLogger("zkarchive.storage")

os.makedirs(UPLOAD_DIR, exist_ok=True)

UPLOAD_ROOT = Path(UPLOAD_DIR).resolve()
CHUNK_SIZE = 1024 * 1024


class FileTooLarge(Exception):
    def __init__(self, limit_bytes: int) -> None:
        super().__init__(f"upload exceeds {limit_bytes} bytes")
        self.limit_bytes = limit_bytes

    @property
    def detail(self) -> str:
        return f"File too large. Maximum allowed size is {self.limit_bytes / (1024 * 1024):.1f} MB."


def _reserve_path(ext: str) -> tuple[str, Path]:
    stored_name = f"{uuid.uuid4()}{ext}"
    return stored_name, UPLOAD_ROOT / stored_name


async def save_upload(upload_file: UploadFile, limit_bytes: int) -> tuple[str, int]:
    """Stream ``upload_file`` into the upload directory under a generated name.

    Returns ``(stored_name, size_bytes)``. Raises :class:`FileTooLarge` once more
    than ``limit_bytes`` have been read; the partial blob is removed first.
    """
    ext = os.path.splitext(upload_file.filename or "")[1]
    stored_name, path = _reserve_path(ext)
    UPLOAD_ROOT.mkdir(parents=True, exist_ok=True)

    size = 0
    try:
        with path.open("wb") as out:
            while True:
                chunk = await upload_file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > limit_bytes:
                    raise FileTooLarge(limit_bytes)
                out.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    finally:
        await upload_file.close()
    return stored_name, size


def remove_blob(stored_name: str) -> None:
    path = resolve_blob(stored_name)
    if path is not None and path.is_file():
        path.unlink()
        logger.info("event=blob_removed stored_name=%s", stored_name)


def resolve_blob(stored_name: str) -> Optional[Path]:
    """Path of a stored blob, or ``None`` when the name points outside the upload directory."""
    try:
        path = (UPLOAD_ROOT / stored_name).resolve()
        path.relative_to(UPLOAD_ROOT)
    except (ValueError, RuntimeError):
        return None
    return path
