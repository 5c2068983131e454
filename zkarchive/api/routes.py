from __future__ import annotations

import logging
import uuid
from time import monotonic
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse
from starlette.datastructures import FormData, UploadFile as StarletteUploadFile

from zkarchive.config import CACHE_MAX_AGE_SECONDS, MAX_FILE_SIZE
from zkarchive.core.exceptions import GENERIC_ERROR
from zkarchive.core.metrics import metrics
from zkarchive.models import Archive, utc_now_iso
from zkarchive.storage import FileTooLarge, remove_blob, resolve_blob, save_upload
from zkarchive.store import archive_store

router = APIRouter()

logger = logging.getLogger("zkarchive")

STARTED_AT = monotonic()
DEFAULT_NAME = "encrypted-file"
DEFAULT_MIME_TYPE = "application/octet-stream"


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "uptime": monotonic() - STARTED_AT,
        "timestamp": utc_now_iso(),
    }


@router.post("/api/upload", status_code=201)
async def upload(request: Request):
    """Store an already-encrypted blob and record its metadata.

    multipart/form-data:
     - file: the encrypted blob (a part with a filename parameter, possibly empty)
     - hash: client-side identifier (content hash, note id, ...), required
     - walletAddress: owner wallet, optional
    """
    form = await request.form()
    try:
        return await _store_upload(form)
    finally:
        await form.close()


def _text_field(form: FormData, name: str) -> Optional[str]:
    value = form.get(name)
    return value if isinstance(value, str) else None


async def _store_upload(form: FormData) -> dict:
    file = form.get("file")
    if not isinstance(file, StarletteUploadFile):
        raise HTTPException(status_code=400, detail="File is required")
    archive_hash = _text_field(form, "hash")
    if not archive_hash:
        raise HTTPException(status_code=400, detail="Field 'hash' is required")
    wallet_address = _text_field(form, "walletAddress")

    try:
        stored_name, size_bytes = await save_upload(file, MAX_FILE_SIZE)
    except FileTooLarge as exc:
        metrics.record_rejection("size")
        logger.warning(
            "event=upload_rejected reason=max_size filename=%s limit_bytes=%s",
            file.filename,
            exc.limit_bytes,
        )
        raise HTTPException(status_code=413, detail=exc.detail)
    except Exception as exc:
        logger.error("event=upload_error stage=write filename=%s error=%s", file.filename, exc, exc_info=exc)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR)

    try:
        archive = Archive(
            id=str(uuid.uuid4()),
            name=file.filename or DEFAULT_NAME,
            size=size_bytes,
            mime_type=file.content_type or DEFAULT_MIME_TYPE,
            hash=archive_hash,
            wallet_address=wallet_address or None,
            storage_path=stored_name,
            created_at=utc_now_iso(),
        )
        persisted = archive_store.add(archive)
    except Exception as exc:
        logger.error("event=upload_error stage=record stored_name=%s error=%s", stored_name, exc, exc_info=exc)
        remove_blob(stored_name)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR)

    if not persisted:
        logger.error("event=upload_error stage=persist archive_id=%s stored_name=%s", archive.id, stored_name)
        remove_blob(stored_name)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR)

    metrics.record_upload(size_bytes)
    logger.info(
        "event=upload_success archive_id=%s stored_name=%s size_bytes=%s content_type=%s wallet=%s",
        archive.id,
        stored_name,
        size_bytes,
        archive.mime_type,
        archive.wallet_address or "-",
    )
    return {"success": True, "archive": archive.to_json()}


@router.get("/api/files")
async def list_files(wallet: Optional[str] = None):
    items = archive_store.list_archives(wallet)
    return {"items": [a.to_json() for a in items]}


@router.get("/api/files/{archive_id}")
async def get_file(archive_id: str):
    """Metadata only; the blob itself is under /uploads."""
    archive = archive_store.get_archive(archive_id)
    if archive is None:
        raise HTTPException(status_code=404, detail="Archive not found")
    return {"archive": archive.to_json()}


@router.get("/metrics")
async def metrics_snapshot():
    response = JSONResponse(metrics.report(archive_store))
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    return response


@router.api_route("/uploads/{filename:path}", methods=["GET", "HEAD"])
async def serve_upload(filename: str, request: Request):
    path = resolve_blob(filename)
    if path is None or not path.is_file():
        raise HTTPException(status_code=404, detail="Not found")

    if request.method == "GET":
        metrics.record_download()
        logger.info("event=file_served filename=%s", filename)

    response = FileResponse(path)
    response.headers["Cache-Control"] = f"public, max-age={CACHE_MAX_AGE_SECONDS}"
    return response
