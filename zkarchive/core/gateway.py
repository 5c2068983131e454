import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from zkarchive.core.exceptions import error_response
from zkarchive.core.metrics import metrics
from zkarchive.storage import FileTooLarge

logger = logging.getLogger("zkarchive")

# Room for multipart boundaries and the text fields around the file part
FORM_OVERHEAD_BYTES = 64 * 1024


def register_gateway(app: FastAPI, allowed_origins: list[str], max_file_bytes: int) -> None:
    """Install body-size limiting, CORS headers and the origin allow-list, innermost first."""
    allowed = frozenset(allowed_origins)

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        content_length = request.headers.get("content-length", "")
        if content_length.isdigit() and int(content_length) > max_file_bytes + FORM_OVERHEAD_BYTES:
            logger.warning(
                "event=upload_rejected reason=content_length path=%s content_length=%s limit_bytes=%s",
                request.url.path,
                content_length,
                max_file_bytes,
            )
            metrics.record_rejection("size")
            return error_response(FileTooLarge(max_file_bytes).detail, 413)
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(allowed_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        allow_credentials=False,
    )

    @app.middleware("http")
    async def enforce_allowed_origin(request: Request, call_next):
        # Requests without an Origin header come from non-browser clients
        origin = request.headers.get("origin")
        if origin and origin not in allowed:
            logger.warning("event=cors_blocked origin=%s path=%s", origin, request.url.path)
            metrics.record_rejection("cors")
            return error_response("CORS blocked", 403)
        return await call_next(request)
