import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("zkarchive")

GENERIC_ERROR = "Internal server error"


def error_response(message: str, status_code: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Unknown paths and known paths with the wrong method both count as unmatched routes
        if exc.status_code in (404, 405) and exc.detail in (None, "", "Not Found", "Method Not Allowed"):
            return error_response("Not found", 404)
        return error_response(str(exc.detail), exc.status_code, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("event=request_invalid path=%s errors=%s", request.url.path, exc.errors())
        return error_response("Invalid request", 400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("event=unhandled_error path=%s error=%s", request.url.path, exc, exc_info=exc)
        return error_response(GENERIC_ERROR, 500)
