import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from zkarchive.api.routes import router
from zkarchive.config import ALLOWED_ORIGINS, HOST, LOG_LEVEL, MAX_FILE_SIZE, PORT
from zkarchive.core.exceptions import register_exception_handlers
from zkarchive.core.gateway import register_gateway
from zkarchive.store import archive_store

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("zkarchive")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("event=startup port=%s archives=%s", PORT, len(archive_store.records))
    logger.info("event=startup allowed_origins=%s", ",".join(ALLOWED_ORIGINS))
    yield


app = FastAPI(title="zkArchive API", version="1.0.0", lifespan=lifespan)

archive_store.reload()

register_gateway(app, ALLOWED_ORIGINS, MAX_FILE_SIZE)
app.include_router(router)
register_exception_handlers(app)


def run() -> None:
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
