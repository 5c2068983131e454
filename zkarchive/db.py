from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from sqlmodel import SQLModel, create_engine

from zkarchive.config import DB_URL


def create_db_engine(url: str = DB_URL) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(
        url,
        connect_args=connect_args,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,
        echo=False,
    )


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
