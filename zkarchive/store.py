"""Archive metadata store.

The whole record list lives in memory and is written through to the backend on
every change. Only one server process may write to a backend at a time; nothing
here coordinates between processes.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from zkarchive.config import DB_FILE, DB_URL
from zkarchive.db import create_db_engine, init_db
from zkarchive.models import Archive, ArchiveRow

logger = logging.getLogger("zkarchive.store")


class ArchiveStore:
    """Newest-first in-memory cache of archive records backed by ``load``/``save``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.records: list[Archive] = []

    def load(self) -> list[Archive]:
        raise NotImplementedError

    def save(self, records: list[Archive]) -> bool:
        """Persist the full list. Failures are logged and reported as ``False``."""
        raise NotImplementedError

    def reload(self) -> list[Archive]:
        records = self.load()
        with self._lock:
            self.records = records
        return records

    def add(self, archive: Archive) -> bool:
        """Prepend ``archive`` and persist. On a failed save the cache is rolled back."""
        with self._lock:
            self.records.insert(0, archive)
            if self.save(self.records):
                return True
            self.records.pop(0)
            return False

    def list_archives(self, wallet: Optional[str] = None) -> list[Archive]:
        with self._lock:
            records = list(self.records)
        if not wallet:
            return records
        wanted = wallet.lower()
        return [a for a in records if (a.wallet_address or "").lower() == wanted]

    def get_archive(self, archive_id: str) -> Optional[Archive]:
        with self._lock:
            return next((a for a in self.records if a.id == archive_id), None)

    def totals(self) -> dict[str, int]:
        with self._lock:
            return {
                "total_files": len(self.records),
                "total_bytes": sum(a.size for a in self.records),
            }


def _parse_records(raw: list) -> list[Archive]:
    records = []
    for index, entry in enumerate(raw):
        try:
            records.append(Archive.model_validate(entry))
        except ValidationError as exc:
            logger.warning("event=store_entry_skipped index=%s error=%s", index, exc)
    return records


class JsonArchiveStore(ArchiveStore):
    def __init__(self, path: str = DB_FILE) -> None:
        super().__init__()
        self.path = path

    def _ensure_dir(self) -> None:
        os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)

    def _write(self, payload: list) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    def load(self) -> list[Archive]:
        try:
            self._ensure_dir()
            if not os.path.exists(self.path):
                self._write([])
                return []
            with open(self.path, encoding="utf-8") as f:
                parsed = json.load(f)
        except (OSError, ValueError) as exc:
            logger.error("event=store_load_failure path=%s error=%s", self.path, exc)
            return []

        if not isinstance(parsed, list):
            logger.error(
                "event=store_load_failure path=%s error=expected a JSON array, got %s",
                self.path,
                type(parsed).__name__,
            )
            return []
        return _parse_records(parsed)

    def save(self, records: list[Archive]) -> bool:
        try:
            self._ensure_dir()
            self._write([a.to_json() for a in records])
        except (OSError, TypeError, ValueError) as exc:
            logger.error("event=store_save_failure path=%s error=%s", self.path, exc)
            return False
        return True


class SqlArchiveStore(ArchiveStore):
    """Keeps the records in the ``archive`` table, ordered by ``position``."""

    def __init__(self, engine: Engine) -> None:
        super().__init__()
        self.engine = engine

    def load(self) -> list[Archive]:
        try:
            init_db(self.engine)
            with Session(self.engine) as session:
                rows = session.exec(select(ArchiveRow).order_by(ArchiveRow.position)).all()
                return [row.to_archive() for row in rows]
        except SQLAlchemyError as exc:
            logger.error("event=store_load_failure url=%s error=%s", self.engine.url, exc)
            return []

    def save(self, records: list[Archive]) -> bool:
        try:
            with Session(self.engine) as session:
                for row in session.exec(select(ArchiveRow)).all():
                    session.delete(row)
                session.flush()
                for position, archive in enumerate(records):
                    session.add(ArchiveRow.from_archive(archive, position))
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("event=store_save_failure url=%s error=%s", self.engine.url, exc)
            return False
        return True


def create_store() -> ArchiveStore:
    if DB_URL:
        return SqlArchiveStore(create_db_engine(DB_URL))
    return JsonArchiveStore(DB_FILE)


archive_store = create_store()
