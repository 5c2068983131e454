from __future__ import annotations

import threading
from collections import Counter
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from zkarchive.store import ArchiveStore

REJECTION_REASONS = ("cors", "size")


class ArchiveMetrics:
    """Process-local upload/download counters, reported together with the store totals."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._uploads = 0
        self._bytes_uploaded = 0
        self._downloads = 0
        self._rejections: Counter[str] = Counter()

    def record_upload(self, size_bytes: int) -> None:
        with self._lock:
            self._uploads += 1
            self._bytes_uploaded += size_bytes

    def record_download(self) -> None:
        with self._lock:
            self._downloads += 1

    def record_rejection(self, reason: str) -> None:
        if reason not in REJECTION_REASONS:
            raise ValueError(f"unknown rejection reason: {reason}")
        with self._lock:
            self._rejections[reason] += 1

    def report(self, store: ArchiveStore) -> Dict[str, Any]:
        totals = store.totals()
        with self._lock:
            return {
                "uploads": self._uploads,
                "bytes_uploaded": self._bytes_uploaded,
                "downloads": self._downloads,
                "rejected": sum(self._rejections.values()),
                "rejected_by_reason": {reason: self._rejections[reason] for reason in REJECTION_REASONS},
                "archives": totals["total_files"],
                "storage_bytes": totals["total_bytes"],
            }


metrics = ArchiveMetrics()
