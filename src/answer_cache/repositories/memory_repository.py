"""In-process implementation of CacheStore.

Keeps entries in the same flat layout the Redis repository writes, so
embeddings go through the same float32 round trip. Useful for local runs
(``CACHE_BACKEND=memory``) and as the store in tests.
"""

import logging
import threading
import time
from typing import Any

from answer_cache.entities import CacheEntry

from .codec import decode_entry, encode_entry

logger = logging.getLogger(__name__)


class InMemoryCacheRepository:
    """Dictionary-backed store, safe for concurrent use from worker threads.

    Scans return entries in insertion order; an upsert keeps the slot of
    the entry it replaces.
    """

    def __init__(self, dimension: int | None = None, prefix: str = "answer_cache:") -> None:
        self._dimension = dimension
        self._prefix = prefix
        self._documents: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def put(self, entry: CacheEntry) -> str:
        key = f"{self._prefix}{entry.id}"
        with self._lock:
            self._documents[key] = encode_entry(entry)
        return key

    def put_raw(self, key: str, mapping: dict[str, Any]) -> None:
        """Store a document as-is, bypassing entry encoding."""
        with self._lock:
            self._documents[key] = dict(mapping)

    def scan(self, limit: int) -> list[CacheEntry]:
        with self._lock:
            window = list(self._documents.items())[: max(limit, 0)]

        entries = []
        for key, mapping in window:
            try:
                entries.append(decode_entry(mapping, self._dimension))
            except ValueError as e:
                logger.warning("Skipping malformed cache entry %r: %s", key, e)
        return entries

    def find_by_vector(self, vector: list[float], limit: int) -> list[CacheEntry]:
        """No index here; the candidate window is the scan window."""
        return self.scan(limit)

    def count_all(self) -> int:
        with self._lock:
            return len(self._documents)

    def purge_expired(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            expired = []
            for key, mapping in self._documents.items():
                try:
                    if now - float(mapping["created_at"]) >= int(mapping["ttl_seconds"]):
                        expired.append(key)
                except (KeyError, TypeError, ValueError):
                    expired.append(key)
            for key in expired:
                del self._documents[key]
        return len(expired)

    def health_check(self) -> bool:
        return True

    def get_stats(self) -> dict:
        return {
            "backend": "memory",
            "total_entries": self.count_all(),
            "candidate_source": "scan",
        }
