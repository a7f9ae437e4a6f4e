"""Cache storage protocol.

Defines the interface for any backend that can persist cache entries and
hand back a bounded window of them for similarity ranking.

Implementations:
- Redis hashes with an optional HNSW index (default)
- In-process dictionary (local runs and tests)
"""

from typing import Protocol, runtime_checkable

from answer_cache.entities import CacheEntry


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed. Methods are synchronous; the service layer
    runs them in a worker thread.

    Failure policy:
        - ``put`` raises ``StoreWriteError``; a lost write must be visible.
        - ``scan`` and ``find_by_vector`` return ``[]`` on transport errors
          and skip individual malformed documents.
    """

    def open(self) -> None:
        """Connect and prepare any index the backend needs."""
        ...

    def close(self) -> None:
        """Release connections."""
        ...

    def put(self, entry: CacheEntry) -> str:
        """Upsert an entry keyed by ``entry.id``.

        Args:
            entry: The entry to persist (all fields, including the embedding)

        Returns:
            The storage key for the entry

        Raises:
            StoreWriteError: If the write fails
        """
        ...

    def scan(self, limit: int) -> list[CacheEntry]:
        """Return up to ``limit`` stored entries.

        This is a bounded window, not the full corpus once the store holds
        more than ``limit`` entries.

        Args:
            limit: Maximum number of entries

        Returns:
            Parsed entries, live or expired
        """
        ...

    def find_by_vector(self, vector: list[float], limit: int) -> list[CacheEntry]:
        """Return up to ``limit`` entries close to ``vector``.

        Backends without a vector index return ``scan(limit)``.

        Args:
            vector: The query embedding vector
            limit: Maximum number of entries

        Returns:
            Parsed entries, live or expired, in no guaranteed order
        """
        ...

    def count_all(self) -> int:
        """Count total entries in the store."""
        ...

    def purge_expired(self, now: float) -> int:
        """Delete entries whose TTL has lapsed at ``now``.

        Returns:
            Number of entries deleted
        """
        ...

    def health_check(self) -> bool:
        """Check if the backend is accessible."""
        ...

    def get_stats(self) -> dict:
        """Get backend statistics (implementation-specific)."""
        ...
