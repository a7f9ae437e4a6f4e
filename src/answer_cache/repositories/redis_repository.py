"""Redis implementation of CacheStore.

Entries live in plain Redis hashes under ``{index_name}:{id}``. The default
candidate window is a bounded SCAN over that prefix, which works on any
Redis server. With ``use_index=True`` the repository also maintains a
Redis Stack HNSW index (via redisvl) and serves ``find_by_vector`` from it.
"""

import logging
import time
from itertools import islice

import redis
from redisvl.index import SearchIndex
from redisvl.query import VectorQuery

from answer_cache.config import Settings, get_redis_client, settings
from answer_cache.entities import CacheEntry
from answer_cache.exceptions import StoreWriteError

from .codec import decode_entry, encode_entry

logger = logging.getLogger(__name__)


class RedisCacheRepository:
    """Redis hash store with an optional HNSW vector index.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Entries are never expired by Redis unless ``native_expiry`` is set, in
    which case each key gets an ``EXPIRE`` equal to its TTL. Either way the
    service filters expired entries at read time.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        index_name: str | None = None,
        dimension: int | None = None,
        use_index: bool = False,
        native_expiry: bool | None = None,
    ) -> None:
        """Initialize the Redis cache repository.

        Args:
            redis_client: Redis client instance. If None, creates default.
            index_name: Key prefix and search index name.
            dimension: Embedding dimension; stored vectors of another length are skipped.
            use_index: Create and query an HNSW index for ``find_by_vector``.
            native_expiry: Let Redis expire keys at their TTL.
        """
        self._client = redis_client or get_redis_client()
        self._index_name = index_name or settings.cache_index_name
        self._dimension = dimension or settings.embedding_dimension
        self._use_index = use_index
        self._native_expiry = settings.cache_native_expiry if native_expiry is None else native_expiry
        self._index: SearchIndex | None = None

    @classmethod
    def create(cls, config: Settings | None = None) -> "RedisCacheRepository":
        """Factory method to create RedisCacheRepository from settings.

        Args:
            config: Settings to read from. If None, uses global settings.

        Returns:
            Configured (not yet opened) RedisCacheRepository
        """
        config = config or settings
        return cls(
            redis_client=get_redis_client(config),
            index_name=config.cache_index_name,
            dimension=config.embedding_dimension,
            use_index=config.cache_candidate_source == "index",
            native_expiry=config.cache_native_expiry,
        )

    @property
    def prefix(self) -> str:
        return f"{self._index_name}:"

    def _key(self, entry_id: str) -> str:
        return f"{self.prefix}{entry_id}"

    def open(self) -> None:
        """Check the connection and create the vector index if enabled."""
        self._client.ping()
        if self._use_index:
            self._ensure_index()

    def close(self) -> None:
        self._index = None
        self._client.close()

    def _ensure_index(self) -> None:
        """Ensure the Redis vector index exists."""
        if self._index is not None:
            return

        index_schema = {
            "index": {
                "name": self._index_name,
                "prefix": self.prefix,
                "storage_type": "hash",
            },
            "fields": [
                {"name": "query", "type": "text"},
                {"name": "category", "type": "tag"},
                {"name": "created_at", "type": "numeric"},
                {"name": "ttl_seconds", "type": "numeric"},
                {
                    "name": "embedding",
                    "type": "vector",
                    "attrs": {
                        "dims": self._dimension,
                        "algorithm": "hnsw",
                        "distance_metric": "cosine",
                        "datatype": "float32",
                    },
                },
            ],
        }

        index = SearchIndex.from_dict(index_schema, redis_client=self._client)

        try:
            index.create(overwrite=False)
            logger.info("Created search index %s", self._index_name)
        except Exception as e:
            if "already exists" not in str(e).lower():
                raise
            logger.info("Using existing search index %s", self._index_name)

        self._index = index

    def put(self, entry: CacheEntry) -> str:
        """Upsert an entry as a Redis hash.

        Args:
            entry: The entry to persist

        Returns:
            The storage key for the entry

        Raises:
            StoreWriteError: If Redis rejects the write
        """
        key = self._key(entry.id)
        try:
            pipe = self._client.pipeline()
            pipe.hset(key, mapping=encode_entry(entry))
            if self._native_expiry:
                pipe.expire(key, entry.ttl_seconds)
            pipe.execute()
        except redis.RedisError as e:
            raise StoreWriteError(f"Failed to write cache entry {key}: {e}") from e
        return key

    def _load(self, keys: list[str | bytes]) -> list[CacheEntry]:
        """Fetch and parse hashes, dropping the ones that fail to parse."""
        if not keys:
            return []

        pipe = self._client.pipeline()
        for key in keys:
            pipe.hgetall(key)
        # Per-command errors come back in place, so one bad key cannot sink the batch
        documents = pipe.execute(raise_on_error=False)

        entries = []
        for key, mapping in zip(keys, documents):
            if isinstance(mapping, Exception):
                logger.warning("Skipping unreadable cache key %r: %s", key, mapping)
                continue
            if not mapping:
                # Deleted between SCAN and HGETALL
                continue
            try:
                entries.append(decode_entry(mapping, self._dimension))
            except ValueError as e:
                logger.warning("Skipping malformed cache entry %r: %s", key, e)
        return entries

    def scan(self, limit: int) -> list[CacheEntry]:
        """Return up to ``limit`` entries from a SCAN over the key prefix.

        Args:
            limit: Maximum number of entries

        Returns:
            Parsed entries, or an empty list if Redis is unreachable
        """
        try:
            keys = list(islice(self._client.scan_iter(match=f"{self.prefix}*", count=limit), limit))
            return self._load(keys)
        except redis.RedisError as e:
            logger.warning("Cache scan failed, treating as empty: %s", e)
            return []

    def find_by_vector(self, vector: list[float], limit: int) -> list[CacheEntry]:
        """Return up to ``limit`` nearest entries from the HNSW index.

        Falls back to ``scan`` when the index is disabled.

        Args:
            vector: The query embedding vector
            limit: Maximum number of entries

        Returns:
            Parsed entries, or an empty list if the search fails
        """
        if self._index is None:
            return self.scan(limit)

        query = VectorQuery(
            vector=vector,
            vector_field_name="embedding",
            return_fields=["created_at"],
            num_results=limit,
        )

        try:
            results = self._index.query(query)
            keys = []
            for result in results:
                key = str(result["id"])
                keys.append(key if key.startswith(self.prefix) else self._key(key))
            return self._load(keys)
        except Exception as e:
            logger.warning("Vector search failed, treating as empty: %s", e)
            return []

    def count_all(self) -> int:
        """Count total entries in the cache."""
        count = 0
        for _ in self._client.scan_iter(match=f"{self.prefix}*"):
            count += 1
        return count

    def purge_expired(self, now: float | None = None) -> int:
        """Delete entries whose TTL has lapsed.

        Args:
            now: Reference Unix timestamp. Defaults to the current time.

        Returns:
            Number of entries deleted
        """
        now = time.time() if now is None else now
        deleted = 0
        for key in self._client.scan_iter(match=f"{self.prefix}*"):
            try:
                created_at, ttl_seconds = self._client.hmget(key, "created_at", "ttl_seconds")
            except redis.ResponseError as e:
                # Not a hash; leave keys we did not write alone
                logger.warning("Skipping unreadable cache key %r: %s", key, e)
                continue
            try:
                expired = now - float(created_at) >= int(ttl_seconds)
            except (TypeError, ValueError):
                # Unreadable bookkeeping can never become live again
                expired = True
            if expired and self._client.delete(key):
                deleted += 1
        return deleted

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            result = self._client.ping()
            return bool(result)
        except Exception:
            return False

    def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats
        """
        return {
            "backend": "redis",
            "index_name": self._index_name,
            "total_entries": self.count_all(),
            "candidate_source": "index" if self._index is not None else "scan",
            "native_expiry": self._native_expiry,
        }

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
