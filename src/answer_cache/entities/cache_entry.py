"""Cache entry domain entity."""

import hashlib
from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    """How quickly the correct answer to a query goes stale."""

    FRESH = "fresh"
    EVERGREEN = "evergreen"


def normalize_query(text: str) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    return " ".join(text.lower().split())


def fingerprint(text: str) -> str:
    """SHA-1 hex digest of the normalized query, used as a storage key."""
    return hashlib.sha1(normalize_query(text).encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached query/answer pair.

    Entries are located by embedding similarity, never by ``id``; the id
    only names the storage slot, so two queries with the same normalized
    text share (and overwrite) one slot.

    Attributes:
        id: Fingerprint of the normalized query
        query: The original query text
        response: The generated answer
        embedding: The embedding vector for the query
        category: Volatility category assigned at creation
        created_at: Unix timestamp of creation
        ttl_seconds: Validity window, fixed for the entry's lifetime
    """

    id: str
    query: str
    response: str
    embedding: list[float]
    category: Category
    created_at: float
    ttl_seconds: int

    @classmethod
    def create(
        cls,
        query: str,
        response: str,
        embedding: list[float],
        category: Category,
        ttl_seconds: int,
        created_at: float,
    ) -> "CacheEntryEntity":
        """Build a new entry, deriving ``id`` from the query text."""
        return cls(
            id=fingerprint(query),
            query=query,
            response=response,
            embedding=list(embedding),
            category=category,
            created_at=created_at,
            ttl_seconds=ttl_seconds,
        )

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl_seconds

    def is_live(self, now: float) -> bool:
        """An entry is live strictly before ``created_at + ttl_seconds``."""
        return now - self.created_at < self.ttl_seconds


# Short alias used throughout the service layer
CacheEntry = CacheEntryEntity
