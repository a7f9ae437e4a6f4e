"""Flat hash layout for persisted cache entries.

    id           fingerprint (str)
    query        original query (str)
    response     generated answer (str)
    embedding    little-endian float32 bytes
    category     "fresh" | "evergreen"
    created_at   Unix timestamp (str)
    ttl_seconds  integer seconds (str)
"""

from typing import Any

import numpy as np

from answer_cache.entities import CacheEntry, Category, parse_embedding

FIELDS = ("id", "query", "response", "embedding", "category", "created_at", "ttl_seconds")


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def encode_entry(entry: CacheEntry) -> dict[str, str | bytes]:
    """Flatten an entry into a Redis-hash compatible mapping."""
    return {
        "id": entry.id,
        "query": entry.query,
        "response": entry.response,
        "embedding": np.asarray(entry.embedding, dtype="<f4").tobytes(),
        "category": entry.category.value,
        "created_at": repr(float(entry.created_at)),
        "ttl_seconds": str(int(entry.ttl_seconds)),
    }


def decode_entry(mapping: dict[Any, Any], dimension: int | None = None) -> CacheEntry:
    """Rebuild an entry from a stored mapping.

    Args:
        mapping: Hash fields as returned by the backend (bytes or str keys)
        dimension: Required embedding length, None to accept any

    Raises:
        ValueError: If a field is missing or malformed (InvalidEmbeddingError
            for a bad vector)
    """
    fields = {_text(key): value for key, value in mapping.items()}
    missing = [name for name in FIELDS if name not in fields]
    if missing:
        raise ValueError(f"Missing fields: {', '.join(missing)}")

    return CacheEntry(
        id=_text(fields["id"]),
        query=_text(fields["query"]),
        response=_text(fields["response"]),
        embedding=parse_embedding(fields["embedding"], dimension),
        category=Category(_text(fields["category"])),
        created_at=float(_text(fields["created_at"])),
        ttl_seconds=int(_text(fields["ttl_seconds"])),
    )
