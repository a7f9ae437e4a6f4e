"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .answer import AnswerResult, AnswerSource
from .cache_entry import CacheEntry, CacheEntryEntity, Category, fingerprint, normalize_query
from .cache_match import CacheMatchEntity, RankedCandidate
from .embedding import parse_embedding

__all__ = [
    "AnswerResult",
    "AnswerSource",
    "CacheEntry",
    "CacheEntryEntity",
    "CacheMatchEntity",
    "Category",
    "RankedCandidate",
    "fingerprint",
    "normalize_query",
    "parse_embedding",
]
