"""Admission decision outcome."""

from dataclasses import dataclass
from enum import Enum

from .cache_entry import Category


class AnswerSource(str, Enum):
    CACHE = "cache"
    GENERATOR = "generator"


@dataclass(frozen=True)
class AnswerResult:
    """Answer returned for a single query.

    Attributes:
        response: The answer text (cached or freshly generated)
        source: Where the answer came from
        category: Volatility category of the incoming query
        similarity_score: Similarity of the matched entry (hits only)
        matched_query: Query text of the matched entry (hits only)
        threshold: Similarity threshold in force (misses only)
        forced: Whether the caller skipped the cache lookup
        degraded: Whether the candidate scan failed and was treated as empty
    """

    response: str
    source: AnswerSource
    category: Category
    similarity_score: float | None = None
    matched_query: str | None = None
    threshold: float | None = None
    forced: bool = False
    degraded: bool = False

    @property
    def is_hit(self) -> bool:
        return self.source is AnswerSource.CACHE
