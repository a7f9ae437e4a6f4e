"""Ranked cache candidate domain entity."""

from dataclasses import dataclass

from .cache_entry import CacheEntryEntity


@dataclass(frozen=True)
class CacheMatchEntity:
    """A live cache entry paired with its distance to the query.

    Attributes:
        entry: The stored cache entry
        distance: Cosine distance (0 = identical, 1 = orthogonal, 2 = opposite)
    """

    entry: CacheEntryEntity
    distance: float

    @property
    def similarity(self) -> float:
        """Cosine similarity clamped to [0, 1]."""
        return max(0.0, min(1.0, 1.0 - self.distance))


RankedCandidate = CacheMatchEntity
