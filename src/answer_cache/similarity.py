"""Cosine similarity ranking over a bounded candidate set.

Distances follow the usual cosine convention:

    0.0 -> same direction
    1.0 -> orthogonal
    2.0 -> opposite

Candidates are ranked by a full stable sort, so entries at equal distance
keep the order the store returned them in. That order is not part of the
contract.
"""

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from answer_cache.entities import CacheEntry, RankedCandidate
from answer_cache.exceptions import DimensionMismatchError

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    A zero vector on either side has similarity 0.0 rather than NaN.

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)

    if va.shape != vb.shape:
        raise DimensionMismatchError(f"Vectors must have the same length ({va.size} != {vb.size})")

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(va, vb) / (norm_a * norm_b))


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``1 - cosine_similarity(a, b)``."""
    return 1.0 - cosine_similarity(a, b)


def similarity_from_distance(distance: float) -> float:
    """Convert a cosine distance to a similarity clamped to [0, 1]."""
    return max(0.0, min(1.0, 1.0 - distance))


def is_live(entry: CacheEntry, now: float) -> bool:
    """Whether ``entry`` is still inside its TTL window at ``now``."""
    return entry.is_live(now)


def rank(
    query_embedding: Sequence[float],
    candidates: Iterable[CacheEntry],
    k: int,
    now: float,
) -> list[RankedCandidate]:
    """Rank live candidates by cosine distance to the query.

    Args:
        query_embedding: The query vector
        candidates: Entries returned by the store's scan window
        k: Maximum number of results
        now: Current Unix timestamp used for the liveness check

    Returns:
        Up to ``k`` live candidates, closest first

    Raises:
        DimensionMismatchError: If a live candidate's vector length differs
            from the query's
    """
    if k <= 0:
        return []

    ranked: list[RankedCandidate] = []
    expired = 0
    for entry in candidates:
        if not entry.embedding:
            continue
        if not entry.is_live(now):
            expired += 1
            continue
        ranked.append(RankedCandidate(entry=entry, distance=cosine_distance(query_embedding, entry.embedding)))

    if expired:
        logger.debug("Skipped %d expired candidates", expired)

    ranked.sort(key=lambda candidate: candidate.distance)
    return ranked[:k]
