r"""Answer service: the admission decision.

For every query the service decides whether a stored answer can be reused:

    Start -> Classified -> Scanned -> Hit
                      \           \-> Miss -> generate -> put
                       \-> (force_refresh) -> Miss

The service keeps no per-request state, so one instance serves any number
of concurrent requests. Every external call (embedding, generation, store)
is bounded by a timeout; the synchronous store runs in a worker thread.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from answer_cache import classifier, similarity
from answer_cache.config import Settings, settings
from answer_cache.entities import AnswerResult, AnswerSource, CacheEntry, RankedCandidate
from answer_cache.exceptions import QueryValidationError, UpstreamTimeoutError
from answer_cache.freshness import FreshnessPolicy
from answer_cache.protocols import AnswerGenerator, CacheStore, EmbeddingProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


def admits(candidate: RankedCandidate | None, threshold: float, now: float) -> bool:
    """Whether ``candidate`` is good enough to answer the query.

    The candidate must exist, be live at ``now`` and have a similarity of at
    least ``threshold`` (inclusive).
    """
    if candidate is None:
        return False
    return candidate.entry.is_live(now) and candidate.similarity >= threshold


class AnswerService:
    """Core admission orchestration service.

    Depends on PROTOCOLS, not concrete implementations:
    - CacheStore: Redis, in-memory, ...
    - EmbeddingProvider: OpenAI, Ollama, sentence-transformers, ...
    - AnswerGenerator: OpenAI, Ollama, ...

    Example:
        ```python
        service = AnswerService.create(
            repository=RedisCacheRepository.create(),
            embedding_provider=OpenAIEmbeddingProvider.create(),
            generator=OpenAIAnswerGenerator.create(),
        )
        result = await service.answer("What's the weather today?")
        ```
    """

    def __init__(
        self,
        repository: CacheStore,
        embedding_provider: EmbeddingProvider,
        generator: AnswerGenerator,
        policy: FreshnessPolicy | None = None,
        threshold: float | None = None,
        candidate_window: int | None = None,
        candidate_source: str | None = None,
        rank_k: int | None = None,
        embedding_timeout: float | None = None,
        generation_timeout: float | None = None,
        store_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the answer service.

        Args:
            repository: Cache storage backend.
            embedding_provider: Embedding generation service.
            generator: Answer generation service.
            policy: Category to TTL mapping. Defaults to settings.
            threshold: Minimum similarity for a hit (0-1). Defaults to settings.
            candidate_window: Entries fetched from the store per lookup.
            candidate_source: "scan" (bounded window) or "index" (vector index).
            rank_k: Candidates kept after ranking.
            embedding_timeout: Seconds allowed for one embedding call.
            generation_timeout: Seconds allowed for one generation call.
            store_timeout: Seconds allowed for one store call.
            clock: Source of the current Unix time.
        """
        self._repository = repository
        self._embeddings = embedding_provider
        self._generator = generator
        self._policy = policy or FreshnessPolicy.from_settings()
        self._threshold = settings.cache_threshold if threshold is None else threshold
        self._candidate_window = candidate_window or settings.cache_candidate_window
        self._candidate_source = candidate_source or settings.cache_candidate_source
        self._rank_k = rank_k or settings.cache_rank_k
        self._embedding_timeout = embedding_timeout or settings.embedding_timeout
        self._generation_timeout = generation_timeout or settings.generation_timeout
        self._store_timeout = store_timeout or settings.store_timeout
        self._clock = clock

        if not 0 <= self._threshold <= 1:
            raise ValueError("Threshold must be between 0 and 1")

    @classmethod
    def create(
        cls,
        repository: CacheStore,
        embedding_provider: EmbeddingProvider,
        generator: AnswerGenerator,
        config: Settings | None = None,
    ) -> "AnswerService":
        """Factory method wiring every tunable from settings.

        Args:
            repository: Cache storage backend (required).
            embedding_provider: Embedding generation service (required).
            generator: Answer generation service (required).
            config: Settings to read from. If None, uses global settings.

        Returns:
            Configured AnswerService instance
        """
        config = config or settings
        return cls(
            repository=repository,
            embedding_provider=embedding_provider,
            generator=generator,
            policy=FreshnessPolicy.from_settings(config),
            threshold=config.cache_threshold,
            candidate_window=config.cache_candidate_window,
            candidate_source=config.cache_candidate_source,
            rank_k=config.cache_rank_k,
            embedding_timeout=config.embedding_timeout,
            generation_timeout=config.generation_timeout,
            store_timeout=config.store_timeout,
        )

    async def _bounded(self, call: Awaitable[T], timeout: float, dependency: str) -> T:
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                f"{dependency} call timed out after {timeout:g}s", dependency=dependency
            ) from e

    async def _embed(self, query: str) -> list[float]:
        return await self._bounded(self._embeddings.encode(query), self._embedding_timeout, "embedding")

    async def _generate(self, query: str) -> str:
        return await self._bounded(self._generator.generate(query), self._generation_timeout, "generator")

    async def _put(self, entry: CacheEntry) -> str:
        return await self._bounded(
            asyncio.to_thread(self._repository.put, entry), self._store_timeout, "store"
        )

    async def _load_candidates(self, vector: list[float]) -> tuple[list[CacheEntry], bool]:
        """Fetch the candidate window.

        Returns:
            (candidates, degraded) - a failed or timed-out lookup yields no
            candidates and ``degraded=True`` instead of failing the request
        """
        if self._candidate_source == "index":
            lookup = asyncio.to_thread(self._repository.find_by_vector, vector, self._candidate_window)
        else:
            lookup = asyncio.to_thread(self._repository.scan, self._candidate_window)

        try:
            return await asyncio.wait_for(lookup, timeout=self._store_timeout), False
        except Exception as e:
            logger.warning("Candidate lookup failed, continuing as a miss: %r", e)
            return [], True

    async def find_match(self, vector: list[float]) -> tuple[RankedCandidate | None, bool]:
        """Return the closest live candidate for ``vector``.

        Returns:
            (best candidate or None, whether the lookup was degraded)
        """
        candidates, degraded = await self._load_candidates(vector)
        ranked = similarity.rank(vector, candidates, self._rank_k, self._clock())
        return (ranked[0] if ranked else None), degraded

    async def answer(self, query: str, force_refresh: bool = False) -> AnswerResult:
        """Answer a query from the cache or the generator.

        Business logic:
        1. Reject blank queries before any external call
        2. Classify the query (fresh / evergreen)
        3. Unless forced, embed it and rank the store's candidate window
        4. Hit: return the stored answer
        5. Miss: generate, then persist a new entry with the category's TTL

        Args:
            query: The user query
            force_refresh: Skip the lookup and always generate

        Returns:
            AnswerResult describing the answer and where it came from

        Raises:
            QueryValidationError: If the query is empty or blank
            EmbeddingError, GenerationError, StoreWriteError: On upstream failure
            UpstreamTimeoutError: If an upstream call exceeds its timeout
        """
        if not query or not query.strip():
            raise QueryValidationError("Query must be a non-empty string")

        classification = classifier.classify(query)
        category = classification.category
        logger.debug("Classified %r as %s (%s)", query, category.value, classification.reasoning)

        vector: list[float] | None = None
        degraded = False

        if not force_refresh:
            vector = await self._embed(query)
            best, degraded = await self.find_match(vector)

            if admits(best, self._threshold, self._clock()):
                logger.info("Cache hit for %r (similarity %.3f)", query, best.similarity)
                return AnswerResult(
                    response=best.entry.response,
                    source=AnswerSource.CACHE,
                    category=category,
                    similarity_score=best.similarity,
                    matched_query=best.entry.query,
                )

            if best is not None:
                logger.debug("Best candidate below threshold (%.3f < %.3f)", best.similarity, self._threshold)

        if vector is None:
            vector = await self._embed(query)

        response = await self._generate(query)
        entry = CacheEntry.create(
            query=query,
            response=response,
            embedding=vector,
            category=category,
            ttl_seconds=self._policy.ttl_for(category),
            created_at=self._clock(),
        )
        key = await self._put(entry)
        logger.info("Cache miss for %r, stored %s (ttl %ds)", query, key, entry.ttl_seconds)

        return AnswerResult(
            response=response,
            source=AnswerSource.GENERATOR,
            category=category,
            threshold=self._threshold,
            forced=force_refresh,
            degraded=degraded,
        )

    async def sweep_expired(self) -> int:
        """Delete entries whose TTL has lapsed.

        Returns:
            Number of entries deleted
        """
        deleted = await asyncio.to_thread(self._repository.purge_expired, self._clock())
        logger.info("Swept %d expired cache entries", deleted)
        return deleted

    async def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with store statistics and the active policy
        """
        stats = await asyncio.to_thread(self._repository.get_stats)
        stats["threshold"] = self._threshold
        stats["ttl_fresh"] = self._policy.fresh_ttl
        stats["ttl_evergreen"] = self._policy.evergreen_ttl
        stats["candidate_window"] = self._candidate_window
        stats["embedding_model"] = self._embeddings.model_name
        stats["embedding_dimension"] = self._embeddings.dimension
        stats["generation_model"] = self._generator.model_name
        return stats

    async def health(self) -> dict[str, bool]:
        """Check the store and the embedding provider.

        Returns:
            {"cache": bool, "embedding": bool}
        """
        cache_healthy = await asyncio.to_thread(self._repository.health_check)
        embedding_healthy = await self._embeddings.is_available()
        return {"cache": cache_healthy, "embedding": embedding_healthy}

    @property
    def threshold(self) -> float:
        """Get current similarity threshold."""
        return self._threshold

    @property
    def policy(self) -> FreshnessPolicy:
        """Get the category to TTL mapping."""
        return self._policy

    @property
    def repository(self) -> CacheStore:
        """Get the underlying repository (for testing)."""
        return self._repository

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        """Get the underlying embedding provider (for testing)."""
        return self._embeddings
