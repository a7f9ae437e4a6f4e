"""Semantic Answer Cache - reuse answers to meaning-equivalent queries.

Every query is classified as fresh (time-sensitive) or evergreen, embedded,
and compared against recently stored answers. A close enough, still-live
match is served from the cache; otherwise a generator produces a new answer,
which is stored with a TTL chosen by its category.

Layers:
    - protocols: Interface contracts (CacheStore, EmbeddingProvider, AnswerGenerator)
    - repositories: Data access and provider implementations
    - services: Business logic (the admission decision)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from answer_cache.services import AnswerService

    service = AnswerService.create(
        repository=RedisCacheRepository.create(),
        embedding_provider=OpenAIEmbeddingProvider.create(),
        generator=OpenAIAnswerGenerator.create(),
    )
    result = await service.answer("Who wrote Hamlet?")
    ```

For HTTP API:
    ```python
    from answer_cache.api.app import app
    ```
"""

from answer_cache.classifier import analyze_query, categorize, classify
from answer_cache.config import get_redis_client, settings
from answer_cache.dto import QueryRequest, QueryResponse
from answer_cache.entities import AnswerResult, CacheEntryEntity, CacheMatchEntity, Category
from answer_cache.freshness import FreshnessPolicy
from answer_cache.handlers import QueryHandler
from answer_cache.protocols import AnswerGenerator, CacheStore, EmbeddingProvider
from answer_cache.repositories import (
    InMemoryCacheRepository,
    OpenAIAnswerGenerator,
    OpenAIEmbeddingProvider,
    RedisCacheRepository,
)
from answer_cache.services import AnswerService

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Classification
    "classify",
    "categorize",
    "analyze_query",
    "FreshnessPolicy",
    # Protocols (interfaces)
    "CacheStore",
    "EmbeddingProvider",
    "AnswerGenerator",
    # Services (business logic)
    "AnswerService",
    # Handlers (HTTP)
    "QueryHandler",
    # Repositories (data access)
    "RedisCacheRepository",
    "InMemoryCacheRepository",
    "OpenAIEmbeddingProvider",
    "OpenAIAnswerGenerator",
    # Entities (domain models)
    "AnswerResult",
    "CacheEntryEntity",
    "CacheMatchEntity",
    "Category",
    # DTOs (API contracts)
    "QueryRequest",
    "QueryResponse",
]
