"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from answer_cache.config import Settings, settings
from answer_cache.handlers import QueryHandler
from answer_cache.protocols import AnswerGenerator, CacheStore, EmbeddingProvider
from answer_cache.repositories import (
    InMemoryCacheRepository,
    OllamaAnswerGenerator,
    OllamaEmbeddingProvider,
    OpenAIAnswerGenerator,
    OpenAIEmbeddingProvider,
    RedisCacheRepository,
)
from answer_cache.services import AnswerService

logger = logging.getLogger(__name__)


def build_embedding_provider(config: Settings) -> EmbeddingProvider:
    """Create the embedding provider selected by EMBEDDING_PROVIDER."""
    if config.embedding_provider == "ollama":
        return OllamaEmbeddingProvider.create(
            model_name=config.embedding_model,
            base_url=config.ollama_base_url,
            dimension=config.embedding_dimension,
            timeout=config.embedding_timeout,
        )
    if config.embedding_provider == "local":
        # Needs the optional sentence-transformers extra
        from answer_cache.repositories.local_embedding_provider import LocalEmbeddingProvider

        return LocalEmbeddingProvider.create(
            model_name=config.embedding_model,
            dimension=config.embedding_dimension,
        )
    return OpenAIEmbeddingProvider.create(
        model_name=config.embedding_model,
        api_key=config.openai_api_key,
        dimension=config.embedding_dimension,
    )


def build_generator(config: Settings) -> AnswerGenerator:
    """Create the answer generator selected by GENERATION_PROVIDER."""
    if config.generation_provider == "ollama":
        return OllamaAnswerGenerator.create(
            model_name=config.generation_model,
            base_url=config.ollama_base_url,
            temperature=config.generation_temperature,
        )
    return OpenAIAnswerGenerator.create(
        model_name=config.generation_model,
        api_key=config.openai_api_key,
        temperature=config.generation_temperature,
    )


def build_repository(config: Settings) -> CacheStore:
    """Create the cache store selected by CACHE_BACKEND."""
    if config.cache_backend == "memory":
        return InMemoryCacheRepository(
            dimension=config.embedding_dimension,
            prefix=f"{config.cache_index_name}:",
        )
    return RedisCacheRepository.create(config)


def get_answer_service(request: Request) -> AnswerService:
    """Dependency injection for AnswerService from app.state.

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "answer_service", None)
    if service is None:
        raise RuntimeError("AnswerService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> QueryHandler:
    """Dependency injection for QueryHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "query_handler", None)
    if handler is None:
        raise RuntimeError("QueryHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Repository (data access), opened explicitly
    2. Embedding provider and answer generator
    3. Service (business logic) - app.state.answer_service
    4. Handler (HTTP endpoints) - app.state.query_handler

    Cleanup:
        Closes clients and removes all services from app.state on shutdown
    """
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    repository = build_repository(settings)
    repository.open()
    embedding_provider = build_embedding_provider(settings)
    generator = build_generator(settings)

    answer_service = AnswerService.create(
        repository=repository,
        embedding_provider=embedding_provider,
        generator=generator,
        config=settings,
    )

    app.state.answer_service = answer_service
    app.state.query_handler = QueryHandler(answer_service=answer_service)

    logger.info(
        "Answer cache ready: backend=%s, embeddings=%s/%s, generator=%s/%s, threshold=%.2f",
        settings.cache_backend,
        settings.embedding_provider,
        embedding_provider.model_name,
        settings.generation_provider,
        generator.model_name,
        answer_service.threshold,
    )

    try:
        yield
    finally:
        await embedding_provider.close()
        await generator.close()
        repository.close()
        del app.state.query_handler
        del app.state.answer_service
        logger.info("Answer cache shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[QueryHandler, Depends(get_handler)]
ServiceDep = Annotated[AnswerService, Depends(get_answer_service)]
