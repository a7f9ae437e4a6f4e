"""HTTP handlers for answer cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import logging
import time

from fastapi import HTTPException, status

from answer_cache import classifier
from answer_cache.dto import (
    AnswerMetadata,
    ClassifyRequest,
    ClassifyResponse,
    HealthCheckResponse,
    QueryRequest,
    QueryResponse,
    StatsResponse,
    SweepResponse,
)
from answer_cache.exceptions import QueryValidationError, UpstreamError, UpstreamTimeoutError
from answer_cache.metrics import PerformanceMetrics
from answer_cache.services import AnswerService

logger = logging.getLogger(__name__)


class QueryHandler:
    """HTTP handlers for answer cache operations.

    This handler delegates business logic to AnswerService
    and handles HTTP-specific concerns like:
    - Converting results to DTOs
    - Mapping domain errors to status codes
    - Recording request metrics
    """

    def __init__(self, answer_service: AnswerService, metrics: PerformanceMetrics | None = None) -> None:
        """Initialize the query handler.

        Args:
            answer_service: The answer service for business logic (required).
            metrics: Request metrics accumulator. Defaults to a fresh one.
        """
        self._service = answer_service
        self._metrics = metrics or PerformanceMetrics()

    async def query(self, request: QueryRequest) -> QueryResponse:
        """Handle POST /query requests.

        Args:
            request: The query request DTO

        Returns:
            QueryResponse with the answer and its provenance

        Raises:
            HTTPException: 400 for a blank query, 502 for an upstream
                failure, 504 for an upstream timeout
        """
        start_time = time.time()
        try:
            result = await self._service.answer(request.query, force_refresh=request.force_refresh)
        except QueryValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
        except UpstreamTimeoutError as e:
            self._metrics.record_failure()
            logger.error("Query failed, %s timed out: %s", e.dependency, e)
            raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e)) from e
        except UpstreamError as e:
            self._metrics.record_failure()
            logger.error("Query failed in %s: %s", e.dependency, e)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to answer query: {e}",
            ) from e

        latency_ms = (time.time() - start_time) * 1000
        if result.is_hit:
            self._metrics.record_hit(latency_ms)
        else:
            self._metrics.record_miss(latency_ms, forced=result.forced, degraded=result.degraded)

        return QueryResponse(
            response=result.response,
            metadata=AnswerMetadata(
                source=result.source.value,
                category=result.category.value,
                similarity_score=result.similarity_score,
                matched_query=result.matched_query,
                threshold=result.threshold,
            ),
        )

    async def classify(self, request: ClassifyRequest) -> ClassifyResponse:
        """Handle POST /classify requests."""
        analysis = classifier.analyze_query(request.query)
        result = analysis.result
        return ClassifyResponse(
            category=result.category.value,
            confidence=result.confidence.value,
            reasoning=result.reasoning,
            tier=result.tier,
            evidence=list(result.evidence),
            temporal_matches=analysis.temporal_matches,
            evergreen_matches=analysis.evergreen_matches,
            ttl_seconds=self._service.policy.ttl_for(result.category),
        )

    async def get_stats(self) -> StatsResponse:
        """Handle GET /stats requests.

        Raises:
            HTTPException: If the store statistics cannot be read
        """
        try:
            cache_stats = await self._service.get_stats()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

        return StatsResponse(cache=cache_stats, performance=self._metrics.to_dict())

    def reset_stats(self) -> None:
        self._metrics = PerformanceMetrics()

    async def sweep_expired(self) -> SweepResponse:
        """Handle DELETE /cache/expired requests."""
        try:
            deleted = await self._service.sweep_expired()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to sweep expired entries: {e}",
            ) from e
        return SweepResponse(deleted_count=deleted)

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        health = await self._service.health()
        return HealthCheckResponse(
            status="healthy" if health["cache"] else "unhealthy",
            cache_healthy=health["cache"],
            embedding_healthy=health["embedding"],
        )
