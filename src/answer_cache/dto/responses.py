"""Response DTOs for API endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AnswerMetadata(BaseModel):
    """How an answer was produced."""

    model_config = ConfigDict(populate_by_name=True)

    source: Literal["cache", "generator"] = Field(..., description="Where the answer came from")
    category: Literal["fresh", "evergreen"] = Field(..., description="Volatility category of the query")
    similarity_score: float | None = Field(
        None,
        alias="similarityScore",
        description="Similarity of the matched cached query (cache hits only)",
        ge=0.0,
        le=1.0,
    )
    matched_query: str | None = Field(
        None,
        alias="matchedQuery",
        description="The cached query that matched (cache hits only)",
    )
    threshold: float | None = Field(
        None,
        description="Similarity threshold in force (generator answers only)",
        ge=0.0,
        le=1.0,
    )


class QueryResponse(BaseModel):
    """Response DTO for a query."""

    response: str = Field(..., description="The answer text")
    metadata: AnswerMetadata


class ClassifyResponse(BaseModel):
    """Response DTO for query classification."""

    category: Literal["fresh", "evergreen"]
    confidence: Literal["high", "medium", "low"]
    reasoning: str
    tier: int = Field(..., ge=1, le=6, description="Rule tier that decided the category")
    evidence: list[str] = Field(default_factory=list)
    temporal_matches: list[str] = Field(default_factory=list)
    evergreen_matches: list[str] = Field(default_factory=list)
    ttl_seconds: int = Field(..., description="TTL an answer to this query would get")


class StatsResponse(BaseModel):
    """Response DTO for cache and request statistics."""

    cache: dict[str, Any]
    performance: dict[str, float | int]


class SweepResponse(BaseModel):
    """Response DTO for the expired-entry sweep."""

    deleted_count: int = Field(..., ge=0)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the cache backend is reachable")
    embedding_healthy: bool | None = Field(
        None,
        description="Whether the embedding service is reachable",
    )
