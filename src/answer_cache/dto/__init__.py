"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import ClassifyRequest, QueryRequest
from .responses import (
    AnswerMetadata,
    ClassifyResponse,
    HealthCheckResponse,
    QueryResponse,
    StatsResponse,
    SweepResponse,
)

__all__ = [
    "QueryRequest",
    "ClassifyRequest",
    "AnswerMetadata",
    "QueryResponse",
    "ClassifyResponse",
    "StatsResponse",
    "SweepResponse",
    "HealthCheckResponse",
]
