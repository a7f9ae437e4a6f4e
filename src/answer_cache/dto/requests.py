"""Request DTOs for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    """Request DTO for answering a query.

    The handler will convert this to internal calls to the service layer.
    """

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., description="The natural-language query", min_length=1)
    force_refresh: bool = Field(
        False,
        alias="forceRefresh",
        description="Skip the cache lookup and always generate a new answer",
    )


class ClassifyRequest(BaseModel):
    """Request DTO for classifying a query without answering it."""

    query: str = Field(..., description="The query to classify", min_length=1)
