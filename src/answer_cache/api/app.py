from typing import Any

from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware

from answer_cache.api.dependencies import HandlerDep, lifespan
from answer_cache.config import settings
from answer_cache.dto import (
    ClassifyRequest,
    ClassifyResponse,
    HealthCheckResponse,
    QueryRequest,
    QueryResponse,
    StatsResponse,
    SweepResponse,
)

app = FastAPI(
    title="Semantic Answer Cache API",
    description="Reuses answers to meaning-equivalent queries, with freshness-aware TTLs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Semantic Answer Cache API",
        "version": "0.1.0",
        "endpoints": {
            "query": "/query",
            "classify": "/classify",
            "stats": "/stats",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep, response: Response) -> HealthCheckResponse:
    """Health check endpoint."""
    result = await handler.health_check()
    if not result.cache_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return result


@app.post("/query", response_model=QueryResponse, response_model_exclude_none=True)
async def query(request: QueryRequest, handler: HandlerDep) -> QueryResponse:
    """Answer a query from the cache or the generator."""
    return await handler.query(request)


@app.post("/classify", response_model=ClassifyResponse)
async def classify(request: ClassifyRequest, handler: HandlerDep) -> ClassifyResponse:
    """Explain how a query would be categorized."""
    return await handler.classify(request)


@app.get("/stats", response_model=StatsResponse)
async def get_stats(handler: HandlerDep) -> StatsResponse:
    """Get cache and request statistics."""
    return await handler.get_stats()


@app.post("/stats/reset", response_model=dict[str, str])
async def reset_stats(handler: HandlerDep) -> dict[str, str]:
    """Reset request metrics."""
    handler.reset_stats()
    return {"message": "Performance metrics reset"}


@app.delete("/cache/expired", response_model=SweepResponse)
async def sweep_expired(handler: HandlerDep) -> SweepResponse:
    """Delete entries whose TTL has lapsed."""
    return await handler.sweep_expired()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "answer_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
