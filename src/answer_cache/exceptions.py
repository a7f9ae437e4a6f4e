"""Exception hierarchy for the answer cache.

Adapters translate library errors (httpx, openai, redis) into these types so
the service and handler layers never depend on a concrete backend.
"""


class AnswerCacheError(Exception):
    """Base exception for the answer cache"""


class QueryValidationError(AnswerCacheError, ValueError):
    """Raised when a query is rejected before any external call"""


class InvalidEmbeddingError(AnswerCacheError, ValueError):
    """Raised when a raw vector cannot be turned into a usable embedding"""


class DimensionMismatchError(AnswerCacheError, ValueError):
    """Raised when two vectors of different length are compared"""


class UpstreamError(AnswerCacheError):
    """Raised when an external dependency fails for the current request"""

    dependency = "upstream"

    def __init__(self, message: str, dependency: str | None = None) -> None:
        super().__init__(message)
        if dependency is not None:
            self.dependency = dependency


class EmbeddingError(UpstreamError):
    """Raised when embedding generation fails"""

    dependency = "embedding"


class GenerationError(UpstreamError):
    """Raised when answer generation fails"""

    dependency = "generator"


class StoreWriteError(UpstreamError):
    """Raised when a cache entry cannot be persisted"""

    dependency = "store"


class UpstreamTimeoutError(UpstreamError):
    """Raised when an external call exceeds its time budget"""
