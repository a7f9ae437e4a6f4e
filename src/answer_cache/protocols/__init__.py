"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis → in-memory, OpenAI → Ollama, etc.)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .answer_generator import AnswerGenerator
from .cache_store import CacheStore
from .embedding_provider import EmbeddingProvider

__all__ = [
    "AnswerGenerator",
    "CacheStore",
    "EmbeddingProvider",
]
