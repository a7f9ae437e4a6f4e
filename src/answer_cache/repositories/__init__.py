"""Repository layer for data access.

This layer abstracts external dependencies (Redis, embedding APIs, chat
models) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Redis → in-memory, OpenAI → Ollama, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

The sentence-transformers provider lives in ``local_embedding_provider`` and
is imported on demand, since it needs the optional ``local`` extra.
"""

from answer_cache.protocols import AnswerGenerator, CacheStore, EmbeddingProvider

from .codec import decode_entry, encode_entry
from .memory_repository import InMemoryCacheRepository
from .ollama_answer_generator import OllamaAnswerGenerator
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .openai_answer_generator import OpenAIAnswerGenerator
from .openai_embedding_provider import OpenAIEmbeddingProvider
from .redis_repository import RedisCacheRepository

__all__ = [
    "AnswerGenerator",
    "CacheStore",
    "EmbeddingProvider",
    "InMemoryCacheRepository",
    "OllamaAnswerGenerator",
    "OllamaEmbeddingProvider",
    "OpenAIAnswerGenerator",
    "OpenAIEmbeddingProvider",
    "RedisCacheRepository",
    "decode_entry",
    "encode_entry",
]
