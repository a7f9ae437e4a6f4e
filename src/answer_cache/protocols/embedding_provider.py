"""Embedding provider protocol.

Defines the interface for any embedding generation service that can
convert text to vector embeddings.

Implementations:
- OpenAI embeddings API (default, text-embedding-3-small, 1536 dims)
- Ollama local API
- sentence-transformers (local)
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation services.

    Example:
        ```python
        provider: EmbeddingProvider = OpenAIEmbeddingProvider.create()
        provider: EmbeddingProvider = OllamaEmbeddingProvider.create()
        ```
    """

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The validated embedding vector

        Raises:
            EmbeddingError: If the provider call fails or returns a malformed vector
        """
        ...

    async def is_available(self) -> bool:
        """Check if the embedding provider is available."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...
