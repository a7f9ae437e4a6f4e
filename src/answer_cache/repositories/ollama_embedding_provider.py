"""Ollama-based embedding provider.

Uses Ollama's local API to generate embeddings.

Requirements:
    - Ollama installed: https://ollama.com
    - Model pulled: `ollama pull nomic-embed-text`
    - Ollama running: `ollama serve` (usually runs automatically)

Set EMBEDDING_DIMENSION to the model's output size (nomic-embed-text: 768,
mxbai-embed-large: 1024, all-minilm: 384).
"""

import httpx

from answer_cache.config import settings
from answer_cache.entities import parse_embedding
from answer_cache.exceptions import EmbeddingError, InvalidEmbeddingError


class OllamaEmbeddingProvider:
    """Ollama-based implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OllamaEmbeddingProvider.create(
            model_name="nomic-embed-text",
            dimension=768,
        )
        embedding = await provider.encode("Hello, world!")
        ```
    """

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        dimension: int | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Ollama embedding provider.

        Args:
            model_name: Name of the Ollama model. Defaults to settings.embedding_model.
            base_url: Ollama API base URL. Defaults to settings.ollama_base_url.
            dimension: Expected vector length. Defaults to settings.embedding_dimension.
            timeout: Request timeout in seconds.
            client: Preconfigured HTTP client (tests inject a mock transport).
        """
        self._model_name = model_name or settings.embedding_model
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._dimension = dimension or settings.embedding_dimension
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
        dimension: int | None = None,
        timeout: float = 30.0,
    ) -> "OllamaEmbeddingProvider":
        """Factory method to create OllamaEmbeddingProvider with defaults."""
        return cls(model_name=model_name, base_url=base_url, dimension=dimension, timeout=timeout)

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The validated embedding vector

        Raises:
            EmbeddingError: If the Ollama request fails or the vector is malformed
        """
        url = f"{self._base_url}/api/embed"
        payload = {
            "model": self._model_name,
            "input": text,
        }

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            error_msg = f"Ollama API error: {e}"
            if "connection refused" in str(e).lower():
                error_msg += " (is Ollama running? try: ollama serve)"
            raise EmbeddingError(error_msg) from e
        except ValueError as e:
            raise EmbeddingError(f"Ollama returned invalid JSON: {e}") from e

        # Ollama returns {"embeddings": [[...]]} for single input
        if not isinstance(data, dict):
            raise EmbeddingError(f"Ollama returned unexpected JSON: {type(data).__name__}")

        raw = None
        embeddings = data.get("embeddings")
        if isinstance(embeddings, list) and embeddings:
            raw = embeddings[0]
        elif "embedding" in data:
            raw = data["embedding"]

        try:
            return parse_embedding(raw, self._dimension)
        except InvalidEmbeddingError as e:
            raise EmbeddingError(f"Ollama returned an unusable embedding: {e}") from e

    async def is_available(self) -> bool:
        """Check that Ollama answers and the model is pulled."""
        try:
            response = await self.client.get(f"{self._base_url}/api/tags")
            response.raise_for_status()
            models = [m.get("name", "") for m in response.json().get("models", [])]
        except (httpx.HTTPError, ValueError):
            return False
        return any(name.split(":")[0] == self._model_name.split(":")[0] for name in models)

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
