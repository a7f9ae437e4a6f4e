"""OpenAI embeddings provider.

Default provider. Supported models:
- text-embedding-3-small (1536 dims, default)
- text-embedding-3-large (3072 dims)
- text-embedding-ada-002 (1536 dims, legacy)
"""

import openai
from openai import AsyncOpenAI

from answer_cache.config import settings
from answer_cache.entities import parse_embedding
from answer_cache.exceptions import EmbeddingError, InvalidEmbeddingError


class OpenAIEmbeddingProvider:
    """OpenAI implementation of EmbeddingProvider protocol.

    Retries are left to the OpenAI client itself (``max_retries``); this
    class only translates failures into ``EmbeddingError``.
    """

    def __init__(
        self,
        model_name: str | None = None,
        api_key: str | None = None,
        dimension: int | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the OpenAI embedding provider.

        Args:
            model_name: Embedding model. Defaults to settings.embedding_model.
            api_key: API key. Defaults to settings.openai_api_key.
            dimension: Expected vector length. Defaults to settings.embedding_dimension.
            client: Preconfigured client (tests inject a mock).
        """
        self._model_name = model_name or settings.embedding_model
        self._dimension = dimension or settings.embedding_dimension
        self._client = client or AsyncOpenAI(api_key=api_key or settings.openai_api_key)

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        api_key: str | None = None,
        dimension: int | None = None,
    ) -> "OpenAIEmbeddingProvider":
        """Factory method to create OpenAIEmbeddingProvider with defaults."""
        return cls(model_name=model_name, api_key=api_key, dimension=dimension)

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            EmbeddingError: If the API call fails or the vector is malformed
        """
        try:
            response = await self._client.embeddings.create(model=self._model_name, input=text)
        except openai.OpenAIError as e:
            raise EmbeddingError(f"OpenAI embeddings error: {e}") from e

        raw = response.data[0].embedding if response.data else None
        try:
            return parse_embedding(raw, self._dimension)
        except InvalidEmbeddingError as e:
            raise EmbeddingError(f"OpenAI returned an unusable embedding: {e}") from e

    async def is_available(self) -> bool:
        """Check that the configured model is visible to this API key."""
        try:
            await self._client.models.retrieve(self._model_name)
            return True
        except openai.OpenAIError:
            return False

    async def close(self) -> None:
        await self._client.close()
