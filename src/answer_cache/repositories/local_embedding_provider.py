"""Local sentence-transformers embedding provider.

Runs the model in-process, no API calls required. Install with the
``local`` extra (``pip install .[local]``) and set EMBEDDING_DIMENSION to the
model's output size (paraphrase-multilingual-MiniLM-L12-v2: 384).
"""

import asyncio
import logging
import time

import numpy as np
from sentence_transformers import SentenceTransformer

from answer_cache.config import settings
from answer_cache.entities import parse_embedding
from answer_cache.exceptions import EmbeddingError, InvalidEmbeddingError

logger = logging.getLogger(__name__)


class LocalEmbeddingProvider:
    """Local sentence-transformers implementation of EmbeddingProvider.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed. Encoding is CPU bound, so it
    runs in a worker thread to keep the event loop responsive.
    """

    def __init__(self, model_name: str | None = None, dimension: int | None = None) -> None:
        """Initialize the local embedding provider.

        Args:
            model_name: Name of the sentence-transformers model.
                       Defaults to settings.embedding_model.
            dimension: Expected vector length. Defaults to settings.embedding_dimension.
        """
        self._model_name = model_name or settings.embedding_model
        self._dimension = dimension or settings.embedding_dimension
        self._model: SentenceTransformer | None = None

    @classmethod
    def create(cls, model_name: str | None = None, dimension: int | None = None) -> "LocalEmbeddingProvider":
        """Factory method to create LocalEmbeddingProvider with defaults."""
        return cls(model_name=model_name, dimension=dimension)

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the embedding model."""
        if self._model is None:
            logger.info("Loading embedding model: %s", self._model_name)
            start_time = time.time()
            self._model = SentenceTransformer(self._model_name)
            logger.info("Model loaded in %.2fs", time.time() - start_time)
        return self._model

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    def _encode_sync(self, text: str) -> np.ndarray:
        return self.model.encode(
            text,
            show_progress_bar=False,
            normalize_embeddings=True,
        )

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            EmbeddingError: If the model fails to load or returns a malformed vector
        """
        try:
            embedding = await asyncio.to_thread(self._encode_sync, text)
        except (OSError, RuntimeError) as e:
            raise EmbeddingError(f"Local embedding model failed: {e}") from e

        try:
            return parse_embedding(embedding, self._dimension)
        except InvalidEmbeddingError as e:
            raise EmbeddingError(f"Local model returned an unusable embedding: {e}") from e

    async def is_available(self) -> bool:
        """Check if the model can be loaded."""
        try:
            await asyncio.to_thread(lambda: self.model)
            return True
        except Exception:
            return False

    async def close(self) -> None:
        self._model = None
