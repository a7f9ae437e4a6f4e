"""Ollama chat answer generator.

Requirements:
    - Model pulled: `ollama pull llama3.2`
    - Ollama running: `ollama serve`
"""

import httpx

from answer_cache.config import settings
from answer_cache.exceptions import GenerationError

from .openai_answer_generator import FALLBACK_ANSWER, SYSTEM_PROMPT


class OllamaAnswerGenerator:
    """Ollama implementation of AnswerGenerator protocol.

    Calls ``POST /api/chat`` without streaming.
    """

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        temperature: float | None = None,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._model_name = model_name or settings.generation_model
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._temperature = settings.generation_temperature if temperature is None else temperature
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
        temperature: float | None = None,
    ) -> "OllamaAnswerGenerator":
        """Factory method to create OllamaAnswerGenerator with defaults."""
        return cls(model_name=model_name, base_url=base_url, temperature=temperature)

    @property
    def model_name(self) -> str:
        return self._model_name

    async def generate(self, query: str) -> str:
        """Ask the local chat model for an answer.

        Raises:
            GenerationError: If the Ollama request fails
        """
        payload = {
            "model": self._model_name,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            "stream": False,
            "options": {"temperature": self._temperature},
        }

        try:
            response = await self.client.post(f"{self._base_url}/api/chat", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise GenerationError(f"Ollama chat error: {e}") from e
        except ValueError as e:
            raise GenerationError(f"Ollama returned invalid JSON: {e}") from e

        content = (data.get("message") or {}).get("content")
        return content or FALLBACK_ANSWER

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
