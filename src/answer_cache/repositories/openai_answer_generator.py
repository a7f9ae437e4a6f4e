"""OpenAI chat-completions answer generator."""

import openai
from openai import AsyncOpenAI

from answer_cache.config import settings
from answer_cache.exceptions import GenerationError

SYSTEM_PROMPT = "You are a helpful, concise assistant. Keep answers short but accurate."
FALLBACK_ANSWER = "Sorry, I have no answer."


class OpenAIAnswerGenerator:
    """OpenAI implementation of AnswerGenerator protocol."""

    def __init__(
        self,
        model_name: str | None = None,
        api_key: str | None = None,
        temperature: float | None = None,
        system_prompt: str = SYSTEM_PROMPT,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._model_name = model_name or settings.generation_model
        self._temperature = settings.generation_temperature if temperature is None else temperature
        self._system_prompt = system_prompt
        self._client = client or AsyncOpenAI(api_key=api_key or settings.openai_api_key)

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        api_key: str | None = None,
        temperature: float | None = None,
    ) -> "OpenAIAnswerGenerator":
        """Factory method to create OpenAIAnswerGenerator with defaults."""
        return cls(model_name=model_name, api_key=api_key, temperature=temperature)

    @property
    def model_name(self) -> str:
        return self._model_name

    async def generate(self, query: str) -> str:
        """Ask the chat model for an answer.

        Raises:
            GenerationError: If the API call fails
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model_name,
                messages=[
                    {"role": "system", "content": self._system_prompt},
                    {"role": "user", "content": query},
                ],
                temperature=self._temperature,
            )
        except openai.OpenAIError as e:
            raise GenerationError(f"OpenAI chat error: {e}") from e

        if not response.choices:
            return FALLBACK_ANSWER
        return response.choices[0].message.content or FALLBACK_ANSWER

    async def close(self) -> None:
        await self._client.close()
