"""
Tests for the embedding and generation adapters, with HTTP and SDK calls mocked out.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from answer_cache.exceptions import EmbeddingError, GenerationError
from answer_cache.protocols import AnswerGenerator, EmbeddingProvider
from answer_cache.repositories import (
    OllamaAnswerGenerator,
    OllamaEmbeddingProvider,
    OpenAIAnswerGenerator,
    OpenAIEmbeddingProvider,
)
from answer_cache.repositories.openai_answer_generator import FALLBACK_ANSWER

OLLAMA_URL = "http://ollama.test"


def ollama_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def ollama_embedder(handler, dimension=3):
    return OllamaEmbeddingProvider(
        model_name="nomic-embed-text",
        base_url=OLLAMA_URL,
        dimension=dimension,
        client=ollama_client(handler),
    )


def openai_client():
    client = MagicMock()
    client.embeddings.create = AsyncMock()
    client.chat.completions.create = AsyncMock()
    client.models.retrieve = AsyncMock()
    client.close = AsyncMock()
    return client


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1"))


class TestOllamaEmbeddingProvider:
    def test_satisfies_protocol(self):
        assert isinstance(OllamaEmbeddingProvider(dimension=3), EmbeddingProvider)

    @pytest.mark.asyncio
    async def test_encode(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3]]})

        provider = ollama_embedder(handler)
        assert await provider.encode("hello") == [0.1, 0.2, 0.3]

        assert requests[0].url == f"{OLLAMA_URL}/api/embed"
        assert json.loads(requests[0].content) == {"model": "nomic-embed-text", "input": "hello"}
        await provider.close()

    @pytest.mark.asyncio
    async def test_encode_accepts_legacy_single_embedding(self):
        provider = ollama_embedder(lambda request: httpx.Response(200, json={"embedding": [1, 2, 3]}))
        assert await provider.encode("hello") == [1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, text="model not loaded"),
            httpx.Response(200, text="<html>proxy error</html>"),
            httpx.Response(200, json={"embeddings": []}),
            httpx.Response(200, json={"embeddings": [[0.1, 0.2]]}),
            httpx.Response(200, json={"embeddings": [[0.1, None, 0.3]]}),
            httpx.Response(200, json=[0.1, 0.2, 0.3]),
            httpx.Response(200, json={"embeddings": "not a list"}),
        ],
    )
    async def test_encode_failures_raise_embedding_error(self, response):
        provider = ollama_embedder(lambda request: response)
        with pytest.raises(EmbeddingError):
            await provider.encode("hello")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(EmbeddingError, match="ollama serve"):
            await ollama_embedder(handler).encode("hello")

    @pytest.mark.asyncio
    async def test_is_available(self):
        tags = {"models": [{"name": "nomic-embed-text:latest"}, {"name": "llama3.2:latest"}]}
        provider = ollama_embedder(lambda request: httpx.Response(200, json=tags))
        assert await provider.is_available() is True

        provider = ollama_embedder(lambda request: httpx.Response(200, json={"models": []}))
        assert await provider.is_available() is False


class TestOllamaAnswerGenerator:
    @pytest.mark.asyncio
    async def test_generate(self):
        requests = []

        def handler(request):
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "Sunny."}})

        generator = OllamaAnswerGenerator(
            model_name="llama3.2", base_url=OLLAMA_URL, temperature=0.0, client=ollama_client(handler)
        )

        assert await generator.generate("Weather?") == "Sunny."
        assert requests[0]["stream"] is False
        assert requests[0]["messages"][-1] == {"role": "user", "content": "Weather?"}

    @pytest.mark.asyncio
    async def test_empty_content_falls_back(self):
        generator = OllamaAnswerGenerator(
            base_url=OLLAMA_URL,
            client=ollama_client(lambda request: httpx.Response(200, json={"message": {"content": ""}})),
        )
        assert await generator.generate("Weather?") == FALLBACK_ANSWER

    @pytest.mark.asyncio
    async def test_http_error(self):
        generator = OllamaAnswerGenerator(
            base_url=OLLAMA_URL,
            client=ollama_client(lambda request: httpx.Response(503)),
        )
        with pytest.raises(GenerationError):
            await generator.generate("Weather?")


class TestOpenAIEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_encode(self):
        client = openai_client()
        client.embeddings.create.return_value = SimpleNamespace(data=[SimpleNamespace(embedding=[0.5, 0.5])])
        provider = OpenAIEmbeddingProvider(model_name="text-embedding-3-small", dimension=2, client=client)

        assert isinstance(provider, EmbeddingProvider)
        assert await provider.encode("hello") == [0.5, 0.5]
        client.embeddings.create.assert_awaited_once_with(model="text-embedding-3-small", input="hello")

    @pytest.mark.asyncio
    async def test_api_error(self):
        client = openai_client()
        client.embeddings.create.side_effect = connection_error()
        provider = OpenAIEmbeddingProvider(dimension=2, client=client)

        with pytest.raises(EmbeddingError):
            await provider.encode("hello")

    @pytest.mark.asyncio
    async def test_wrong_dimension(self):
        client = openai_client()
        client.embeddings.create.return_value = SimpleNamespace(data=[SimpleNamespace(embedding=[0.5, 0.5])])
        provider = OpenAIEmbeddingProvider(dimension=1536, client=client)

        with pytest.raises(EmbeddingError, match="1536"):
            await provider.encode("hello")

    @pytest.mark.asyncio
    async def test_is_available(self):
        client = openai_client()
        provider = OpenAIEmbeddingProvider(dimension=2, client=client)
        assert await provider.is_available() is True

        client.models.retrieve.side_effect = connection_error()
        assert await provider.is_available() is False


class TestOpenAIAnswerGenerator:
    @pytest.mark.asyncio
    async def test_generate(self):
        client = openai_client()
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Paris."))]
        )
        generator = OpenAIAnswerGenerator(model_name="gpt-4o-mini", temperature=0.2, client=client)

        assert isinstance(generator, AnswerGenerator)
        assert await generator.generate("Capital of France?") == "Paris."

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"][0]["role"] == "system"
        assert kwargs["messages"][1] == {"role": "user", "content": "Capital of France?"}

    @pytest.mark.asyncio
    async def test_no_choices_falls_back(self):
        client = openai_client()
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        generator = OpenAIAnswerGenerator(client=client)

        assert await generator.generate("Capital of France?") == FALLBACK_ANSWER

    @pytest.mark.asyncio
    async def test_api_error(self):
        client = openai_client()
        client.chat.completions.create.side_effect = connection_error()
        generator = OpenAIAnswerGenerator(client=client)

        with pytest.raises(GenerationError):
            await generator.generate("Capital of France?")
