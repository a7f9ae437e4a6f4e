"""
Shared fixtures: in-process fakes for the external collaborators.
"""

import asyncio

import pytest

from answer_cache.entities import normalize_query
from answer_cache.freshness import FreshnessPolicy
from answer_cache.repositories import InMemoryCacheRepository
from answer_cache.services import AnswerService

FRESH_TTL = 10800
EVERGREEN_TTL = 604800
START_TIME = 1_700_000_000.0


class FakeEmbeddingProvider:
    """Returns preset vectors keyed by normalized query text."""

    def __init__(self, vectors=None, dimension=4, default=None, error=None, delay=0.0):
        self.vectors = {normalize_query(k): v for k, v in (vectors or {}).items()}
        self._dimension = dimension
        self.default = default or [0.0, 0.0, 0.0, 1.0]
        self.error = error
        self.delay = delay
        self.available = True
        self.calls = []

    @property
    def dimension(self):
        return self._dimension

    @property
    def model_name(self):
        return "fake-embedder"

    async def encode(self, text):
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.vectors.get(normalize_query(text), self.default))

    async def is_available(self):
        return self.available

    async def close(self):
        pass


class FakeGenerator:
    """Answers "answer #n to <query>" and counts calls."""

    def __init__(self, error=None, delay=0.0):
        self.error = error
        self.delay = delay
        self.calls = []

    @property
    def model_name(self):
        return "fake-generator"

    async def generate(self, query):
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return f"answer #{len(self.calls)} to {query}"

    async def close(self):
        pass


class FakeClock:
    def __init__(self, now=START_TIME):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository():
    return InMemoryCacheRepository(dimension=4)


@pytest.fixture
def embeddings():
    return FakeEmbeddingProvider(
        vectors={
            "What's the weather today?": [1.0, 0.0, 0.0, 0.0],
            "What is the definition of photosynthesis?": [0.0, 1.0, 0.0, 0.0],
            "price of Bitcoin now": [0.6, 0.0, 0.8, 0.0],
            "current Bitcoin price": [0.62, 0.05, 0.78, 0.0],
        }
    )


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def policy():
    return FreshnessPolicy(fresh_ttl=FRESH_TTL, evergreen_ttl=EVERGREEN_TTL)


@pytest.fixture
def service(repository, embeddings, generator, policy, clock):
    """AnswerService wired to in-process fakes."""
    return AnswerService(
        repository=repository,
        embedding_provider=embeddings,
        generator=generator,
        policy=policy,
        threshold=0.7,
        candidate_window=100,
        candidate_source="scan",
        rank_k=3,
        embedding_timeout=1.0,
        generation_timeout=1.0,
        store_timeout=1.0,
        clock=clock,
    )
