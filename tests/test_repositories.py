"""
Tests for the cache stores and the persisted entry layout.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import redis

from answer_cache.entities import CacheEntry, Category
from answer_cache.exceptions import StoreWriteError
from answer_cache.repositories import (
    CacheStore,
    InMemoryCacheRepository,
    RedisCacheRepository,
    decode_entry,
    encode_entry,
)

NOW = 1_700_000_000.0


def make_entry(query="What is a prime number?", embedding=(0.1, 0.2, 0.3, 0.4), created_at=NOW, ttl_seconds=600):
    return CacheEntry.create(
        query=query,
        response="A number with exactly two divisors.",
        embedding=list(embedding),
        category=Category.EVERGREEN,
        ttl_seconds=ttl_seconds,
        created_at=created_at,
    )


def test_encode_decode_round_trip():
    entry = make_entry(created_at=NOW + 0.123456)
    decoded = decode_entry(encode_entry(entry), dimension=4)

    assert decoded.id == entry.id
    assert decoded.query == entry.query
    assert decoded.response == entry.response
    assert decoded.category == Category.EVERGREEN
    assert decoded.created_at == entry.created_at
    assert decoded.ttl_seconds == 600
    assert decoded.embedding == pytest.approx(entry.embedding, rel=1e-6)


def test_decode_accepts_bytes_keys_and_values():
    mapping = {k.encode(): (v.encode() if isinstance(v, str) else v) for k, v in encode_entry(make_entry()).items()}
    assert decode_entry(mapping).query == "What is a prime number?"


def test_decode_rejects_missing_fields():
    mapping = encode_entry(make_entry())
    del mapping["embedding"]
    with pytest.raises(ValueError, match="embedding"):
        decode_entry(mapping)


def test_same_normalized_query_shares_a_slot():
    assert make_entry("What is a prime number?").id == make_entry("  what IS a prime   number?").id
    assert make_entry("What is a prime number?").id != make_entry("What is a composite number?").id


class TestInMemoryCacheRepository:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryCacheRepository(), CacheStore)

    def test_put_then_scan(self):
        repo = InMemoryCacheRepository(dimension=4)
        key = repo.put(make_entry())

        assert key.startswith("answer_cache:")
        entries = repo.scan(10)
        assert len(entries) == 1
        assert entries[0].embedding == pytest.approx([0.1, 0.2, 0.3, 0.4], rel=1e-6)

    def test_scan_window_is_bounded(self):
        repo = InMemoryCacheRepository()
        for i in range(5):
            repo.put(make_entry(query=f"question {i}"))

        assert [e.query for e in repo.scan(3)] == ["question 0", "question 1", "question 2"]
        assert repo.count_all() == 5

    def test_scan_skips_malformed_documents(self):
        repo = InMemoryCacheRepository(dimension=4)
        repo.put(make_entry(query="good"))
        repo.put_raw("answer_cache:bad-vector", {**encode_entry(make_entry(query="bad")), "embedding": b"\x00"})
        repo.put_raw("answer_cache:missing", {"query": "missing fields"})
        repo.put(make_entry(query="wrong size", embedding=(1.0, 2.0)))

        assert [e.query for e in repo.scan(10)] == ["good"]

    def test_upsert_replaces_entry(self):
        repo = InMemoryCacheRepository()
        repo.put(make_entry(created_at=NOW))
        repo.put(make_entry(created_at=NOW + 100))

        entries = repo.scan(10)
        assert len(entries) == 1
        assert entries[0].created_at == NOW + 100

    def test_purge_expired(self):
        repo = InMemoryCacheRepository()
        repo.put(make_entry(query="old", created_at=NOW - 600, ttl_seconds=600))
        repo.put(make_entry(query="new", created_at=NOW - 599, ttl_seconds=600))
        repo.put_raw("answer_cache:broken", {"query": "no bookkeeping"})

        assert repo.purge_expired(now=NOW) == 2
        assert [e.query for e in repo.scan(10)] == ["new"]


@pytest.fixture
def redis_client():
    client = MagicMock(spec=redis.Redis)
    client.pipeline.return_value = MagicMock()
    return client


class TestRedisCacheRepository:
    def test_satisfies_protocol(self, redis_client):
        assert isinstance(RedisCacheRepository(redis_client=redis_client), CacheStore)

    def test_put_writes_hash(self, redis_client):
        repo = RedisCacheRepository(redis_client=redis_client, index_name="test", dimension=4, native_expiry=False)
        entry = make_entry()

        key = repo.put(entry)

        pipe = redis_client.pipeline.return_value
        assert key == f"test:{entry.id}"
        pipe.hset.assert_called_once_with(key, mapping=encode_entry(entry))
        pipe.expire.assert_not_called()
        pipe.execute.assert_called_once()

    def test_put_sets_native_expiry(self, redis_client):
        repo = RedisCacheRepository(redis_client=redis_client, index_name="test", dimension=4, native_expiry=True)
        key = repo.put(make_entry(ttl_seconds=600))

        redis_client.pipeline.return_value.expire.assert_called_once_with(key, 600)

    def test_put_failure_raises_store_write_error(self, redis_client):
        redis_client.pipeline.return_value.execute.side_effect = redis.ConnectionError("down")
        repo = RedisCacheRepository(redis_client=redis_client, dimension=4, native_expiry=False)

        with pytest.raises(StoreWriteError) as exc_info:
            repo.put(make_entry())
        assert exc_info.value.dependency == "store"

    def test_scan_loads_and_skips_malformed(self, redis_client):
        good = make_entry(query="good")
        redis_client.scan_iter.return_value = iter([b"test:1", b"test:2", b"test:3", b"test:4"])
        redis_client.pipeline.return_value.execute.return_value = [
            encode_entry(good),
            {},
            {b"query": b"no other fields"},
            {**encode_entry(make_entry(query="bad")), "embedding": "not a vector"},
        ]
        repo = RedisCacheRepository(redis_client=redis_client, index_name="test", dimension=4)

        entries = repo.scan(100)

        assert [e.query for e in entries] == ["good"]
        redis_client.scan_iter.assert_called_once_with(match="test:*", count=100)

    def test_scan_respects_limit(self, redis_client):
        redis_client.scan_iter.return_value = iter([f"test:{i}".encode() for i in range(10)])
        redis_client.pipeline.return_value.execute.return_value = [{}, {}]
        repo = RedisCacheRepository(redis_client=redis_client, index_name="test", dimension=4)

        repo.scan(2)

        assert redis_client.pipeline.return_value.hgetall.call_count == 2

    def test_scan_failure_returns_empty(self, redis_client):
        redis_client.scan_iter.side_effect = redis.ConnectionError("down")
        repo = RedisCacheRepository(redis_client=redis_client, dimension=4)

        assert repo.scan(100) == []

    def test_find_by_vector_without_index_scans(self, redis_client):
        redis_client.scan_iter.return_value = iter([])
        repo = RedisCacheRepository(redis_client=redis_client, dimension=4)

        assert repo.find_by_vector([1.0, 0.0, 0.0, 0.0], 10) == []
        redis_client.scan_iter.assert_called_once()

    def test_scan_skips_keys_of_the_wrong_type(self, redis_client):
        """A stray non-hash key under the prefix only drops itself."""
        good = make_entry(query="good")
        redis_client.scan_iter.return_value = iter([b"test:1", b"test:stray"])
        redis_client.pipeline.return_value.execute.return_value = [
            encode_entry(good),
            redis.ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value"),
        ]
        repo = RedisCacheRepository(redis_client=redis_client, index_name="test", dimension=4)

        assert [e.query for e in repo.scan(100)] == ["good"]
        redis_client.pipeline.return_value.execute.assert_called_once_with(raise_on_error=False)

    def test_purge_skips_keys_of_the_wrong_type(self, redis_client):
        redis_client.scan_iter.return_value = iter([b"test:stray", b"test:old"])
        redis_client.hmget.side_effect = [
            redis.ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value"),
            [str(NOW - 600).encode(), b"600"],
        ]
        redis_client.delete.return_value = 1
        repo = RedisCacheRepository(redis_client=redis_client, index_name="test", dimension=4)

        assert repo.purge_expired(now=NOW) == 1
        redis_client.delete.assert_called_once_with(b"test:old")


@pytest.fixture
def search_index(monkeypatch):
    """Replace redisvl's SearchIndex and VectorQuery with mocks."""
    index = MagicMock()
    from_dict = MagicMock(return_value=index)
    vector_query = MagicMock(name="VectorQuery")
    monkeypatch.setattr("answer_cache.repositories.redis_repository.SearchIndex.from_dict", from_dict)
    monkeypatch.setattr("answer_cache.repositories.redis_repository.VectorQuery", vector_query)
    return SimpleNamespace(index=index, from_dict=from_dict, vector_query=vector_query)


class TestRedisVectorIndex:
    def make_repo(self, redis_client):
        repo = RedisCacheRepository(redis_client=redis_client, index_name="test", dimension=4, use_index=True)
        repo.open()
        return repo

    def test_open_creates_index(self, redis_client, search_index):
        self.make_repo(redis_client)

        schema = search_index.from_dict.call_args.args[0]
        assert search_index.from_dict.call_args.kwargs == {"redis_client": redis_client}
        assert schema["index"] == {"name": "test", "prefix": "test:", "storage_type": "hash"}
        vector_field = next(f for f in schema["fields"] if f["name"] == "embedding")
        assert vector_field["attrs"]["dims"] == 4
        assert vector_field["attrs"]["distance_metric"] == "cosine"
        search_index.index.create.assert_called_once_with(overwrite=False)

    def test_open_reuses_existing_index(self, redis_client, search_index):
        search_index.index.create.side_effect = redis.ResponseError("Index already exists")

        repo = self.make_repo(redis_client)

        assert repo.get_stats()["candidate_source"] == "index"

    def test_open_propagates_other_index_errors(self, redis_client, search_index):
        search_index.index.create.side_effect = redis.ResponseError("unknown command 'FT.CREATE'")

        with pytest.raises(redis.ResponseError):
            self.make_repo(redis_client)

    def test_find_by_vector_loads_matched_keys(self, redis_client, search_index):
        first = make_entry(query="first")
        second = make_entry(query="second")
        search_index.index.query.return_value = [{"id": f"test:{first.id}"}, {"id": second.id}]
        redis_client.pipeline.return_value.execute.return_value = [encode_entry(first), encode_entry(second)]
        repo = self.make_repo(redis_client)

        entries = repo.find_by_vector([1.0, 0.0, 0.0, 0.0], 5)

        assert [e.query for e in entries] == ["first", "second"]
        loaded = [c.args[0] for c in redis_client.pipeline.return_value.hgetall.call_args_list]
        assert loaded == [f"test:{first.id}", f"test:{second.id}"]
        search_index.vector_query.assert_called_once_with(
            vector=[1.0, 0.0, 0.0, 0.0],
            vector_field_name="embedding",
            return_fields=["created_at"],
            num_results=5,
        )
        search_index.index.query.assert_called_once_with(search_index.vector_query.return_value)
        redis_client.scan_iter.assert_not_called()

    def test_find_by_vector_search_error_returns_empty(self, redis_client, search_index):
        search_index.index.query.side_effect = redis.ResponseError("Syntax error")
        repo = self.make_repo(redis_client)

        assert repo.find_by_vector([1.0, 0.0, 0.0, 0.0], 5) == []

    def test_purge_expired(self, redis_client):
        redis_client.scan_iter.return_value = iter([b"test:old", b"test:new", b"test:broken"])
        redis_client.hmget.side_effect = [
            [str(NOW - 600).encode(), b"600"],
            [str(NOW - 10).encode(), b"600"],
            [None, None],
        ]
        redis_client.delete.return_value = 1
        repo = RedisCacheRepository(redis_client=redis_client, index_name="test", dimension=4)

        assert repo.purge_expired(now=NOW) == 2
        deleted = [call.args[0] for call in redis_client.delete.call_args_list]
        assert deleted == [b"test:old", b"test:broken"]

    def test_health_check(self, redis_client):
        repo = RedisCacheRepository(redis_client=redis_client, dimension=4)

        redis_client.ping.return_value = True
        assert repo.health_check() is True

        redis_client.ping.side_effect = redis.ConnectionError("down")
        assert repo.health_check() is False

    def test_open_pings_without_index(self, redis_client):
        repo = RedisCacheRepository(redis_client=redis_client, dimension=4, use_index=False)
        repo.open()
        redis_client.ping.assert_called_once()
