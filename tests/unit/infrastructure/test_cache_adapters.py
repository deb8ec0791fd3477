"""Tests for the cache factory and the Redis adapter's error mapping."""

from __future__ import annotations

import pickle
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from moviefinder.domain.errors import PersistenceError
from moviefinder.infrastructure.cache import (
    DiskcacheAdapter,
    RedisAdapter,
    create_cache,
)


class TestCreateCache:
    def test_diskcache_backend(self, tmp_path) -> None:
        cache = create_cache("diskcache", directory=str(tmp_path), ttl_seconds=30)

        assert isinstance(cache, DiskcacheAdapter)
        assert cache.default_ttl == 30

    def test_redis_backend(self) -> None:
        cache = create_cache("redis", redis_url="redis://cache:6379/1")

        assert isinstance(cache, RedisAdapter)
        assert cache.url == "redis://cache:6379/1"

    def test_max_concurrent_reaches_both_backends(self, tmp_path) -> None:
        disk = create_cache("diskcache", directory=str(tmp_path), max_concurrent=3)
        redis = create_cache("redis", max_concurrent=7)

        assert disk.max_concurrent == 3
        assert redis.max_concurrent == 7

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown cache backend"):
            create_cache("memcached")  # type: ignore[arg-type]


@pytest.fixture()
def redis_client() -> AsyncMock:
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    return client


@pytest.fixture()
def redis_cache(redis_client: AsyncMock) -> RedisAdapter:
    adapter = RedisAdapter(ttl_seconds=0)
    adapter._client = redis_client  # noqa: SLF001
    return adapter


class TestRedisAdapter:
    async def test_get_unpickles(self, redis_cache: RedisAdapter, redis_client) -> None:
        redis_client.get.return_value = pickle.dumps({"count": 3})

        assert await redis_cache.get("k") == {"count": 3}

    async def test_get_miss(self, redis_cache: RedisAdapter) -> None:
        assert await redis_cache.get("k") is None

    async def test_set_without_ttl_never_expires(
        self, redis_cache: RedisAdapter, redis_client
    ) -> None:
        await redis_cache.set("k", [1, 2])

        redis_client.set.assert_awaited_once_with("k", pickle.dumps([1, 2]))
        redis_client.setex.assert_not_awaited()

    async def test_set_with_ttl(self, redis_cache: RedisAdapter, redis_client) -> None:
        await redis_cache.set("k", "v", ttl=60)

        redis_client.setex.assert_awaited_once_with("k", 60, pickle.dumps("v"))

    async def test_get_error_wrapped(self, redis_cache: RedisAdapter, redis_client) -> None:
        redis_client.get.side_effect = RedisConnectionError("gone")

        with pytest.raises(PersistenceError):
            await redis_cache.get("k")

    async def test_set_error_wrapped(self, redis_cache: RedisAdapter, redis_client) -> None:
        redis_client.set.side_effect = RedisConnectionError("gone")

        with pytest.raises(PersistenceError):
            await redis_cache.set("k", "v")

    async def test_not_initialized(self) -> None:
        with pytest.raises(RuntimeError):
            await RedisAdapter().get("k")


@pytest.fixture()
def pipeline(redis_client: AsyncMock) -> MagicMock:
    pipe = MagicMock()
    pipe.__aenter__.return_value = pipe
    pipe.execute = AsyncMock(return_value=[3.0])
    redis_client.pipeline = MagicMock(return_value=pipe)
    return pipe


class TestRedisRanking:
    async def test_incr_is_one_transaction(
        self, redis_cache: RedisAdapter, redis_client, pipeline: MagicMock
    ) -> None:
        pipeline.execute.return_value = [3.0, 0]

        score = await redis_cache.rank_incr("rank", "search:batman", keep=100)

        assert score == 3
        redis_client.pipeline.assert_called_once_with(transaction=True)
        pipeline.zincrby.assert_called_once_with("rank", 1, "search:batman")
        pipeline.zremrangebyrank.assert_called_once_with("rank", 0, -101)

    async def test_add_without_keep_does_not_trim(
        self, redis_cache: RedisAdapter, pipeline: MagicMock
    ) -> None:
        await redis_cache.rank_add("rank", "movie:1", 4)

        pipeline.zadd.assert_called_once_with("rank", {"movie:1": 4})
        pipeline.zremrangebyrank.assert_not_called()

    async def test_top_decodes_members(
        self, redis_cache: RedisAdapter, redis_client
    ) -> None:
        redis_client.zrevrange.return_value = [
            (b"search:batman", 3.0),
            (b"movie:1", 1.0),
        ]

        top = await redis_cache.rank_top("rank", 2, offset=4)

        assert top == [("search:batman", 3), ("movie:1", 1)]
        redis_client.zrevrange.assert_awaited_once_with("rank", 4, 5, withscores=True)

    async def test_score_of_missing_member(
        self, redis_cache: RedisAdapter, redis_client
    ) -> None:
        redis_client.zscore.return_value = None

        assert await redis_cache.rank_score("rank", "nope") is None

    async def test_transaction_error_wrapped(
        self, redis_cache: RedisAdapter, pipeline: MagicMock
    ) -> None:
        pipeline.execute.side_effect = RedisConnectionError("gone")

        with pytest.raises(PersistenceError):
            await redis_cache.rank_incr("rank", "m")
