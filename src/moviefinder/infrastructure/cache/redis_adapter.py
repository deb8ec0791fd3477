"""Redis-backed CachePort via redis.asyncio, values pickled."""

from __future__ import annotations

import asyncio
import pickle
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from moviefinder.domain.errors import PersistenceError

log = structlog.get_logger(__name__)

T = TypeVar("T")


class RedisAdapter:
    """Shares one connection pool; ``max_concurrent`` bounds in-flight commands."""

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 0,
        max_concurrent: int = 50,
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self._client: Redis | None = None
        self.max_concurrent = max_concurrent
        self._slots = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            client = Redis.from_url(self.url, decode_responses=False)
            try:
                await client.ping()
            except RedisError as e:
                log.error("redis_unreachable", url=self.url, error=str(e))
                await client.aclose()
                raise
            self._client = client
            log.info("redis_connected", url=self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()
            log.info("redis_closed")

    async def _call(self, op: str, key: str, fn: Callable[[Redis], Awaitable[T]]) -> T:
        if self._client is None:
            raise RuntimeError("RedisAdapter used before 'async with'")
        client = self._client
        async with self._slots:
            try:
                return await fn(client)
            except RedisError as e:
                log.error("redis_error", op=op, key=key, error=str(e))
                raise PersistenceError(f"redis {op} failed for {key!r}") from e

    async def get(self, key: str) -> Any:
        raw = await self._call("get", key, lambda r: r.get(key))
        if raw is None:
            return None
        try:
            return pickle.loads(raw)
        except pickle.UnpicklingError:
            log.error("redis_value_unreadable", key=key)
            return None

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        seconds = self.default_ttl if ttl is None else ttl
        packed = pickle.dumps(value)
        if seconds:
            await self._call("set", key, lambda r: r.setex(key, seconds, packed))
        else:
            await self._call("set", key, lambda r: r.set(key, packed))

    # -- rankings ------------------------------------------------------------
    # Sorted sets: ZINCRBY and ZADD are atomic on the server, and the trim to
    # *keep* members runs in the same MULTI/EXEC transaction.

    async def _ranked_write(
        self, op: str, key: str, command: Callable[[Any], Any], keep: int | None
    ) -> list[Any]:
        async def run(r: Redis) -> list[Any]:
            async with r.pipeline(transaction=True) as pipe:
                command(pipe)
                if keep is not None:
                    pipe.zremrangebyrank(key, 0, -(keep + 1))
                return await pipe.execute()

        return await self._call(op, key, run)

    async def rank_add(
        self, key: str, member: str, score: int, *, keep: int | None = None
    ) -> None:
        await self._ranked_write(
            "rank_add", key, lambda pipe: pipe.zadd(key, {member: score}), keep
        )

    async def rank_incr(
        self, key: str, member: str, by: int = 1, *, keep: int | None = None
    ) -> int:
        results = await self._ranked_write(
            "rank_incr", key, lambda pipe: pipe.zincrby(key, by, member), keep
        )
        return int(results[0])

    async def rank_score(self, key: str, member: str) -> int | None:
        score = await self._call("rank_score", key, lambda r: r.zscore(key, member))
        return None if score is None else int(score)

    async def rank_top(
        self, key: str, limit: int, *, offset: int = 0
    ) -> list[tuple[str, int]]:
        rows = await self._call(
            "rank_top",
            key,
            lambda r: r.zrevrange(key, offset, offset + limit - 1, withscores=True),
        )
        return [(_text(member), int(score)) for member, score in rows]

    async def rank_remove(self, key: str, *members: str) -> None:
        if members:
            await self._call("rank_remove", key, lambda r: r.zrem(key, *members))


def _text(member: bytes | str) -> str:
    return member.decode("utf-8") if isinstance(member, bytes) else member
