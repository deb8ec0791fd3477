"""SQLite-backed CachePort on top of the synchronous diskcache library."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any, Callable, TypeVar

import structlog
from diskcache import Cache
from diskcache import Timeout as DiskTimeout

from moviefinder.domain.errors import PersistenceError

log = structlog.get_logger(__name__)

T = TypeVar("T")

_BACKEND_ERRORS = (OSError, sqlite3.Error, DiskTimeout)


class DiskcacheAdapter:
    """Runs every diskcache call in a worker thread.

    At most ``max_concurrent`` calls hit SQLite at once; beyond that the
    callers queue on a semaphore instead of fighting over the database lock.
    """

    def __init__(
        self,
        directory: str | Path = "./.cache/moviefinder",
        ttl_seconds: int = 0,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self._db: Cache | None = None
        self.max_concurrent = max_concurrent
        self._slots = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> DiskcacheAdapter:
        if self._db is None:
            self._db = await asyncio.to_thread(Cache, str(self.directory))
            log.info("diskcache_opened", directory=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        db, self._db = self._db, None
        if db is not None:
            await asyncio.to_thread(db.close)
            log.info("diskcache_closed", directory=str(self.directory))

    async def _call(self, op: str, key: str, fn: Callable[[Cache], T]) -> T:
        if self._db is None:
            raise RuntimeError("DiskcacheAdapter used before 'async with'")
        db = self._db
        async with self._slots:
            try:
                return await asyncio.to_thread(fn, db)
            except _BACKEND_ERRORS as e:
                log.error("diskcache_error", op=op, key=key, error=str(e))
                raise PersistenceError(f"diskcache {op} failed for {key!r}") from e

    async def get(self, key: str) -> Any:
        return await self._call("get", key, lambda db: db.get(key))

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        seconds = self.default_ttl if ttl is None else ttl
        # diskcache: expire=None keeps the item forever
        expire = seconds or None
        await self._call("set", key, lambda db: db.set(key, value, expire=expire))

    # -- rankings ------------------------------------------------------------
    # A ranking is one pickled {member: score} dict. Updates run inside
    # ``Cache.transact`` so processes sharing the directory never interleave.

    async def rank_add(
        self, key: str, member: str, score: int, *, keep: int | None = None
    ) -> None:
        def add(db: Cache) -> None:
            with db.transact(retry=True):
                ranking = _load_ranking(db, key)
                ranking[member] = score
                db.set(key, _trimmed(ranking, keep), retry=True)

        await self._call("rank_add", key, add)

    async def rank_incr(
        self, key: str, member: str, by: int = 1, *, keep: int | None = None
    ) -> int:
        def incr(db: Cache) -> int:
            with db.transact(retry=True):
                ranking = _load_ranking(db, key)
                score = ranking.get(member, 0) + by
                ranking[member] = score
                db.set(key, _trimmed(ranking, keep), retry=True)
            return score

        return await self._call("rank_incr", key, incr)

    async def rank_score(self, key: str, member: str) -> int | None:
        return await self._call(
            "rank_score", key, lambda db: _load_ranking(db, key).get(member)
        )

    async def rank_top(
        self, key: str, limit: int, *, offset: int = 0
    ) -> list[tuple[str, int]]:
        ranking = await self._call("rank_top", key, lambda db: _load_ranking(db, key))
        return _ordered(ranking)[offset : offset + limit]

    async def rank_remove(self, key: str, *members: str) -> None:
        def remove(db: Cache) -> None:
            with db.transact(retry=True):
                ranking = _load_ranking(db, key)
                for member in members:
                    ranking.pop(member, None)
                db.set(key, ranking, retry=True)

        await self._call("rank_remove", key, remove)


def _load_ranking(db: Cache, key: str) -> dict[str, int]:
    value = db.get(key)
    return dict(value) if isinstance(value, dict) else {}


def _ordered(ranking: dict[str, int]) -> list[tuple[str, int]]:
    # sorted() is stable: equal scores keep insertion order
    return sorted(ranking.items(), key=lambda item: item[1], reverse=True)


def _trimmed(ranking: dict[str, int], keep: int | None) -> dict[str, int]:
    if keep is None or len(ranking) <= keep:
        return ranking
    kept = {member for member, _ in _ordered(ranking)[:keep]}
    return {member: score for member, score in ranking.items() if member in kept}
