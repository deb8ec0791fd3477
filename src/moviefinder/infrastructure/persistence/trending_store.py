"""Trending store backed by CachePort (diskcache/redis)."""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

import structlog

from moviefinder.domain.entities.movie import (
    DEFAULT_IMAGE_BASE_URL,
    Movie,
    TrendingEntry,
    movie_id_of,
)
from moviefinder.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

# Ranking of record keys by count; counts live only here.
_RANKING_KEY: str = "trending:ranking"


def _record_key(key: str) -> str:
    return f"trending:record:{key}"


def search_key(query: str) -> str:
    """Record key for a search counter (case/whitespace-insensitive)."""
    return f"search:{' '.join(query.lower().split())}"


def movie_key(movie_id: int) -> str:
    """Record key for a movie persisted from the live trending feed."""
    return f"movie:{movie_id}"


class CacheTrendingStore:
    """Counter-ranked trending records stored via CachePort.

    Key schema:
    - ``trending:record:search:{query}`` → entry for the top result of a query
    - ``trending:record:movie:{id}`` → entry for a live-trending movie
    - ``trending:ranking`` → ranking of record keys by count

    Records hold the movie data and are rewritten whole; the same key always
    carries the same data, so concurrent rewrites are harmless. Counts are
    only changed through ``rank_incr``/``rank_add``, which the backend applies
    atomically, so several store instances (workers) can share one cache.
    The ranking keeps at most ``index_limit`` keys and drops keys whose
    record has expired or is unreadable when ``top_trending`` meets them.
    """

    def __init__(
        self,
        cache: CachePort,
        *,
        image_base_url: str = DEFAULT_IMAGE_BASE_URL,
        ttl_seconds: int = 0,
        index_limit: int = 1000,
    ) -> None:
        self.cache = cache
        self.ttl = ttl_seconds
        self.index_limit = index_limit
        self._image_base = image_base_url

    # -- TrendingStorePort -------------------------------------------------

    async def top_trending(self, limit: int = 5) -> list[TrendingEntry]:
        """Top *limit* entries by descending count, one per movie.

        When a movie has several records (e.g. from different queries) only
        the highest-ranked one is returned.
        """
        top: list[TrendingEntry] = []
        seen: set[int] = set()
        stale: list[str] = []
        offset = 0

        while len(top) < limit:
            page = await self.cache.rank_top(_RANKING_KEY, limit, offset=offset)
            if not page:
                break
            offset += len(page)
            for key, count in page:
                entry = await self._read(key)
                if entry is None:
                    stale.append(key)
                    continue
                if entry.movie_id in seen:
                    continue
                seen.add(entry.movie_id)
                top.append(replace(entry, count=count))
                if len(top) >= limit:
                    break

        if stale:
            await self.cache.rank_remove(_RANKING_KEY, *stale)
            log.info("trending_ranking_pruned", removed=len(stale))
        return top

    async def get(self, key: str) -> TrendingEntry | None:
        entry = await self._read(key)
        if entry is None:
            return None
        count = await self.cache.rank_score(_RANKING_KEY, key)
        return replace(entry, count=count or 0)

    async def create(self, key: str, entry: TrendingEntry) -> TrendingEntry:
        await self._write(key, entry)
        await self.cache.rank_add(
            _RANKING_KEY, key, entry.count, keep=self.index_limit
        )
        log.debug("trending_record_created", key=key, movie_id=entry.movie_id)
        return entry

    async def increment(self, key: str, by: int = 1) -> TrendingEntry | None:
        entry = await self._read(key)
        if entry is None:
            return None
        # rewrite to push the expiry forward
        await self._write(key, entry)
        count = await self.cache.rank_incr(
            _RANKING_KEY, key, by, keep=self.index_limit
        )
        log.debug("trending_record_incremented", key=key, count=count)
        return replace(entry, count=count)

    async def increment_search_count(self, query: str, movie: Movie) -> TrendingEntry:
        return await self._bump(
            search_key(query), self._entry_from_movie(movie, search_term=query)
        )

    async def upsert_trending(self, movies: Sequence[Movie]) -> int:
        written = 0
        for movie in movies:
            movie_id = movie_id_of(movie)
            if movie_id is None:
                log.warning(
                    "trending_movie_without_id",
                    movie_id=movie.get("id") if isinstance(movie, dict) else None,
                )
                continue
            await self._bump(movie_key(movie_id), self._entry_from_movie(movie))
            written += 1
        log.info("trending_upserted", written=written)
        return written

    # -- internal helpers --------------------------------------------------

    def _entry_from_movie(
        self, movie: Movie, *, search_term: str | None = None
    ) -> TrendingEntry:
        return TrendingEntry.from_movie(
            movie, search_term=search_term, image_base_url=self._image_base
        )

    async def _bump(self, key: str, entry: TrendingEntry) -> TrendingEntry:
        updated = await self.increment(key)
        if updated is not None:
            return updated
        # Absent record: write it, then count. A concurrent creator writes the
        # same data and its increment lands on the same ranking member.
        await self._write(key, entry)
        count = await self.cache.rank_incr(
            _RANKING_KEY, key, 1, keep=self.index_limit
        )
        log.debug("trending_record_created", key=key, movie_id=entry.movie_id)
        return replace(entry, count=count)

    async def _read(self, key: str) -> TrendingEntry | None:
        data = await self.cache.get(_record_key(key))
        if data is None:
            return None
        try:
            return TrendingEntry.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            log.error("trending_record_corrupt", key=key, error=str(e))
            return None

    async def _write(self, key: str, entry: TrendingEntry) -> None:
        await self.cache.set(
            _record_key(key), replace(entry, count=0).to_dict(), ttl=self.ttl
        )
