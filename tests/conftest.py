"""Shared test fixtures for moviefinder test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from moviefinder.application.background import BackgroundTasks
from moviefinder.domain.entities.movie import TrendingEntry

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class InMemoryCache:
    """Dict-backed CachePort (no TTL handling)."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.rankings: dict[str, dict[str, int]] = {}

    async def get(self, key: str) -> Any:
        return self.data.get(key)

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        self.data[key] = value

    async def rank_add(
        self, key: str, member: str, score: int, *, keep: int | None = None
    ) -> None:
        self.rankings.setdefault(key, {})[member] = score
        self._trim(key, keep)

    async def rank_incr(
        self, key: str, member: str, by: int = 1, *, keep: int | None = None
    ) -> int:
        ranking = self.rankings.setdefault(key, {})
        ranking[member] = score = ranking.get(member, 0) + by
        self._trim(key, keep)
        return score

    async def rank_score(self, key: str, member: str) -> int | None:
        return self.rankings.get(key, {}).get(member)

    async def rank_top(
        self, key: str, limit: int, *, offset: int = 0
    ) -> list[tuple[str, int]]:
        return self._ordered(key)[offset : offset + limit]

    async def rank_remove(self, key: str, *members: str) -> None:
        for member in members:
            self.rankings.get(key, {}).pop(member, None)

    def _ordered(self, key: str) -> list[tuple[str, int]]:
        return sorted(
            self.rankings.get(key, {}).items(), key=lambda item: item[1], reverse=True
        )

    def _trim(self, key: str, keep: int | None) -> None:
        if keep is not None and len(self.rankings[key]) > keep:
            kept = {member for member, _ in self._ordered(key)[:keep]}
            self.rankings[key] = {
                m: s for m, s in self.rankings[key].items() if m in kept
            }

    async def aclose(self) -> None:
        return None

    async def __aenter__(self) -> InMemoryCache:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None


def _make_entry(movie_id: int, count: int, title: str | None = None) -> TrendingEntry:
    title = title or f"Movie {movie_id}"
    return TrendingEntry(
        movie_id=movie_id,
        title=title,
        poster_url=f"https://image.tmdb.org/t/p/w500/{movie_id}.jpg",
        count=count,
        movie={"id": movie_id, "title": title},
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.rank_add = AsyncMock()
    cache.rank_incr = AsyncMock(return_value=1)
    cache.rank_score = AsyncMock(return_value=None)
    cache.rank_top = AsyncMock(return_value=[])
    cache.rank_remove = AsyncMock()
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def mock_metadata() -> AsyncMock:
    """Mock MovieMetadataPort (configured, empty payloads)."""
    metadata = AsyncMock()
    metadata.configured = True
    metadata.discover_popular = AsyncMock(return_value={"results": []})
    metadata.search = AsyncMock(return_value={"results": []})
    metadata.trending_week = AsyncMock(return_value={"results": []})
    return metadata


@pytest.fixture()
def mock_store() -> AsyncMock:
    """Mock TrendingStorePort (empty store)."""
    store = AsyncMock()
    store.top_trending = AsyncMock(return_value=[])
    store.get = AsyncMock(return_value=None)
    store.increment_search_count = AsyncMock()
    store.upsert_trending = AsyncMock(return_value=0)
    return store


@pytest.fixture()
def background() -> BackgroundTasks:
    return BackgroundTasks()


@pytest.fixture()
def make_entry():
    """Factory for TrendingEntry records."""
    return _make_entry
