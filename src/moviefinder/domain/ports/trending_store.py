"""Port for the trending document store."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from moviefinder.domain.entities.movie import Movie, TrendingEntry


@runtime_checkable
class TrendingStorePort(Protocol):
    """Async interface for counter-ranked trending records.

    Writes raise ``PersistenceError`` on backend failure.
    """

    async def top_trending(self, limit: int = 5) -> list[TrendingEntry]:
        """Top entries ordered by descending count."""
        ...

    async def get(self, key: str) -> TrendingEntry | None: ...

    async def create(self, key: str, entry: TrendingEntry) -> TrendingEntry: ...

    async def increment(self, key: str, by: int = 1) -> TrendingEntry | None:
        """Increment an existing record's count. None if the key is unknown."""
        ...

    async def increment_search_count(self, query: str, movie: Movie) -> TrendingEntry:
        """Create-or-increment the counter for *movie* keyed by *query*."""
        ...

    async def upsert_trending(self, movies: Sequence[Movie]) -> int:
        """Create-or-increment one record per movie. Returns records written."""
        ...
