"""Domain entities for movies and trending entries.

Pure value objects with no framework dependencies and no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Upstream movie record, passed through verbatim (id, title, poster_path, ...).
Movie = dict[str, Any]

DEFAULT_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"


def movie_id_of(movie: Any) -> int | None:
    """Integer id of an upstream record, or None when it has no usable id."""
    if not isinstance(movie, dict):
        return None
    raw = movie.get("id")
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw)
    return None


def poster_url(poster_path: Any, image_base_url: str = DEFAULT_IMAGE_BASE_URL) -> str:
    if not isinstance(poster_path, str) or not poster_path:
        return ""
    return f"{image_base_url.rstrip('/')}{poster_path}"


@dataclass(frozen=True)
class TrendingEntry:
    """A movie ranked by the store-maintained search counter."""

    movie_id: int
    title: str = ""
    poster_url: str = ""
    count: int = 0
    search_term: str | None = None
    movie: Movie = field(default_factory=dict, compare=False)

    @classmethod
    def from_movie(
        cls,
        movie: Movie,
        *,
        count: int = 0,
        search_term: str | None = None,
        image_base_url: str = DEFAULT_IMAGE_BASE_URL,
    ) -> TrendingEntry:
        """Wrap an upstream record.

        Raises:
            ValueError: When the record has no integer id (see ``movie_id_of``).
        """
        movie_id = movie_id_of(movie)
        if movie_id is None:
            raise ValueError("movie record without a usable id")
        return cls(
            movie_id=movie_id,
            title=movie.get("title") or movie.get("original_title") or "",
            poster_url=poster_url(movie.get("poster_path"), image_base_url),
            count=count,
            search_term=search_term,
            movie=dict(movie),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "movie_id": self.movie_id,
            "title": self.title,
            "poster_url": self.poster_url,
            "count": self.count,
            "search_term": self.search_term,
            "movie": self.movie,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrendingEntry:
        return cls(
            movie_id=int(data["movie_id"]),
            title=data.get("title", ""),
            poster_url=data.get("poster_url", ""),
            count=int(data.get("count", 0)),
            search_term=data.get("search_term"),
            movie=dict(data.get("movie") or {}),
        )
