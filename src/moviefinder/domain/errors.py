"""Error taxonomy for movie search and trending resolution."""

from __future__ import annotations


class MovieFinderError(Exception):
    """Base error for moviefinder domain/use cases."""


class ConfigError(MovieFinderError):
    """Required configuration (e.g. the TMDB API key) is missing."""


class TransportError(MovieFinderError):
    """Non-2xx response or network failure talking to an upstream service."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SemanticError(MovieFinderError):
    """2xx response whose body flags an application-level failure."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Failed to fetch movies")
        self.message = message


class PersistenceError(MovieFinderError):
    """Trending store read/write failed."""
