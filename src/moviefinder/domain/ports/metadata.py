"""Port for the movie metadata provider (TMDB)."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MovieMetadataPort(Protocol):
    """Async read-only access to the metadata provider.

    Every call returns the parsed JSON payload (with a ``results`` list) or
    raises ``ConfigError`` / ``TransportError`` / ``SemanticError``.
    """

    @property
    def configured(self) -> bool:
        """True when an API credential is available."""
        ...

    async def discover_popular(self) -> dict[str, Any]:
        """Discovery feed sorted by popularity (used for empty queries)."""
        ...

    async def search(self, query: str) -> dict[str, Any]:
        """Keyword search."""
        ...

    async def trending_week(self) -> dict[str, Any]:
        """Weekly trending feed."""
        ...
