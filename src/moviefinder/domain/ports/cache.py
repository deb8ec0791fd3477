"""Key-value backend that the trending store persists its records in."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Async key-value store opened with ``async with``.

    Implemented by ``DiskcacheAdapter`` (local SQLite) and ``RedisAdapter``.
    Besides plain values it keeps rankings: member → integer score maps
    whose updates are atomic in the backend, so several processes may share
    one. Backend failures surface as ``PersistenceError``.
    """

    async def get(self, key: str) -> Any:
        """Stored value, or None when the key is absent or expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store *value*. ``ttl=None`` uses the adapter default, 0 never expires."""
        ...

    async def rank_add(
        self, key: str, member: str, score: int, *, keep: int | None = None
    ) -> None:
        """Set *member*'s score. With *keep*, only the top *keep* members stay."""
        ...

    async def rank_incr(
        self, key: str, member: str, by: int = 1, *, keep: int | None = None
    ) -> int:
        """Add *by* to *member*'s score (absent counts as 0); returns the new score."""
        ...

    async def rank_score(self, key: str, member: str) -> int | None: ...

    async def rank_top(
        self, key: str, limit: int, *, offset: int = 0
    ) -> list[tuple[str, int]]:
        """``(member, score)`` pairs by descending score, skipping *offset*."""
        ...

    async def rank_remove(self, key: str, *members: str) -> None: ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
