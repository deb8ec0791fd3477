"""Pick the CachePort backend named in config."""

from __future__ import annotations

from typing import Literal

import structlog

from moviefinder.domain.ports.cache import CachePort
from moviefinder.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from moviefinder.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "redis"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str = "./.cache/moviefinder",
    redis_url: str = "redis://localhost:6379/0",
    ttl_seconds: int = 0,
    max_concurrent: int = 10,
) -> CachePort:
    """Build an unopened adapter; the caller enters it with ``async with``.

    Raises:
        ValueError: For any backend other than "diskcache" or "redis".
    """
    cache: CachePort
    if backend == "diskcache":
        cache = DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    elif backend == "redis":
        cache = RedisAdapter(
            url=redis_url,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    else:
        raise ValueError(f"Unknown cache backend: {backend!r}")
    log.info("cache_backend_selected", backend=backend, ttl_seconds=ttl_seconds)
    return cache
