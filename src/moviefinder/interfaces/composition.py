"""Composition root: builds every resource inside the FastAPI lifespan."""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from moviefinder.application.background import BackgroundTasks
from moviefinder.application.use_cases import (
    SearchMoviesUseCase,
    TrendingMoviesUseCase,
)
from moviefinder.infrastructure.cache.cache_factory import create_cache
from moviefinder.infrastructure.persistence.trending_store import CacheTrendingStore
from moviefinder.infrastructure.tmdb.client import HttpxTmdbClient
from moviefinder.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

_DRAIN_TIMEOUT_SECONDS = 5.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open resources on startup and release them in reverse on shutdown.

    Shutdown order: pending background writes are drained first, while the
    HTTP client and the cache are still open, then the client, then the cache.
    """
    state = cast(AppState, app.state)
    config = state.config

    async with AsyncExitStack() as stack:
        state.cache = await stack.enter_async_context(
            create_cache(
                config.cache.backend,
                directory=str(config.cache.directory),
                redis_url=config.cache.redis_url,
                ttl_seconds=config.cache.ttl_seconds,
                max_concurrent=config.cache.max_concurrent,
            )
        )
        state.http_client = await stack.enter_async_context(
            httpx.AsyncClient(
                timeout=httpx.Timeout(config.http_timeout_seconds),
                headers={"User-Agent": config.http_user_agent},
            )
        )

        state.trending_store = CacheTrendingStore(
            state.cache,
            image_base_url=config.tmdb_image_base_url,
            ttl_seconds=config.cache.ttl_seconds,
            index_limit=config.trending.index_limit,
        )
        state.metadata = HttpxTmdbClient(
            api_key=config.tmdb_api_key,
            http_client=state.http_client,
            base_url=config.tmdb_base_url,
        )
        if not state.metadata.configured:
            log.warning(
                "tmdb_api_key_missing",
                hint="set MOVIEFINDER_TMDB_API_KEY; search fails and trending serves the store only",
            )

        state.background = BackgroundTasks()
        stack.push_async_callback(state.background.drain, timeout=_DRAIN_TIMEOUT_SECONDS)

        state.search_uc = SearchMoviesUseCase(
            metadata=state.metadata,
            store=state.trending_store,
            background=state.background,
        )
        state.trending_uc = TrendingMoviesUseCase(
            metadata=state.metadata,
            store=state.trending_store,
            background=state.background,
            cache_limit=config.trending.cache_limit,
            persist_limit=config.trending.persist_limit,
            image_base_url=config.tmdb_image_base_url,
        )

        log.info(
            "app_started",
            cache_backend=config.cache.backend,
            tmdb_configured=state.metadata.configured,
        )
        yield
        log.info("app_stopping")
