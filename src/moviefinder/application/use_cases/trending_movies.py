"""Trending use case: trending store first, live feed as fallback."""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog

from moviefinder.application.background import BackgroundTasks
from moviefinder.domain.entities.movie import (
    DEFAULT_IMAGE_BASE_URL,
    Movie,
    TrendingEntry,
    movie_id_of,
)
from moviefinder.domain.entities.states import (
    CheckCache,
    CheckConfig,
    Degraded,
    FetchLive,
    ServeCached,
    ServeLiveAndPersist,
    TrendingState,
)
from moviefinder.domain.errors import MovieFinderError
from moviefinder.domain.ports.metadata import MovieMetadataPort
from moviefinder.domain.ports.trending_store import TrendingStorePort

log = structlog.get_logger(__name__)


def _usable(results: list) -> tuple[Movie, ...]:
    """Live records that can be served and persisted; the rest are skipped."""
    movies = tuple(m for m in results if movie_id_of(m) is not None)
    if len(movies) < len(results):
        log.warning(
            "trending_live_records_skipped",
            skipped=len(results) - len(movies),
            kept=len(movies),
        )
    return movies


class TrendingMoviesUseCase:
    """Resolve the trending list through an explicit state machine.

    ``CheckCache → ServeCached`` when the store has entries, otherwise
    ``CheckConfig → FetchLive → ServeLiveAndPersist``. Any failure on the
    live path ends in ``Degraded``, which re-reads the store once. No error
    ever leaves ``resolve()``: the caller always gets a (possibly empty) tuple.
    """

    def __init__(
        self,
        metadata: MovieMetadataPort,
        store: TrendingStorePort,
        background: BackgroundTasks,
        *,
        cache_limit: int = 5,
        persist_limit: int = 20,
        image_base_url: str = DEFAULT_IMAGE_BASE_URL,
    ) -> None:
        self._metadata = metadata
        self._store = store
        self._background = background
        self._cache_limit = cache_limit
        self._persist_limit = persist_limit
        self._image_base = image_base_url
        self._handlers: dict[str, Callable[[TrendingState], Awaitable[TrendingState]]] = {
            "check_cache": self._check_cache,
            "check_config": self._check_config,
            "fetch_live": self._fetch_live,
        }

    async def resolve(self) -> tuple[TrendingEntry, ...]:
        state: TrendingState = CheckCache()
        handler = self._handlers.get(state.kind)
        while handler is not None:
            log.debug("trending_transition", state=state.kind)
            state = await handler(state)
            handler = self._handlers.get(state.kind)
        return await self._finish(state)

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    async def _read_cache(self) -> tuple[TrendingEntry, ...]:
        return tuple(await self._store.top_trending(self._cache_limit))

    async def _check_cache(self, _: TrendingState) -> TrendingState:
        try:
            entries = await self._read_cache()
        except Exception:
            log.warning("trending_cache_read_failed", exc_info=True)
            return CheckConfig()
        if entries:
            return ServeCached(entries)
        return CheckConfig()

    async def _check_config(self, _: TrendingState) -> TrendingState:
        if not self._metadata.configured:
            log.error("trending_misconfigured", reason="missing TMDB API key")
            return Degraded(reason="misconfigured")
        return FetchLive()

    async def _fetch_live(self, _: TrendingState) -> TrendingState:
        try:
            payload = await self._metadata.trending_week()
        except MovieFinderError as e:
            log.warning(
                "trending_live_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return Degraded(reason=type(e).__name__)
        results = payload.get("results") if isinstance(payload, dict) else None
        if results is not None and not isinstance(results, list):
            log.warning("trending_live_malformed", results_type=type(results).__name__)
            return Degraded(reason="malformed_live_feed")
        movies = _usable(results or [])
        if not movies:
            return Degraded(reason="empty_live_feed")
        return ServeLiveAndPersist(movies)

    # ------------------------------------------------------------------
    # Terminal states
    # ------------------------------------------------------------------

    async def _finish(self, state: TrendingState) -> tuple[TrendingEntry, ...]:
        if isinstance(state, ServeCached):
            log.info("trending_served", source="cache", count=len(state.entries))
            return state.entries

        if isinstance(state, ServeLiveAndPersist):
            self._background.spawn(
                self._store.upsert_trending(state.movies[: self._persist_limit]),
                name="trending_persist",
            )
            log.info("trending_served", source="live", count=len(state.movies))
            return tuple(
                TrendingEntry.from_movie(m, image_base_url=self._image_base)
                for m in state.movies
            )

        reason = state.reason if isinstance(state, Degraded) else state.kind
        try:
            entries = await self._read_cache()
        except Exception:
            log.error("trending_fallback_read_failed", reason=reason, exc_info=True)
            return ()
        log.info("trending_served", source="degraded", reason=reason, count=len(entries))
        return entries
