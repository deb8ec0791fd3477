"""Per-client search session: debounced query, search state, trending list."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Literal

import structlog

from moviefinder.application.debounce import Debouncer
from moviefinder.application.use_cases.search_movies import SearchMoviesUseCase
from moviefinder.application.use_cases.trending_movies import TrendingMoviesUseCase
from moviefinder.domain.entities.movie import TrendingEntry
from moviefinder.domain.entities.states import Idle, Loading, ResolutionState

log = structlog.get_logger(__name__)

ChangeKind = Literal["search", "trending"]
ChangeListener = Callable[[ChangeKind, "SearchSession"], Awaitable[None]]


class SearchSession:
    """State held for the lifetime of one client session.

    ``start()`` runs the initial discovery search and the trending resolve
    side by side. Afterwards only the search re-runs, once per debounced
    query change. In-flight searches are never cancelled: whichever
    completion lands last sets ``state``, unless ``drop_stale`` is enabled,
    in which case completions older than the newest applied one are ignored.
    """

    def __init__(
        self,
        search: SearchMoviesUseCase,
        trending: TrendingMoviesUseCase,
        *,
        debounce_seconds: float = 0.5,
        drop_stale: bool = False,
        on_change: ChangeListener | None = None,
    ) -> None:
        self._search = search
        self._trending = trending
        self._drop_stale = drop_stale
        self._on_change = on_change
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds, self.run_search)
        self._issued = 0
        self._applied = 0

        self.query = ""
        self.state: ResolutionState = Idle()
        # query that produced ``state``; lags ``query`` while a search is pending
        self.state_query = ""
        self.trending: tuple[TrendingEntry, ...] = ()

    async def start(self) -> None:
        await asyncio.gather(self.run_search(""), self.load_trending())

    def set_query(self, text: str) -> None:
        """Record the typed text; the search fires after the quiet window."""
        self.query = text
        self._debouncer.push(text)

    async def close(self) -> None:
        await self._debouncer.cancel()

    async def run_search(self, query: str) -> None:
        self._issued += 1
        generation = self._issued
        await self._set_state(Loading(), query, generation=None)
        state = await self._search.resolve(query)
        await self._set_state(state, query, generation=generation)

    async def load_trending(self) -> None:
        self.trending = await self._trending.resolve()
        await self._notify("trending")

    async def _set_state(
        self, state: ResolutionState, query: str, *, generation: int | None
    ) -> None:
        if generation is not None:
            if self._drop_stale and generation < self._applied:
                log.debug(
                    "search_stale_dropped",
                    generation=generation,
                    applied=self._applied,
                )
                return
            self._applied = max(self._applied, generation)
        self.state = state
        self.state_query = query
        await self._notify("search")

    async def _notify(self, kind: ChangeKind) -> None:
        if self._on_change is None:
            return
        try:
            await self._on_change(kind, self)
        except Exception:
            log.warning("session_listener_failed", kind=kind, exc_info=True)
