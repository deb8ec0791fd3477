"""Search use case: discovery feed or keyword search via the metadata port."""

from __future__ import annotations

import structlog

from moviefinder.application.background import BackgroundTasks
from moviefinder.domain.entities.movie import Movie
from moviefinder.domain.entities.states import Failed, ResolutionState, Success
from moviefinder.domain.errors import ConfigError, SemanticError, TransportError
from moviefinder.domain.ports.metadata import MovieMetadataPort
from moviefinder.domain.ports.trending_store import TrendingStorePort

log = structlog.get_logger(__name__)

GENERIC_FAILURE = "Failed to fetch movies"
FETCH_FAILURE = "Error fetching movies. Please try again later."


class SearchMoviesUseCase:
    """Resolve a (possibly empty) query into a display state.

    Upstream errors are folded into ``Failed(message)``; nothing is raised.
    A non-empty query with results schedules a best-effort counter increment
    for the top result, which never influences the returned state.
    """

    def __init__(
        self,
        metadata: MovieMetadataPort,
        store: TrendingStorePort,
        background: BackgroundTasks,
    ) -> None:
        self._metadata = metadata
        self._store = store
        self._background = background

    async def resolve(self, query: str = "") -> ResolutionState:
        """Run one search.

        Args:
            query: Free text. Empty or whitespace-only means discovery feed.

        Returns:
            ``Success(results)`` or ``Failed(message)``.
        """
        has_query = bool(query.strip())

        try:
            if has_query:
                payload = await self._metadata.search(query)
            else:
                payload = await self._metadata.discover_popular()
        except ConfigError as e:
            log.error("search_misconfigured", error=str(e))
            return Failed(str(e))
        except SemanticError as e:
            log.warning("search_semantic_error", query=query, message=e.message)
            return Failed(e.message or GENERIC_FAILURE)
        except TransportError as e:
            log.warning(
                "search_transport_error",
                query=query,
                status=e.status_code,
                exc_info=True,
            )
            return Failed(FETCH_FAILURE)

        results: tuple[Movie, ...] = tuple(payload.get("results") or ())

        if has_query and results:
            self._background.spawn(
                self._store.increment_search_count(query, results[0]),
                name="search_count",
            )

        log.debug("search_resolved", query=query, count=len(results))
        return Success(results)
