"""Typed view of ``app.state`` for routers and the lifespan."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from moviefinder.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from moviefinder.application.background import BackgroundTasks
    from moviefinder.application.use_cases import (
        SearchMoviesUseCase,
        TrendingMoviesUseCase,
    )
    from moviefinder.domain.ports import (
        CachePort,
        MovieMetadataPort,
        TrendingStorePort,
    )


class AppState(State):
    """Set by ``build_app`` (config) and ``lifespan`` (everything else)."""

    config: AppConfig

    cache: CachePort
    http_client: httpx.AsyncClient
    background: BackgroundTasks

    metadata: MovieMetadataPort
    trending_store: TrendingStorePort

    search_uc: SearchMoviesUseCase
    trending_uc: TrendingMoviesUseCase
