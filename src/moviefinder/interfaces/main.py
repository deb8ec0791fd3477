"""FastAPI application factory."""

from __future__ import annotations

import time
from typing import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, Response

from moviefinder.infrastructure.config import AppConfig
from moviefinder.interfaces.api.movies.router import router as movies_router
from moviefinder.interfaces.api.search_ws.router import router as search_ws_router
from moviefinder.interfaces.app_state import AppState
from moviefinder.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


async def _healthz() -> dict[str, str]:
    return {"status": "ok"}


async def _log_request(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    started = time.monotonic()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        log.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.monotonic() - started) * 1000.0, 2),
        )


def build_app(config: AppConfig) -> FastAPI:
    """Wire routes and middleware; resources are created in ``lifespan``."""
    app = FastAPI(
        title="moviefinder",
        description="Movie search and trending list backed by TMDB",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state = AppState()
    app.state.config = config

    app.include_router(movies_router)
    app.include_router(search_ws_router)
    app.add_api_route("/healthz", _healthz, methods=["GET"], include_in_schema=False)
    app.middleware("http")(_log_request)
    return app
