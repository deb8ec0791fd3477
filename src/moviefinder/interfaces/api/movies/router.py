"""Movie search and trending endpoints."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from moviefinder.interfaces.api.presenter import present_state, present_trending
from moviefinder.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["movies"])


@router.get("/movies")
async def search_movies(
    request: Request,
    query: str = Query(default="", max_length=500),
) -> JSONResponse:
    """Search by keyword, or the popularity-sorted discovery feed for ``query=""``.

    Failures are display state and still answer 200 with ``status: failed``.
    """
    state = cast(AppState, request.app.state)
    result = await state.search_uc.resolve(query)
    return JSONResponse(content=present_state(result))


@router.get("/trending")
async def trending_movies(request: Request) -> JSONResponse:
    """Trending list; always a (possibly empty) list, never an error."""
    state = cast(AppState, request.app.state)
    entries = await state.trending_uc.resolve()
    return JSONResponse(content={"results": present_trending(entries)})
