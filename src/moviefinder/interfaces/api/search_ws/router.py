"""Interactive search over a WebSocket: debounced queries, pushed states."""

from __future__ import annotations

import asyncio
import json
from typing import Any, cast

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from moviefinder.application.session import ChangeKind, SearchSession
from moviefinder.interfaces.api.presenter import present_state, present_trending
from moviefinder.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["search"])

_BAD_MESSAGE = 'expected {"query": "..."}'


def _session_message(kind: ChangeKind, session: SearchSession) -> dict[str, Any]:
    if kind == "trending":
        return {"type": "trending", "results": present_trending(session.trending)}
    return {
        "type": "search",
        "query": session.state_query,
        **present_state(session.state),
    }


def _parse_query(raw: str) -> str | None:
    try:
        message = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(message, dict):
        return None
    query = message.get("query")
    return query if isinstance(query, str) else None


@router.websocket("/ws/search")
async def search_socket(websocket: WebSocket) -> None:
    """Client sends ``{"query": "..."}``; server pushes trending and search states.

    Message types sent: ``trending``, ``search`` (status loading/success/failed)
    and ``error`` for malformed client messages.
    """
    state = cast(AppState, websocket.app.state)
    await websocket.accept()

    send_lock = asyncio.Lock()

    async def send(payload: dict[str, Any]) -> None:
        async with send_lock:
            await websocket.send_json(payload)

    async def push(kind: ChangeKind, session: SearchSession) -> None:
        await send(_session_message(kind, session))

    session = SearchSession(
        state.search_uc,
        state.trending_uc,
        debounce_seconds=state.config.search.debounce_ms / 1000.0,
        drop_stale=state.config.search.drop_stale,
        on_change=push,
    )
    log.info("search_session_opened")

    try:
        await session.start()
        while True:
            query = _parse_query(await websocket.receive_text())
            if query is None:
                await send({"type": "error", "error": _BAD_MESSAGE})
                continue
            session.set_query(query)
    except WebSocketDisconnect:
        log.info("search_session_closed")
    finally:
        await session.close()
