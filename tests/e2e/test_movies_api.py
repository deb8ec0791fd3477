"""End-to-end tests for the movie HTTP and WebSocket endpoints.

Tests the full request-response cycle through:
    HTTP/WS Request -> FastAPI Router -> Use Case -> Presenter -> JSON Response

Mocks are applied at the **port** level (MovieMetadataPort, TrendingStorePort)
so that real use cases, session, presenter, and router logic are exercised.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from moviefinder.application.background import BackgroundTasks
from moviefinder.application.use_cases import (
    SearchMoviesUseCase,
    TrendingMoviesUseCase,
)
from moviefinder.domain.entities import TrendingEntry
from moviefinder.domain.errors import ConfigError, TransportError
from moviefinder.interfaces.api.movies.router import router as movies_router
from moviefinder.interfaces.api.search_ws.router import router as search_ws_router

_BATMAN = {"id": 268, "title": "Batman", "poster_path": "/batman.jpg"}
_CACHED = TrendingEntry(
    movie_id=268,
    title="Batman",
    poster_url="https://image.tmdb.org/t/p/w500/batman.jpg",
    count=4,
    search_term="batman",
)


def _make_metadata() -> AsyncMock:
    metadata = AsyncMock()
    metadata.configured = True
    metadata.discover_popular.return_value = {"results": []}
    metadata.search.return_value = {"results": [_BATMAN]}
    metadata.trending_week.return_value = {"results": []}
    return metadata


def _make_store(cached: list[TrendingEntry] | None = None) -> AsyncMock:
    store = AsyncMock()
    store.top_trending.return_value = cached if cached is not None else [_CACHED]
    store.upsert_trending.return_value = 0
    return store


def _make_app(
    *,
    metadata: AsyncMock | None = None,
    store: AsyncMock | None = None,
) -> FastAPI:
    """Build a minimal app with routers and state wired by hand."""
    app = FastAPI()
    app.include_router(movies_router)
    app.include_router(search_ws_router)

    metadata = metadata or _make_metadata()
    store = store or _make_store()
    background = BackgroundTasks()

    config = MagicMock()
    config.search.debounce_ms = 0
    config.search.drop_stale = False

    app.state.config = config
    app.state.background = background
    app.state.metadata = metadata
    app.state.trending_store = store
    app.state.search_uc = SearchMoviesUseCase(
        metadata=metadata, store=store, background=background
    )
    app.state.trending_uc = TrendingMoviesUseCase(
        metadata=metadata, store=store, background=background
    )
    return app


# ---------------------------------------------------------------------------
# GET /api/movies
# ---------------------------------------------------------------------------


class TestSearchEndpoint:
    def test_keyword_search(self) -> None:
        metadata = _make_metadata()
        client = TestClient(_make_app(metadata=metadata))

        resp = client.get("/api/movies", params={"query": "batman & robin"})

        assert resp.status_code == 200
        assert resp.json() == {"status": "success", "results": [_BATMAN]}
        metadata.search.assert_awaited_once_with("batman & robin")

    def test_missing_query_uses_discovery(self) -> None:
        metadata = _make_metadata()
        client = TestClient(_make_app(metadata=metadata))

        resp = client.get("/api/movies")

        assert resp.json() == {"status": "success", "results": []}
        metadata.discover_popular.assert_awaited_once()
        metadata.search.assert_not_awaited()

    def test_missing_key_is_failed_state(self) -> None:
        metadata = _make_metadata()
        metadata.discover_popular.side_effect = ConfigError("Missing TMDB API Key.")
        client = TestClient(_make_app(metadata=metadata))

        resp = client.get("/api/movies")

        assert resp.status_code == 200
        assert resp.json() == {
            "status": "failed",
            "error": "Missing TMDB API Key.",
            "results": [],
        }

    def test_transport_failure_is_failed_state(self) -> None:
        metadata = _make_metadata()
        metadata.search.side_effect = TransportError("boom", status_code=502)
        client = TestClient(_make_app(metadata=metadata))

        body = client.get("/api/movies", params={"query": "batman"}).json()

        assert body["status"] == "failed"
        assert body["error"] == "Error fetching movies. Please try again later."

    def test_overlong_query_rejected(self) -> None:
        client = TestClient(_make_app())

        resp = client.get("/api/movies", params={"query": "x" * 501})

        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# GET /api/trending
# ---------------------------------------------------------------------------


class TestTrendingEndpoint:
    def test_serves_cached_entries(self) -> None:
        metadata = _make_metadata()
        client = TestClient(_make_app(metadata=metadata))

        body = client.get("/api/trending").json()

        assert body["results"] == [_CACHED.to_dict()]
        metadata.trending_week.assert_not_awaited()

    def test_live_feed_when_cache_empty(self) -> None:
        metadata = _make_metadata()
        metadata.trending_week.return_value = {"results": [_BATMAN]}
        client = TestClient(_make_app(metadata=metadata, store=_make_store([])))

        body = client.get("/api/trending").json()

        assert [r["movie_id"] for r in body["results"]] == [268]
        assert body["results"][0]["movie"] == _BATMAN
        assert body["results"][0]["poster_url"] == _CACHED.poster_url

    def test_malformed_live_record_is_not_a_server_error(self) -> None:
        metadata = _make_metadata()
        metadata.trending_week.return_value = {
            "results": [{"id": "tt0372784"}, _BATMAN]
        }
        client = TestClient(_make_app(metadata=metadata, store=_make_store([])))

        resp = client.get("/api/trending")

        assert resp.status_code == 200
        assert [r["movie_id"] for r in resp.json()["results"]] == [268]

    def test_everything_down_is_empty_list(self) -> None:
        metadata = _make_metadata()
        metadata.configured = False
        client = TestClient(_make_app(metadata=metadata, store=_make_store([])))

        resp = client.get("/api/trending")

        assert resp.status_code == 200
        assert resp.json() == {"results": []}


# ---------------------------------------------------------------------------
# WS /ws/search
# ---------------------------------------------------------------------------


def _receive(ws: Any, count: int) -> list[dict[str, Any]]:
    return [ws.receive_json() for _ in range(count)]


def _receive_until_search_done(ws: Any) -> dict[str, Any]:
    while True:
        message = ws.receive_json()
        if message["type"] == "search" and message["status"] != "loading":
            return message


class TestSearchSocket:
    def test_initial_messages(self) -> None:
        client = TestClient(_make_app())

        with client.websocket_connect("/ws/search") as ws:
            messages = _receive(ws, 3)

        trending = [m for m in messages if m["type"] == "trending"]
        search = [m for m in messages if m["type"] == "search"]
        assert trending == [{"type": "trending", "results": [_CACHED.to_dict()]}]
        assert [m["status"] for m in search] == ["loading", "success"]
        assert search[-1]["query"] == ""

    def test_query_pushes_search_state(self) -> None:
        metadata = _make_metadata()
        client = TestClient(_make_app(metadata=metadata))

        with client.websocket_connect("/ws/search") as ws:
            _receive(ws, 3)
            ws.send_json({"query": "batman"})
            message = _receive_until_search_done(ws)

        assert message == {
            "type": "search",
            "query": "batman",
            "status": "success",
            "results": [_BATMAN],
        }
        metadata.search.assert_awaited_once_with("batman")

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"query": 5}'])
    def test_malformed_message_gets_error(self, raw: str) -> None:
        client = TestClient(_make_app())

        with client.websocket_connect("/ws/search") as ws:
            _receive(ws, 3)
            ws.send_text(raw)
            message = ws.receive_json()

        assert message == {"type": "error", "error": 'expected {"query": "..."}'}


# ---------------------------------------------------------------------------
# Full app (real lifespan, diskcache store, no API key)
# ---------------------------------------------------------------------------


class TestBuiltApp:
    @pytest.fixture()
    def app(self, tmp_path) -> FastAPI:
        from moviefinder.infrastructure.config import load_config
        from moviefinder.interfaces.main import build_app

        config = load_config(
            cli_overrides={"tmdb_api_key": "", "cache_dir": str(tmp_path / "cache")}
        )
        return build_app(config)

    def test_healthz(self, app: FastAPI) -> None:
        with TestClient(app) as client:
            assert client.get("/healthz").json() == {"status": "ok"}

    def test_missing_key_degrades(self, app: FastAPI) -> None:
        with TestClient(app) as client:
            search = client.get("/api/movies", params={"query": "batman"}).json()
            trending = client.get("/api/trending").json()

        assert search == {
            "status": "failed",
            "error": "Missing TMDB API Key. Check your .env file.",
            "results": [],
        }
        assert trending == {"results": []}
