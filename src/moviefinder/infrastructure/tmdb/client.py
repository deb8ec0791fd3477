"""TMDB API client: async httpx implementation with typed failures."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from moviefinder.domain.errors import ConfigError, SemanticError, TransportError

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"

MISSING_KEY_MESSAGE = "Missing TMDB API Key. Check your .env file."


def encode_query(query: str) -> str:
    """Percent-encode a query value like JavaScript's ``encodeURIComponent``."""
    return quote(query, safe="-_.!~*'()")


def embedded_error(payload: dict[str, Any]) -> tuple[bool, str | None]:
    """Detect an application-level failure inside a 2xx body.

    Recognised flags: ``"Response": "False"`` (OMDb style), ``"success": false``
    (TMDB style) and a truthy ``"error"`` field. Returns ``(failed, message)``.
    """
    if payload.get("Response") == "False":
        return True, payload.get("Error") or None
    if payload.get("success") is False:
        return True, payload.get("status_message") or None
    error = payload.get("error")
    if error:
        return True, error if isinstance(error, str) else None
    return False, None


class HttpxTmdbClient:
    """Async TMDB client using a shared ``httpx.AsyncClient``.

    Implements ``MovieMetadataPort`` from domain.ports.metadata. Every public
    call performs exactly one GET and either returns the JSON payload or
    raises ``ConfigError``, ``TransportError`` or ``SemanticError``.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        http_client: httpx.AsyncClient,
        base_url: str = _BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    async def _get(self, path: str) -> dict[str, Any]:
        """GET ``path`` (already encoded) and validate the response."""
        if not self._api_key:
            raise ConfigError(MISSING_KEY_MESSAGE)

        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            raise TransportError(f"network error: {e}") from e

        if not resp.is_success:
            log.warning("tmdb_http_error", path=path, status=resp.status_code)
            raise TransportError(
                f"HTTP error! status: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            log.warning("tmdb_invalid_json", path=path)
            raise TransportError("invalid JSON body", status_code=resp.status_code) from e

        if not isinstance(payload, dict):
            raise SemanticError(None)

        failed, message = embedded_error(payload)
        if failed:
            log.warning("tmdb_embedded_error", path=path, message=message)
            raise SemanticError(message)
        return payload

    # ------------------------------------------------------------------
    # Public API (MovieMetadataPort)
    # ------------------------------------------------------------------

    async def discover_popular(self) -> dict[str, Any]:
        """Discovery feed sorted by popularity."""
        return await self._get("/discover/movie?sort_by=popularity.desc")

    async def search(self, query: str) -> dict[str, Any]:
        """Keyword search; the query is percent-encoded into the querystring."""
        return await self._get(f"/search/movie?query={encode_query(query)}")

    async def trending_week(self) -> dict[str, Any]:
        """Weekly trending movies."""
        return await self._get("/trending/movie/week")
