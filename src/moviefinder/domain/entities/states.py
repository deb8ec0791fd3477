"""Tagged state variants for search and trending resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from moviefinder.domain.entities.movie import Movie, TrendingEntry

# ---------------------------------------------------------------------------
# Search resolution (display state, not persisted)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    kind: Literal["idle"] = "idle"


@dataclass(frozen=True)
class Loading:
    kind: Literal["loading"] = "loading"


@dataclass(frozen=True)
class Success:
    results: tuple[Movie, ...] = ()
    kind: Literal["success"] = "success"


@dataclass(frozen=True)
class Failed:
    message: str
    kind: Literal["failed"] = "failed"


ResolutionState = Union[Idle, Loading, Success, Failed]


# ---------------------------------------------------------------------------
# Trending resolution (linear, no re-entry)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CheckCache:
    kind: Literal["check_cache"] = "check_cache"


@dataclass(frozen=True)
class CheckConfig:
    kind: Literal["check_config"] = "check_config"


@dataclass(frozen=True)
class FetchLive:
    kind: Literal["fetch_live"] = "fetch_live"


@dataclass(frozen=True)
class Degraded:
    """Last-resort cache read after the live feed could not be used."""

    reason: str
    kind: Literal["degraded"] = "degraded"


@dataclass(frozen=True)
class ServeCached:
    entries: tuple[TrendingEntry, ...]
    kind: Literal["serve_cached"] = "serve_cached"


@dataclass(frozen=True)
class ServeLiveAndPersist:
    movies: tuple[Movie, ...]
    kind: Literal["serve_live_and_persist"] = "serve_live_and_persist"


TrendingState = Union[
    CheckCache, CheckConfig, FetchLive, Degraded, ServeCached, ServeLiveAndPersist
]
