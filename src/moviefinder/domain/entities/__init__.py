from .movie import Movie, TrendingEntry
from .states import (
    CheckCache,
    CheckConfig,
    Degraded,
    Failed,
    FetchLive,
    Idle,
    Loading,
    ResolutionState,
    ServeCached,
    ServeLiveAndPersist,
    Success,
    TrendingState,
)

__all__ = [
    "CheckCache",
    "CheckConfig",
    "Degraded",
    "Failed",
    "FetchLive",
    "Idle",
    "Loading",
    "Movie",
    "ResolutionState",
    "ServeCached",
    "ServeLiveAndPersist",
    "Success",
    "TrendingEntry",
    "TrendingState",
]
