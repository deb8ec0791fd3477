from .cache import CachePort
from .metadata import MovieMetadataPort
from .trending_store import TrendingStorePort

__all__ = [
    "CachePort",
    "MovieMetadataPort",
    "TrendingStorePort",
]
