"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "moviefinder",
    "environment": "dev",
    "tmdb": {
        "api_key": None,
        "base_url": "https://api.themoviedb.org/3",
        "image_base_url": "https://image.tmdb.org/t/p/w500",
    },
    "http": {
        "timeout_seconds": 10.0,
        "user_agent": "moviefinder/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "dir": "./.cache/moviefinder",
        "backend": "diskcache",
        "ttl_seconds": 0,
    },
    "trending": {
        "cache_limit": 5,
        "persist_limit": 20,
        "index_limit": 1000,
    },
    "search": {
        "debounce_ms": 500,
        "drop_stale": False,
    },
}
