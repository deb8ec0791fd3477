"""Validated configuration models.

``AppConfig`` is the final, merged configuration. Its fields are flat
(``tmdb_api_key``) but also accept the sectioned YAML shape
(``tmdb.api_key``) through ``AliasPath``. ``EnvOverrides`` reads the
``MOVIEFINDER_*`` environment variables as one more layer for load.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["diskcache", "redis"]


def _as_path(value: Any) -> Path:
    # Expands "~" only; the directory is created by diskcache on open.
    if isinstance(value, (str, Path)):
        return Path(value).expanduser()
    raise TypeError(f"expected a path, got {type(value).__name__}")


def _flat_or_section(flat: str, section: str, key: str) -> AliasChoices:
    return AliasChoices(flat, AliasPath(section, key))


class CacheConfig(BaseSettings):
    """Backend holding the trending records.

    Also reads ``CACHE_*`` variables directly (e.g. ``CACHE_REDIS_URL``).
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
        populate_by_name=True,
    )

    backend: CacheBackendName = "diskcache"
    directory: Path = Field(default=Path("./.cache/moviefinder"), alias="dir")
    redis_url: str = "redis://localhost:6379/0"
    ttl_seconds: int = Field(
        default=0,
        ge=0,
        description="Record lifetime in seconds; 0 keeps records forever.",
    )
    max_concurrent: int = Field(
        default=10,
        gt=0,
        description="Parallel diskcache operations allowed at once.",
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _directory_path(cls, v: Any) -> Path:
        return _as_path(v)


class TrendingConfig(BaseModel):
    cache_limit: int = Field(
        default=5, gt=0, description="Entries read from the trending store."
    )
    persist_limit: int = Field(
        default=20, gt=0, description="Live results written back to the store."
    )
    index_limit: int = Field(
        default=1000,
        gt=0,
        description="Most record keys kept in the count ranking; the lowest counts go first.",
    )


class SearchConfig(BaseModel):
    debounce_ms: int = Field(
        default=500,
        ge=0,
        description="Quiet window before a typed query is searched.",
    )
    drop_stale: bool = Field(
        default=False,
        description=(
            "Ignore a search completion older than the newest one already "
            "applied. Off: whichever completion lands last wins."
        ),
    )


class AppConfig(BaseModel):
    """Final configuration handed to the composition root."""

    app_name: str = "moviefinder"
    environment: Environment = "dev"

    tmdb_api_key: Optional[str] = Field(
        default=None,
        validation_alias=_flat_or_section("tmdb_api_key", "tmdb", "api_key"),
        description="TMDB bearer token; without it search fails and trending serves the store.",
    )
    tmdb_base_url: str = Field(
        default="https://api.themoviedb.org/3",
        validation_alias=_flat_or_section("tmdb_base_url", "tmdb", "base_url"),
    )
    tmdb_image_base_url: str = Field(
        default="https://image.tmdb.org/t/p/w500",
        validation_alias=_flat_or_section("tmdb_image_base_url", "tmdb", "image_base_url"),
        description="Prefix joined with poster_path for stored poster URLs.",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=_flat_or_section("http_timeout_seconds", "http", "timeout_seconds"),
    )
    http_user_agent: str = Field(
        default="moviefinder/0.1.0",
        validation_alias=_flat_or_section("http_user_agent", "http", "user_agent"),
    )

    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=_flat_or_section("log_level", "logging", "level"),
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=_flat_or_section("log_format", "logging", "format"),
        description="console or json; unset picks json for prod only.",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    trending: TrendingConfig = Field(default_factory=TrendingConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _pick_log_format(self) -> "AppConfig":
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """YAML-shaped dump with the API key masked, for startup logs and debugging."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "tmdb": {
                "api_key": "***" if self.tmdb_api_key else None,
                "base_url": self.tmdb_base_url,
                "image_base_url": self.tmdb_image_base_url,
            },
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache.backend,
                "dir": str(self.cache.directory),
                "redis_url": self.cache.redis_url,
                "ttl_seconds": self.cache.ttl_seconds,
                "max_concurrent": self.cache.max_concurrent,
            },
            "trending": self.trending.model_dump(),
            "search": self.search.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """``MOVIEFINDER_*`` variables, flat; only the ones that are set count.

    The API key is also read from plain ``TMDB_API_KEY``.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOVIEFINDER_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    tmdb_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MOVIEFINDER_TMDB_API_KEY", "TMDB_API_KEY"),
    )
    tmdb_base_url: Optional[str] = None
    tmdb_image_base_url: Optional[str] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_redis_url: Optional[str] = None
    cache_ttl_seconds: Optional[int] = None

    trending_cache_limit: Optional[int] = None
    trending_persist_limit: Optional[int] = None
    trending_index_limit: Optional[int] = None

    search_debounce_ms: Optional[int] = None
    search_drop_stale: Optional[bool] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _cache_dir_path(cls, v: Any) -> Any:
        return None if v is None else _as_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
