"""Layered configuration: defaults < YAML file < environment < CLI flags."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_TOP_LEVEL_KEYS = frozenset({"app_name", "environment"})

# Flat key prefix -> section, e.g. ``log_level`` -> ``logging.level``.
_PREFIX_SECTIONS: dict[str, str] = {
    "tmdb_": "tmdb",
    "http_": "http",
    "log_": "logging",
    "cache_": "cache",
    "trending_": "trending",
    "search_": "search",
}
_SECTIONS = frozenset(_PREFIX_SECTIONS.values())


def _split_flat_key(key: str) -> tuple[str, str] | None:
    for prefix, section in _PREFIX_SECTIONS.items():
        if key.startswith(prefix):
            return section, key[len(prefix) :]
    return None


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Fold flat keys (``cache_backend``) into their section (``cache.backend``).

    Section mappings are applied first, so a flat key given in the same
    layer wins over the nested value. Unknown keys are dropped.
    """
    out: dict[str, Any] = {}
    ordered = sorted(layer.items(), key=lambda item: item[0] not in _SECTIONS)
    for key, value in ordered:
        if key in _TOP_LEVEL_KEYS:
            out[key] = value
        elif key in _SECTIONS:
            if isinstance(value, Mapping):
                out.setdefault(key, {}).update(value)
        else:
            split = _split_flat_key(key)
            if split is not None:
                section, name = split
                out.setdefault(section, {})[name] = value
    return out


def _merge(into: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        current = into.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge(current, value)
        else:
            into[key] = value


def _yaml_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open(encoding="utf-8") as fh:
        parsed = yaml.safe_load(fh)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(parsed).__name__}")
    return parsed


def _layers(
    config_path: Path | None, cli_overrides: Mapping[str, Any]
) -> Iterator[Mapping[str, Any]]:
    yield DEFAULT_CONFIG
    if config_path is not None:
        yield _yaml_layer(config_path)
    yield EnvOverrides().to_update_dict()
    yield cli_overrides


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Merge every configuration layer and validate the result.

    Later layers win key by key. A ``.env`` file feeds the environment
    layer without replacing variables that are already set. Reads files
    only; never creates any.

    Raises:
        FileNotFoundError: *config_path* or *dotenv_path* does not exist.
        ValueError: The YAML is not a mapping, or a value fails validation.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    merged: dict[str, Any] = {}
    for layer in _layers(config_path, cli_overrides or {}):
        _merge(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
