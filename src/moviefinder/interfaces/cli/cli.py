"""``moviefinder`` console script: load config, configure logging, serve."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from moviefinder.infrastructure.config import load_config
from moviefinder.infrastructure.logging.setup import configure_logging
from moviefinder.interfaces.main import build_app

log = structlog.get_logger(__name__)

_DEFAULT_HOST = "127.0.0.1"
_DEFAULT_PORT = 8000

# argparse dest names that double as config override keys
_OVERRIDE_FLAGS = ("tmdb_api_key", "log_level", "log_format")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moviefinder",
        description="Serve the movie search and trending API.",
    )
    server = parser.add_argument_group("server")
    server.add_argument("--host", help=f"Bind host (env HOST, default {_DEFAULT_HOST}).")
    server.add_argument(
        "--port", type=int, help=f"Bind port (env PORT, default {_DEFAULT_PORT})."
    )

    config = parser.add_argument_group("configuration")
    config.add_argument("--config", type=Path, help="YAML config file.")
    config.add_argument("--dotenv", type=Path, help=".env file loaded into the environment.")
    config.add_argument(
        "--tmdb-api-key",
        help="TMDB bearer token. Prefer MOVIEFINDER_TMDB_API_KEY; flags end up in ps output.",
    )
    config.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    config.add_argument("--log-format", choices=["json", "console"])
    return parser


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    return _build_parser().parse_args(list(argv) if argv is not None else None)


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Config overrides for the flags that were actually given."""
    return {name: getattr(args, name) for name in _OVERRIDE_FLAGS if getattr(args, name)}


def start(argv: Iterable[str] | None = None) -> None:
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    host = args.host or os.getenv("HOST", _DEFAULT_HOST)
    port = args.port or int(os.getenv("PORT", str(_DEFAULT_PORT)))

    config = load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=build_cli_overrides(args),
    )
    log_config = configure_logging(config)
    log.info("server_starting", host=host, port=port, environment=config.environment)

    uvicorn.run(build_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    start()
