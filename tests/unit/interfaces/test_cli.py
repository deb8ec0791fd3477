"""Tests for CLI argument parsing and override mapping."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from moviefinder.interfaces.cli.cli import _parse_args, build_cli_overrides, start


class TestParseArgs:
    def test_defaults_are_none(self) -> None:
        args = _parse_args([])

        assert args.host is None
        assert args.port is None
        assert args.config is None
        assert args.tmdb_api_key is None

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(SystemExit):
            _parse_args(["--log-level", "TRACE"])


class TestBuildCliOverrides:
    def test_only_given_flags_are_included(self) -> None:
        args = _parse_args(["--log-level", "DEBUG"])

        assert build_cli_overrides(args) == {"log_level": "DEBUG"}

    def test_all_flags(self) -> None:
        args = _parse_args(
            ["--tmdb-api-key", "k", "--log-level", "ERROR", "--log-format", "json"]
        )

        assert build_cli_overrides(args) == {
            "tmdb_api_key": "k",
            "log_level": "ERROR",
            "log_format": "json",
        }


class TestStart:
    def test_runs_uvicorn_with_bind_address(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("HOST", raising=False)
        monkeypatch.setenv("PORT", "9100")

        with (
            patch("moviefinder.interfaces.cli.cli.configure_logging") as configure,
            patch("moviefinder.interfaces.cli.cli.uvicorn.run") as run,
        ):
            configure.return_value = {"version": 1}
            start(["--tmdb-api-key", "k"])

        run.assert_called_once()
        kwargs = run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9100
        assert kwargs["log_config"] == {"version": 1}
        assert run.call_args.args[0].state.config.tmdb_api_key == "k"
