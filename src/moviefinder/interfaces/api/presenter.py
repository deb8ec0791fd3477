"""JSON shapes for search states and trending entries."""

from __future__ import annotations

from typing import Any, Iterable

from moviefinder.domain.entities.movie import TrendingEntry
from moviefinder.domain.entities.states import Failed, ResolutionState, Success


def present_state(state: ResolutionState) -> dict[str, Any]:
    if isinstance(state, Success):
        return {"status": state.kind, "results": list(state.results)}
    if isinstance(state, Failed):
        return {"status": state.kind, "error": state.message, "results": []}
    return {"status": state.kind, "results": []}


def present_trending(entries: Iterable[TrendingEntry]) -> list[dict[str, Any]]:
    return [entry.to_dict() for entry in entries]
