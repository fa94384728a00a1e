"""Glue between storage and the leaderboard engine."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .datastore import ScoreRepository
from .scoring import (
    HOLES_PER_ROUND,
    build_round_leaderboard,
    build_trip_standings,
    rank_round_leaderboard,
    rank_trip_standings,
)


class ScoreValidationError(ValueError):
    """Raised when a score write is rejected before reaching storage."""


def _as_int(value: Any, field: str) -> int:
    message = f"Invalid {field} '{value}'. Expected an integer."
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ScoreValidationError(message)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ScoreValidationError(message) from None


def _check_hole(hole_number: Any) -> int:
    hole = _as_int(hole_number, "hole_number")
    if not 1 <= hole <= HOLES_PER_ROUND:
        raise ScoreValidationError(f"Hole {hole} is out of range 1-{HOLES_PER_ROUND}.")
    return hole


class LeaderboardService:
    def __init__(self, repository: Optional[ScoreRepository] = None) -> None:
        self.repository = repository or ScoreRepository()

    def _round_pars(self, rnd: Dict[str, Any]) -> Optional[Dict[int, int]]:
        return self.repository.list_hole_pars(rnd["id"]) or None

    def round_leaderboard(self, round_id: str) -> Optional[Dict[str, Any]]:
        """Return the round and its ranked rows, or ``None`` for an unknown round."""
        rnd = self.repository.get_round(round_id)
        if rnd is None:
            return None
        players = self.repository.list_players(rnd["event_id"])
        scores = self.repository.list_scores(rnd["id"])
        rows = build_round_leaderboard(
            players,
            scores,
            bool(rnd.get("handicap_enabled")),
            self._round_pars(rnd),
            rnd.get("par"),
        )
        return {"round": rnd, "rows": rank_round_leaderboard(rows)}

    def trip_standings(self, event_id: str) -> Optional[Dict[str, Any]]:
        """Return the event, its rounds and ranked standings across all rounds."""
        event = self.repository.get_event(event_id)
        if event is None:
            return None
        rounds = self.repository.list_rounds(event["id"])
        configs = [{**rnd, "par_by_hole": self._round_pars(rnd)} for rnd in rounds]
        players = self.repository.list_players(event["id"])
        scores = self.repository.list_event_scores(event["id"])
        rows = build_trip_standings(players, configs, scores)
        return {"event": event, "rounds": rounds, "rows": rank_trip_standings(rows)}

    def record_score(self, rnd: Dict[str, Any], player_id: Any, hole_number: Any, strokes: Any) -> Optional[int]:
        """Validate and store one hole score for ``rnd``.

        ``strokes`` of ``None`` or an empty string clears the hole. Returns
        the stored stroke count, or ``None`` when the hole was cleared.
        """
        if player_id in (None, ""):
            raise ScoreValidationError("Missing player_id.")
        hole = _check_hole(hole_number)
        pid = str(player_id)
        known = {str(p["id"]) for p in self.repository.list_players(rnd["event_id"])}
        if pid not in known:
            raise ScoreValidationError(f"Player '{pid}' is not entered in this event.")

        if strokes is None or (isinstance(strokes, str) and not strokes.strip()):
            self.repository.delete_score(rnd["id"], pid, hole)
            return None
        count = _as_int(strokes, "strokes")
        if count <= 0:
            raise ScoreValidationError(f"Strokes must be positive, got {count}.")
        self.repository.upsert_score(rnd["id"], pid, hole, count)
        return count

    def set_hole_par(self, rnd: Dict[str, Any], hole_number: Any, par: Any) -> int:
        hole = _check_hole(hole_number)
        value = _as_int(par, "par")
        if value <= 0:
            raise ScoreValidationError(f"Par must be positive, got {value}.")
        self.repository.upsert_hole_par(rnd["id"], hole, value)
        return value
