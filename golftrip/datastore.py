from typing import Any, Dict, List, Optional

# PostgreSQL-backed datastore proxy.
# Callers go through this module (or ScoreRepository) so tests can swap the
# datastore_pg functions for in-memory versions.

from . import datastore_pg as _pg


def list_events() -> List[Dict[str, Any]]:
    return _pg.list_events()


def get_event(event_id: str) -> Optional[Dict[str, Any]]:
    return _pg.get_event(event_id)


def list_players(event_id: str) -> List[Dict[str, Any]]:
    return _pg.list_players(event_id)


def list_rounds(event_id: str) -> List[Dict[str, Any]]:
    return _pg.list_rounds(event_id)


def get_round(round_id: str) -> Optional[Dict[str, Any]]:
    return _pg.get_round(round_id)


def list_hole_pars(round_id: str) -> Dict[int, int]:
    return _pg.list_hole_pars(round_id)


def list_scores(round_id: str) -> List[Dict[str, Any]]:
    return _pg.list_scores(round_id)


def list_event_scores(event_id: str) -> List[Dict[str, Any]]:
    return _pg.list_event_scores(event_id)


def upsert_score(round_id: str, player_id: str, hole_number: int, strokes: int) -> None:
    return _pg.upsert_score(round_id, player_id, hole_number, strokes)


def delete_score(round_id: str, player_id: str, hole_number: int) -> None:
    return _pg.delete_score(round_id, player_id, hole_number)


def upsert_hole_par(round_id: str, hole_number: int, par: int) -> None:
    return _pg.upsert_hole_par(round_id, hole_number, par)


class ScoreRepository:
    """Storage handed to the leaderboard service.

    The default instance reads and writes PostgreSQL through the module
    level helpers above; tests and alternative backends can pass any object
    exposing the same methods.
    """

    def list_players(self, event_id: str) -> List[Dict[str, Any]]:
        return list_players(event_id)

    def list_scores(self, round_id: str) -> List[Dict[str, Any]]:
        return list_scores(round_id)

    def list_event_scores(self, event_id: str) -> List[Dict[str, Any]]:
        return list_event_scores(event_id)

    def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        return get_event(event_id)

    def list_rounds(self, event_id: str) -> List[Dict[str, Any]]:
        return list_rounds(event_id)

    def get_round(self, round_id: str) -> Optional[Dict[str, Any]]:
        return get_round(round_id)

    def list_hole_pars(self, round_id: str) -> Dict[int, int]:
        return list_hole_pars(round_id)

    def upsert_score(self, round_id: str, player_id: str, hole_number: int, strokes: int) -> None:
        upsert_score(round_id, player_id, hole_number, strokes)

    def delete_score(self, round_id: str, player_id: str, hole_number: int) -> None:
        delete_score(round_id, player_id, hole_number)

    def upsert_hole_par(self, round_id: str, hole_number: int, par: int) -> None:
        upsert_hole_par(round_id, hole_number, par)
