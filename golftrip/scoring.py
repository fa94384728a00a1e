"""Leaderboard engine: hole-by-hole scores to ranked, handicap-adjusted tables.

Two pure steps are composed by callers:

* :func:`build_round_leaderboard` folds raw score rows into one
  :class:`LeaderboardRow` per player.
* :func:`rank_round_leaderboard` orders those rows and assigns rank,
  tied position labels and the delta to the leader.

Nothing here performs I/O or keeps state between calls, so the functions
are safe to call from concurrent requests.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

HOLES_PER_ROUND = 18


@dataclass(frozen=True)
class LeaderboardRow:
    player_id: str
    name: str
    gross_total: int
    net_total: int
    thru: int
    to_par: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "name": self.name,
            "grossTotal": self.gross_total,
            "netTotal": self.net_total,
            "thru": self.thru,
            "toPar": self.to_par,
        }


@dataclass(frozen=True)
class RankedLeaderboardRow(LeaderboardRow):
    leader_delta: int = 0
    rank: int = 0
    position: str = ""

    def as_dict(self) -> Dict[str, Any]:
        out = super().as_dict()
        out.update(
            {
                "leaderDelta": self.leader_delta,
                "rank": self.rank,
                "position": self.position,
            }
        )
        return out


@dataclass(frozen=True)
class TripStandingRow:
    player_id: str
    name: str
    starting_score: int
    round_results: Tuple[Optional[int], ...]
    gross_total: Optional[int]
    net_total: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "name": self.name,
            "startingScore": self.starting_score,
            "roundResults": list(self.round_results),
            "grossTotal": self.gross_total,
            "netTotal": self.net_total,
        }


@dataclass(frozen=True)
class RankedTripStandingRow(TripStandingRow):
    leader_delta: int = 0
    rank: int = 0
    position: str = ""

    def as_dict(self) -> Dict[str, Any]:
        out = super().as_dict()
        out.update(
            {
                "leaderDelta": self.leader_delta,
                "rank": self.rank,
                "position": self.position,
            }
        )
        return out


def allocate_handicap(handicap: int, thru: int) -> int:
    """Return the handicap strokes credited after ``thru`` holes.

    Every hole played earns ``handicap // 18`` strokes and the first
    ``handicap % 18`` holes played earn one more, so a full round credits
    exactly ``handicap``.
    """
    if thru <= 0:
        return 0
    base, remainder = divmod(int(handicap), HOLES_PER_ROUND)
    return base * thru + min(remainder, thru)


def even_par(course_par: Optional[int], holes: int) -> int:
    """Par for ``holes`` holes when ``course_par`` is spread evenly over 18.

    Counts holes rather than looking at which holes they are, and rounds
    halves up: 9 holes of a par 73 course are par 37.
    """
    if not course_par or holes <= 0:
        return 0
    return (2 * int(course_par) * holes + HOLES_PER_ROUND) // (2 * HOLES_PER_ROUND)


def par_for_holes(
    holes: Iterable[int],
    par_by_hole: Optional[Mapping[int, int]] = None,
    course_par: Optional[int] = None,
) -> int:
    """Total par of the given holes.

    Holes listed in ``par_by_hole`` use that par; the rest share
    ``course_par`` through :func:`even_par`, or count as 0 without one.
    """
    pars = par_by_hole or {}
    explicit = 0
    others = 0
    for hole in holes:
        if hole in pars:
            explicit += int(pars[hole])
        else:
            others += 1
    return explicit + even_par(course_par, others)


def _group_by_player(scores: Iterable[Mapping[str, Any]]) -> Dict[str, List[Mapping[str, Any]]]:
    grouped: Dict[str, List[Mapping[str, Any]]] = {}
    for score in scores:
        grouped.setdefault(str(score["player_id"]), []).append(score)
    return grouped


def _summarize(
    player: Mapping[str, Any],
    entries: Sequence[Mapping[str, Any]],
    handicap_enabled: bool,
    par_by_hole: Optional[Mapping[int, int]],
    course_par: Optional[int],
) -> LeaderboardRow:
    holes = {int(e["hole_number"]) for e in entries}
    thru = len(holes)
    gross = sum(int(e["strokes"]) for e in entries)
    allocated = allocate_handicap(player.get("handicap") or 0, thru) if handicap_enabled else 0
    net = gross - allocated
    to_par = net
    if par_by_hole is not None or course_par:
        to_par = net - par_for_holes(holes, par_by_hole, course_par)
    return LeaderboardRow(
        player_id=str(player["id"]),
        name=player.get("name") or "",
        gross_total=gross,
        net_total=net,
        thru=thru,
        to_par=to_par,
    )


def build_round_leaderboard(
    players: Iterable[Mapping[str, Any]],
    scores: Iterable[Mapping[str, Any]],
    handicap_enabled: bool,
    par_by_hole: Optional[Mapping[int, int]] = None,
    course_par: Optional[int] = None,
) -> List[LeaderboardRow]:
    """Summarise a round into one row per player.

    Args:
        players: Player mappings with ``id``, ``name`` and ``handicap``.
            Ids must be unique.
        scores: Score mappings with ``player_id``, ``hole_number`` and
            ``strokes``. At most one entry per player and hole; entries
            for players not in ``players`` are ignored.
        handicap_enabled: Credit handicap strokes when true.
        par_by_hole: Optional hole -> par mapping for holes with a known par.
        course_par: Optional 18-hole par shared evenly by entered holes
            missing from ``par_by_hole`` (see :func:`even_par`).

        With either par source ``to_par`` is the net total minus the par of
        the holes entered; with neither it equals the net total.

    Returns:
        One :class:`LeaderboardRow` per player, in input order.

    Inputs are not validated here. Hole numbers outside 1..18, non-positive
    strokes, negative handicaps or duplicate (player, hole) entries must be
    rejected before scores reach this function.
    """
    by_player = _group_by_player(scores)
    return [
        _summarize(player, by_player.get(str(player["id"]), []), handicap_enabled, par_by_hole, course_par)
        for player in players
    ]


def _tie_groups(values: Sequence[int]) -> Dict[int, Tuple[int, int]]:
    """Map each value to (first_index, count) within an ascending sequence."""
    groups: Dict[int, Tuple[int, int]] = {}
    for idx, value in enumerate(values):
        first, count = groups.get(value, (idx, 0))
        groups[value] = (first, count + 1)
    return groups


def _placings(values: Sequence[int]) -> List[Tuple[int, int, str]]:
    """Return (leader_delta, rank, position) for each already-sorted value."""
    if not values:
        return []
    leader = values[0]
    groups = _tie_groups(values)
    out: List[Tuple[int, int, str]] = []
    for idx, value in enumerate(values):
        first, count = groups[value]
        position = f"T{first + 1}" if count > 1 else str(idx + 1)
        out.append((value - leader, idx + 1, position))
    return out


def rank_round_leaderboard(rows: Iterable[LeaderboardRow]) -> List[RankedLeaderboardRow]:
    """Order rows by net total (low wins) and attach placings.

    ``rank`` is positional and unique per row. ``position`` is the display
    label: tied rows share ``T<n>`` where ``n`` is the rank of the first
    row in the tie. Rows with equal net totals keep their input order.
    """
    ordered = sorted(rows, key=lambda r: r.net_total)
    placings = _placings([r.net_total for r in ordered])
    return [
        RankedLeaderboardRow(
            **asdict(row), leader_delta=delta, rank=rank, position=position
        )
        for row, (delta, rank, position) in zip(ordered, placings)
    ]


def build_trip_standings(
    players: Iterable[Mapping[str, Any]],
    rounds: Sequence[Mapping[str, Any]],
    scores: Iterable[Mapping[str, Any]],
) -> List[TripStandingRow]:
    """Combine several rounds into event standings.

    Each round mapping carries ``id``, ``handicap_enabled`` and optionally
    ``par_by_hole`` and ``par`` (the course par); each score carries
    ``round_id`` in addition to the round fields. ``round_results`` holds the player's ``to_par`` for each
    round in ``rounds`` order, or ``None`` where they have not entered a
    hole. The net total starts from the player's ``starting_score``.
    """
    players = list(players)
    by_round: Dict[str, List[Mapping[str, Any]]] = {}
    for score in scores:
        by_round.setdefault(str(score["round_id"]), []).append(score)

    per_round: List[Dict[str, LeaderboardRow]] = []
    for rnd in rounds:
        rows = build_round_leaderboard(
            players,
            by_round.get(str(rnd["id"]), []),
            bool(rnd.get("handicap_enabled")),
            rnd.get("par_by_hole"),
            rnd.get("par"),
        )
        per_round.append({row.player_id: row for row in rows})

    standings: List[TripStandingRow] = []
    for player in players:
        pid = str(player["id"])
        starting = int(player.get("starting_score") or 0)
        results: List[Optional[int]] = []
        gross = 0
        holes = 0
        for lookup in per_round:
            row = lookup[pid]
            gross += row.gross_total
            holes += row.thru
            results.append(row.to_par if row.thru > 0 else None)
        standings.append(
            TripStandingRow(
                player_id=pid,
                name=player.get("name") or "",
                starting_score=starting,
                round_results=tuple(results),
                gross_total=gross if holes > 0 else None,
                net_total=starting + sum(r for r in results if r is not None),
            )
        )
    return standings


def rank_trip_standings(rows: Iterable[TripStandingRow]) -> List[RankedTripStandingRow]:
    """Rank trip standings with the same tie rules as a round leaderboard."""
    ordered = sorted(rows, key=lambda r: r.net_total)
    placings = _placings([r.net_total for r in ordered])
    return [
        RankedTripStandingRow(
            **asdict(row), leader_delta=delta, rank=rank, position=position
        )
        for row, (delta, rank, position) in zip(ordered, placings)
    ]


__all__ = [
    "LeaderboardRow",
    "RankedLeaderboardRow",
    "TripStandingRow",
    "RankedTripStandingRow",
    "allocate_handicap",
    "even_par",
    "par_for_holes",
    "build_round_leaderboard",
    "rank_round_leaderboard",
    "build_trip_standings",
    "rank_trip_standings",
]
