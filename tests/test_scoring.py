import dataclasses

import pytest

from golftrip.scoring import (
    LeaderboardRow,
    allocate_handicap,
    build_round_leaderboard,
    even_par,
    par_for_holes,
    rank_round_leaderboard,
)


def _player(pid, handicap=0, name=None):
    return {"id": pid, "name": name or pid.upper(), "handicap": handicap}


def _holes(pid, strokes, start=1):
    return [
        {"player_id": pid, "hole_number": hole, "strokes": s}
        for hole, s in enumerate(strokes, start=start)
    ]


def _row(pid, net):
    return LeaderboardRow(player_id=pid, name=pid, gross_total=net, net_total=net, thru=1, to_par=net)


def test_scenario_gross_only_ranking():
    players = [_player("p1"), _player("p2")]
    scores = _holes("p1", [4, 5, 4]) + _holes("p2", [4, 4, 4])
    ranked = rank_round_leaderboard(build_round_leaderboard(players, scores, False))
    assert [(r.player_id, r.net_total, r.rank, r.position) for r in ranked] == [
        ("p2", 12, 1, "1"),
        ("p1", 13, 2, "2"),
    ]
    assert ranked[1].leader_delta == 1


def test_scenario_handicap_moves_player_ahead():
    players = [_player("p1", handicap=9), _player("p2")]
    scores = _holes("p1", [4, 5, 4]) + _holes("p2", [4, 4, 4])
    rows = {r.player_id: r for r in build_round_leaderboard(players, scores, True)}
    assert rows["p1"].gross_total == 13
    assert rows["p1"].net_total == 10
    assert rows["p2"].net_total == 12
    ranked = rank_round_leaderboard(rows.values())
    assert [(r.player_id, r.rank) for r in ranked] == [("p1", 1), ("p2", 2)]


def test_scenario_tie_for_lead():
    ranked = rank_round_leaderboard([_row("p1", 10), _row("p2", 10), _row("p3", 15)])
    assert {r.player_id for r in ranked[:2]} == {"p1", "p2"}
    assert [r.position for r in ranked] == ["T1", "T1", "3"]
    assert [r.rank for r in ranked] == [1, 2, 3]
    assert ranked[2].player_id == "p3"
    assert ranked[2].leader_delta == 5


def test_empty_field():
    assert build_round_leaderboard([], [], True) == []
    assert rank_round_leaderboard([]) == []


def test_one_row_per_player_and_orphans_ignored():
    players = [_player("a"), _player("b"), _player("c")]
    scores = _holes("a", [5, 5]) + _holes("ghost", [1, 1, 1])
    rows = build_round_leaderboard(players, scores, True)
    assert len(rows) == 3
    assert sum(r.gross_total for r in rows) == 10


def test_player_without_scores_has_zero_baseline():
    rows = build_round_leaderboard([_player("a", handicap=18)], [], True)
    assert rows[0].gross_total == 0
    assert rows[0].net_total == 0
    assert rows[0].thru == 0
    assert rows[0].to_par == 0


def test_gross_sums_entered_holes_only():
    # Holes 1 and 5 entered; 2-4 skipped
    scores = [
        {"player_id": "a", "hole_number": 1, "strokes": 4},
        {"player_id": "a", "hole_number": 5, "strokes": 6},
    ]
    row = build_round_leaderboard([_player("a")], scores, False)[0]
    assert row.gross_total == 10
    # thru counts entries, not the highest hole entered
    assert row.thru == 2


@pytest.mark.parametrize("handicap", [0, 1, 7, 17, 18, 19, 25, 36, 40])
def test_net_never_exceeds_gross_with_handicap(handicap):
    scores = _holes("a", [5, 4, 6, 3, 5])
    with_hc = build_round_leaderboard([_player("a", handicap)], scores, True)[0]
    without = build_round_leaderboard([_player("a", handicap)], scores, False)[0]
    assert with_hc.net_total <= with_hc.gross_total
    assert without.net_total == without.gross_total


@pytest.mark.parametrize("handicap", [0, 5, 17, 18, 20, 36, 54])
def test_full_round_credits_whole_handicap(handicap):
    scores = _holes("a", [5] * 18)
    row = build_round_leaderboard([_player("a", handicap)], scores, True)[0]
    assert row.thru == 18
    assert row.gross_total - row.net_total == handicap


def test_allocation_is_proportional_to_holes_played():
    # 20 = 1 per hole plus 2 extra on the first two holes played
    assert allocate_handicap(20, 0) == 0
    assert allocate_handicap(20, 1) == 2
    assert allocate_handicap(20, 2) == 4
    assert allocate_handicap(20, 3) == 5
    assert allocate_handicap(20, 18) == 20
    assert allocate_handicap(9, 3) == 3
    assert allocate_handicap(9, 12) == 9


def test_ranks_are_positional_and_sorted():
    rows = [_row("a", 7), _row("b", 3), _row("c", 5), _row("d", 3), _row("e", 9)]
    ranked = rank_round_leaderboard(rows)
    assert [r.rank for r in ranked] == [1, 2, 3, 4, 5]
    nets = [r.net_total for r in ranked]
    assert nets == sorted(nets)


def test_leader_delta_zero_only_for_leaders():
    ranked = rank_round_leaderboard([_row("a", 4), _row("b", 2), _row("c", 2), _row("d", 6)])
    for r in ranked:
        if r.net_total == 2:
            assert r.leader_delta == 0
        else:
            assert r.leader_delta > 0


def test_tie_in_middle_labels_first_rank_of_group():
    ranked = rank_round_leaderboard([_row("a", 1), _row("b", 4), _row("c", 4), _row("d", 9)])
    assert [r.position for r in ranked] == ["1", "T2", "T2", "4"]
    assert [r.rank for r in ranked] == [1, 2, 3, 4]


def test_ties_keep_input_order():
    ranked = rank_round_leaderboard([_row("x", 3), _row("y", 3), _row("z", 3)])
    assert [r.player_id for r in ranked] == ["x", "y", "z"]
    assert {r.position for r in ranked} == {"T1"}


def test_rows_are_immutable():
    row = build_round_leaderboard([_player("a")], _holes("a", [4]), False)[0]
    with pytest.raises(dataclasses.FrozenInstanceError):
        row.net_total = 0  # type: ignore[misc]


def test_ranked_row_serialises_camel_case():
    ranked = rank_round_leaderboard(build_round_leaderboard([_player("a", name="Ann")], _holes("a", [4, 5]), False))
    assert ranked[0].as_dict() == {
        "playerId": "a",
        "name": "Ann",
        "grossTotal": 9,
        "netTotal": 9,
        "thru": 2,
        "toPar": 9,
        "leaderDelta": 0,
        "rank": 1,
        "position": "1",
    }


def test_to_par_subtracts_par_of_entered_holes():
    pars = {1: 4, 2: 3, 3: 5}
    scores = _holes("a", [5, 3, 4])
    row = build_round_leaderboard([_player("a", handicap=18)], scores, True, par_by_hole=pars)[0]
    assert row.net_total == 12 - 3
    assert row.to_par == 9 - 12


@pytest.mark.parametrize(
    "course_par, holes, expected",
    [
        (72, 18, 72),
        (72, 9, 36),
        (73, 9, 37),
        (73, 18, 73),
        (71, 1, 4),
        (71, 18, 71),
        (63, 1, 4),
        (0, 5, 0),
        (None, 5, 0),
        (72, 0, 0),
    ],
)
def test_even_par_counts_holes_and_rounds_half_up(course_par, holes, expected):
    assert even_par(course_par, holes) == expected


def test_par_for_holes_mixes_explicit_and_even_pars():
    assert par_for_holes([1, 2, 3], {1: 5}, 72) == 5 + 8
    assert par_for_holes([7], {7: 3}) == 3
    assert par_for_holes([1, 2], {7: 3}) == 0
    assert par_for_holes([], {1: 5}, 72) == 0


def test_odd_course_par_front_nine():
    scores = _holes("a", [4] * 9)
    row = build_round_leaderboard([_player("a")], scores, False, course_par=73)[0]
    assert row.net_total == 36
    assert row.to_par == -1


def test_odd_course_par_single_back_nine_hole():
    scores = _holes("a", [4], start=10)
    row = build_round_leaderboard([_player("a")], scores, False, course_par=71)[0]
    assert row.thru == 1
    assert row.to_par == 0


def test_explicit_hole_pars_win_over_course_par():
    scores = _holes("a", [5, 4])
    row = build_round_leaderboard([_player("a")], scores, False, {1: 5}, 72)[0]
    assert row.to_par == 9 - (5 + 4)
