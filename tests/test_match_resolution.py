import pytest

from crush.components.special import SpecialKind
from crush.errors import OutOfBoundsError
from crush.systems.board_ops import board_snapshot
from crush.systems.match_resolution import attempt_move
from tests.helpers import BASE_ROWS, ScriptedRandom, base_rows, build_game, column_major_kinds, parse_board

# Completing row 2 to four 5s by swapping (3,2) up into (2,2).
STRIPE_ROWS = base_rows(r2="5 5 3 5 1 2 3 4", r3="3 4 5 2 3 4 1 2")
STRIPE_FINAL = base_rows(
    r0="1 2 3 4 1 2 3 4",
    r1="1 2 1 4 3 4 1 2",
    r2="3 4 5| 2 1 2 3 4",
    r3="3 4 3 2 3 4 1 2",
)

# Kinds 1,3,4,5 only, plus five kind-2 tiles; the bomb at (4,4) is one of them.
BOMB_ROWS = [
    "2 5 3 4 1 5 3 4",
    "3 4 1 5 3 4 1 5",
    "1 5 3 4 1 5 2 4",
    "3 4 1 5 3 4 1 5",
    "1 5 3 4 2* 2 3 4",
    "3 4 1 5 3 4 1 5",
    "1 5 3 4 1 5 3 4",
    "3 4 1 5 3 4 1 2",
]
BOMB_FINAL = [
    "1 5 3 4 1 5 3 4",
    "3 4 1 5 1 5 3 4",
    "1 5 3 4 3 4 1 5",
    "3 4 1 5 1 5 1 4",
    "1 5 3 4 3 4 3 5",
    "3 4 1 5 3 4 1 4",
    "1 5 3 4 1 5 3 5",
    "3 4 1 5 3 4 1 4",
]


def test_pending_run_does_not_legalize_unrelated_swap():
    _, world, _ = build_game(base_rows(r2="5 5 5 5 1 2 3 4"))
    before = board_snapshot(world)
    result = attempt_move(world, (6, 6), (6, 7), rng=ScriptedRandom([]))
    assert not result.accepted
    assert result.reason == "no_match"
    assert result.score_delta == 0
    assert board_snapshot(world) == before
    assert result.final_board == before


def test_completing_four_creates_vertical_stripe_at_origin():
    _, world, _ = build_game(STRIPE_ROWS)
    rng = ScriptedRandom([1, 2, 4])
    result = attempt_move(world, (3, 2), (2, 2), rng=rng)
    assert result.accepted
    assert result.total_cleared == 3
    assert result.score_delta == 3
    assert result.passes == 1
    assert result.final_board.special_at((2, 2)) is SpecialKind.STRIPED_VERTICAL
    assert result.final_board.kind_at((2, 2)) == 5
    assert result.final_board == parse_board(STRIPE_FINAL)
    assert board_snapshot(world) == result.final_board
    assert rng.remaining == 0


def test_move_symmetry():
    _, world_ab, _ = build_game(STRIPE_ROWS)
    _, world_ba, _ = build_game(STRIPE_ROWS)
    forward = attempt_move(world_ab, (3, 2), (2, 2), rng=ScriptedRandom([1, 2, 4]))
    backward = attempt_move(world_ba, (2, 2), (3, 2), rng=ScriptedRandom([1, 2, 4]))
    assert forward == backward


def test_color_bomb_sweeps_partner_kind():
    _, world, _ = build_game(BOMB_ROWS)
    result = attempt_move(world, (4, 4), (4, 5), rng=ScriptedRandom([1, 1, 5, 3, 4]))
    assert result.accepted
    assert result.total_cleared == 5
    assert result.passes == 1
    assert result.final_board == parse_board(BOMB_FINAL)


def test_two_color_bombs_clear_entire_grid():
    rows = base_rows(r3="3 4 1 2* 3* 4 1 2")
    _, world, _ = build_game(rows)
    result = attempt_move(world, (3, 3), (3, 4), rng=ScriptedRandom(column_major_kinds(BASE_ROWS)))
    assert result.accepted
    assert result.total_cleared == 8 * 8
    assert result.final_board == parse_board(BASE_ROWS)


def test_stripe_in_match_clears_its_row():
    rows = base_rows(r2="5- 5 3 4 1 2 3 4", r3="3 4 5 2 3 4 1 2")
    _, world, _ = build_game(rows)
    result = attempt_move(world, (3, 2), (2, 2), rng=ScriptedRandom([1, 2, 3, 4, 1, 2, 3, 4]))
    assert result.accepted
    assert result.total_cleared == 8
    assert result.final_board == parse_board(base_rows(
        r0="1 2 3 4 1 2 3 4",
        r1="1 2 3 4 1 2 3 4",
        r2="3 4 1 2 3 4 1 2",
        r3="3 4 3 2 3 4 1 2",
    ))


@pytest.mark.parametrize("a,b,reason", [
    ((0, 0), (0, 2), "not_adjacent"),
    ((0, 0), (1, 1), "not_adjacent"),
    ((0, 0), (0, 0), "not_adjacent"),
])
def test_non_adjacent_swaps_rejected(a, b, reason):
    _, world, _ = build_game(STRIPE_ROWS)
    before = board_snapshot(world)
    result = attempt_move(world, a, b)
    assert not result.accepted
    assert result.reason == reason
    assert board_snapshot(world) == before


def test_out_of_bounds_fails_fast():
    _, world, _ = build_game(STRIPE_ROWS)
    before = board_snapshot(world)
    with pytest.raises(OutOfBoundsError):
        attempt_move(world, (0, 7), (0, 8))
    with pytest.raises(OutOfBoundsError):
        attempt_move(world, (-1, 0), (0, 0))
    assert board_snapshot(world) == before


def test_swap_into_empty_cell_rejected():
    rows = list(STRIPE_ROWS)
    rows[0] = ". 2 3 4 1 2 3 4"
    _, world, _ = build_game(rows)
    result = attempt_move(world, (0, 0), (0, 1))
    assert not result.accepted
    assert result.reason == "empty_cell"


def test_new_special_survives_sweep_in_same_pass():
    # The striped tile at (2,1) fires across row 2 but skips the stripe just made at (2,2).
    rows = base_rows(r2="5 5- 3 5 1 2 3 4", r3="3 4 5 2 3 4 1 2")
    _, world, _ = build_game(rows)
    rng = ScriptedRandom([1, 2, 4, 1, 2, 3, 4])
    result = attempt_move(world, (3, 2), (2, 2), rng=rng)
    assert result.accepted
    assert result.total_cleared == 7
    assert result.passes == 1
    assert result.final_board.special_at((2, 2)) is SpecialKind.STRIPED_VERTICAL
    assert result.final_board == parse_board(base_rows(
        r0="1 2 3 4 1 2 3 4",
        r1="1 2 1 4 1 2 3 4",
        r2="3 4 5| 2 3 4 1 2",
        r3="3 4 3 2 3 4 1 2",
    ))
    assert rng.remaining == 0


# Bomb of kind 4 at (4,4) next to one of five kind-2 tiles.
OFF_KIND_BOMB_ROWS = [
    "2 5 3 4 1 5 3 4",
    "3 4 2 5 3 4 1 5",
    "1 5 3 4 1 5 2 4",
    "3 4 1 5 3 4 1 5",
    "1 5 3 4 4* 2 3 4",
    "3 4 1 5 3 4 1 5",
    "1 5 3 4 1 5 3 4",
    "3 4 1 5 3 4 1 2",
]


def test_color_bomb_clears_itself_with_partner_kind():
    _, world, _ = build_game(OFF_KIND_BOMB_ROWS)
    result = attempt_move(world, (4, 4), (4, 5), rng=ScriptedRandom([1, 1, 3, 1, 4, 5]))
    assert result.accepted
    assert result.total_cleared == 5 + 1
    assert result.passes == 1
    assert result.final_board == parse_board([
        "1 5 1 4 3 1 4 5",
        "3 4 3 5 1 5 3 4",
        "1 5 3 4 3 4 1 5",
        "3 4 1 5 1 5 1 4",
        "1 5 3 4 3 4 3 5",
        "3 4 1 5 3 4 1 4",
        "1 5 3 4 1 5 3 5",
        "3 4 1 5 3 4 1 4",
    ])
