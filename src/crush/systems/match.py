from __future__ import annotations

from typing import List, Tuple

from crush.errors import OutOfBoundsError
from crush.systems.cascade import is_bomb_swap
from crush.systems.match_detection import find_matches
from crush.utils.snapshot import BoardSnapshot, Position


def is_adjacent(a: Position, b: Position) -> bool:
    ar, ac = a
    br, bc = b
    return abs(ar - br) + abs(ac - bc) == 1


def require_in_bounds(board: BoardSnapshot, *positions: Position) -> None:
    for pos in positions:
        if not board.in_bounds(pos):
            raise OutOfBoundsError(f"Position {pos} is outside the {board.rows}x{board.cols} board")


def swap_creates_match(board: BoardSnapshot, a: Position, b: Position) -> bool:
    """Return True if swapping a/b forms a run through either swapped cell."""
    # Any run the swap introduces must pass through a or b; runs already on the board do not count.
    matches = find_matches(board.swapped(a, b))
    return a in matches or b in matches


def rejection_reason(board: BoardSnapshot, a: Position, b: Position) -> str | None:
    """Return why swapping a/b is illegal, or None when the move is legal."""
    require_in_bounds(board, a, b)
    if not is_adjacent(a, b):
        return "not_adjacent"
    if board.tile_at(a) is None or board.tile_at(b) is None:
        return "empty_cell"
    if is_bomb_swap(board, a, b):
        return None
    if not swap_creates_match(board, a, b):
        return "no_match"
    return None


def is_valid_move(board: BoardSnapshot, a: Position, b: Position) -> bool:
    return rejection_reason(board, a, b) is None


def find_valid_moves(board: BoardSnapshot) -> List[Tuple[Position, Position]]:
    """Enumerate adjacent swaps that would be accepted, row-major, right then down."""
    moves: List[Tuple[Position, Position]] = []
    for row in range(board.rows):
        for col in range(board.cols):
            pos = (row, col)
            right = (row, col + 1)
            if col + 1 < board.cols and is_valid_move(board, pos, right):
                moves.append((pos, right))
            down = (row + 1, col)
            if row + 1 < board.rows and is_valid_move(board, pos, down):
                moves.append((pos, down))
    return moves
