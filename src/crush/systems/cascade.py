from __future__ import annotations

from typing import Iterable, List, Set

from crush.components.special import SpecialKind
from crush.utils.clear_set import ClearSet
from crush.utils.snapshot import BoardSnapshot, Position


def effect_cells(board: BoardSnapshot, pos: Position, special: SpecialKind) -> List[Position]:
    """Occupied cells swept by a special at pos when it goes off inside a cascade."""
    row, col = pos
    if special is SpecialKind.STRIPED_HORIZONTAL:
        cells = [(row, c) for c in range(board.cols)]
    elif special is SpecialKind.STRIPED_VERTICAL:
        cells = [(r, col) for r in range(board.rows)]
    elif special is SpecialKind.COLOR_BOMB:
        cells = [(row + dr, col + dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1)]
    else:
        return []
    return [cell for cell in cells if board.in_bounds(cell) and board.tile_at(cell) is not None]


def activate(
    board: BoardSnapshot,
    clear_set: ClearSet,
    *,
    expanded: Iterable[Position] = (),
    protected: Iterable[Position] = (),
) -> ClearSet:
    """Grow clear_set with special-tile effects until a full scan adds nothing.

    Specials in ``expanded`` are treated as already fired. Cells in
    ``protected`` are never swept in, so a special created this pass
    survives until the next one. Only the clear set changes; the specials on
    the board are left as they are.
    """
    done: Set[Position] = set(expanded)
    keep: Set[Position] = set(protected)
    while True:
        added = 0
        for pos in clear_set.positions():
            if pos in done:
                continue
            special = board.special_at(pos)
            if special is SpecialKind.NONE:
                continue
            done.add(pos)
            added += clear_set.mark_all(cell for cell in effect_cells(board, pos, special) if cell not in keep)
        if not added:
            return clear_set


def bomb_cells(board: BoardSnapshot, a: Position, b: Position) -> List[Position]:
    return [pos for pos in (a, b) if board.special_at(pos) is SpecialKind.COLOR_BOMB]


def is_bomb_swap(board: BoardSnapshot, a: Position, b: Position) -> bool:
    return bool(bomb_cells(board, a, b))


def bomb_trigger(board: BoardSnapshot, a: Position, b: Position) -> ClearSet:
    """Clear set for a color bomb swapped directly against another tile.

    Two bombs clear the whole board. A bomb against a colored tile clears every
    tile of that color, and the bomb itself.
    """
    clear_set = ClearSet(board.rows, board.cols)
    bombs = bomb_cells(board, a, b)
    if not bombs:
        return clear_set
    if len(bombs) == 2:
        clear_set.mark_all(board.occupied())
        return clear_set
    clear_set.mark_all(bombs)
    partner = b if bombs[0] == a else a
    target_kind = board.kind_at(partner)
    if target_kind is None:
        return clear_set
    clear_set.mark_all(pos for pos, tile in board.tiles.items() if tile.kind == target_kind)
    return clear_set
