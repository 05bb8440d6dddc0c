from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from esper import World

from crush.components.active_switch import ActiveSwitch
from crush.components.board import Board
from crush.components.board_position import BoardPosition
from crush.components.special import Special, SpecialKind
from crush.components.tile import TileType
from crush.errors import BoardInvariantError
from crush.utils.snapshot import BoardSnapshot, Position, Tile

KindEntry = Tuple[int, int, int]


@dataclass(slots=True, frozen=True)
class GravityMove:
    source: Position
    target: Position
    kind: int
    special: SpecialKind


@dataclass(slots=True)
class SettleReport:
    moves: List[GravityMove]
    new_tiles: List[Position]


def get_board(world: World) -> Board:
    for _, board in world.get_component(Board):
        return board
    raise RuntimeError("Board component not found")


def resolve_rng(world: World, rng=None):
    """Prefer an explicit generator, then the world's, then a fresh one."""
    if rng is not None:
        return rng
    candidate = getattr(world, "random", None)
    if candidate is not None:
        return candidate
    return random.Random()


def position_index(world: World) -> Dict[Position, int]:
    return {(pos.row, pos.col): entity for entity, pos in world.get_component(BoardPosition)}


def get_entity_at(world: World, row: int, col: int) -> int | None:
    for entity, position in world.get_component(BoardPosition):
        if position.row == row and position.col == col:
            return entity
    return None


def board_snapshot(world: World) -> BoardSnapshot:
    """Copy the occupied cells of the world into an immutable snapshot."""
    board = get_board(world)
    tiles: Dict[Position, Tile] = {}
    for entity, position in world.get_component(BoardPosition):
        try:
            switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
            if not switch.active:
                continue
            tile: TileType = world.component_for_entity(entity, TileType)
            special: Special = world.component_for_entity(entity, Special)
        except KeyError:
            continue
        tiles[(position.row, position.col)] = Tile(tile.kind, special.kind)
    return BoardSnapshot(board.rows, board.cols, tiles)


def write_snapshot(world: World, snapshot: BoardSnapshot) -> None:
    """Overwrite every cell of the world with the contents of snapshot."""
    for entity, position in world.get_component(BoardPosition):
        tile = snapshot.tile_at((position.row, position.col))
        switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
        special: Special = world.component_for_entity(entity, Special)
        if tile is None:
            switch.active = False
            special.kind = SpecialKind.NONE
            continue
        world.component_for_entity(entity, TileType).kind = tile.kind
        switch.active = True
        special.kind = tile.special


def set_special(world: World, pos: Position, kind: SpecialKind) -> bool:
    entity = get_entity_at(world, pos[0], pos[1])
    if entity is None:
        return False
    if not world.component_for_entity(entity, ActiveSwitch).active:
        return False
    world.component_for_entity(entity, Special).kind = kind
    return True


def swap_tiles(world: World, src: Position, dst: Position) -> bool:
    """Swap kind, occupancy and special between the tiles at src and dst."""
    src_entity = get_entity_at(world, src[0], src[1])
    dst_entity = get_entity_at(world, dst[0], dst[1])
    if src_entity is None or dst_entity is None:
        return False
    src_tile: TileType = world.component_for_entity(src_entity, TileType)
    dst_tile: TileType = world.component_for_entity(dst_entity, TileType)
    src_switch: ActiveSwitch = world.component_for_entity(src_entity, ActiveSwitch)
    dst_switch: ActiveSwitch = world.component_for_entity(dst_entity, ActiveSwitch)
    src_special: Special = world.component_for_entity(src_entity, Special)
    dst_special: Special = world.component_for_entity(dst_entity, Special)
    src_tile.kind, dst_tile.kind = dst_tile.kind, src_tile.kind
    src_switch.active, dst_switch.active = dst_switch.active, src_switch.active
    src_special.kind, dst_special.kind = dst_special.kind, src_special.kind
    return True


def clear_tiles(world: World, positions: Iterable[Position]) -> List[KindEntry]:
    """Empty the tiles at positions and return (row, col, kind) for each one cleared."""
    index = position_index(world)
    cleared: List[KindEntry] = []
    for row, col in sorted(set(positions)):
        entity = index.get((row, col))
        if entity is None:
            continue
        switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
        if not switch.active:
            continue
        tile: TileType = world.component_for_entity(entity, TileType)
        cleared.append((row, col, tile.kind))
        switch.active = False
        world.component_for_entity(entity, Special).kind = SpecialKind.NONE
    return cleared


def compute_gravity_moves(world: World) -> List[GravityMove]:
    """Plan the downward compaction of every column, bottom-most tile first."""
    board = get_board(world)
    index = position_index(world)
    moves: List[GravityMove] = []
    for col in range(board.cols):
        filled_rows: List[int] = []
        for row in range(board.rows):
            entity = index.get((row, col))
            if entity is None:
                continue
            if world.component_for_entity(entity, ActiveSwitch).active:
                filled_rows.append(row)
        target = board.rows - 1
        for original_row in reversed(filled_rows):
            if original_row != target:
                entity = index[(original_row, col)]
                tile = world.component_for_entity(entity, TileType)
                special = world.component_for_entity(entity, Special)
                moves.append(
                    GravityMove(
                        source=(original_row, col),
                        target=(target, col),
                        kind=tile.kind,
                        special=special.kind,
                    )
                )
            target -= 1
    return moves


def apply_gravity_moves(world: World, moves: List[GravityMove]) -> None:
    # Moves within a column are ordered bottom-first, so every target is vacant when reached.
    index = position_index(world)
    for move in moves:
        src_entity = index.get(move.source)
        dst_entity = index.get(move.target)
        if src_entity is None or dst_entity is None:
            continue
        src_switch: ActiveSwitch = world.component_for_entity(src_entity, ActiveSwitch)
        if not src_switch.active:
            continue
        dst_switch: ActiveSwitch = world.component_for_entity(dst_entity, ActiveSwitch)
        world.component_for_entity(dst_entity, TileType).kind = move.kind
        world.component_for_entity(dst_entity, Special).kind = move.special
        dst_switch.active = True
        src_switch.active = False
        world.component_for_entity(src_entity, Special).kind = SpecialKind.NONE


def refill_inactive_tiles(world: World, rng=None) -> List[Position]:
    """Fill empty cells column by column, top to bottom, with fresh plain tiles."""
    board = get_board(world)
    rng = resolve_rng(world, rng)
    index = position_index(world)
    spawned: List[Position] = []
    for col in range(board.cols):
        for row in range(board.rows):
            entity = index.get((row, col))
            if entity is None:
                continue
            switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
            if switch.active:
                continue
            world.component_for_entity(entity, TileType).kind = rng.randint(1, board.palette_size)
            world.component_for_entity(entity, Special).kind = SpecialKind.NONE
            switch.active = True
            spawned.append((row, col))
    return spawned


def settle(world: World, rng=None) -> SettleReport:
    """Apply gravity then refill; columns are independent of each other."""
    moves = compute_gravity_moves(world)
    if moves:
        apply_gravity_moves(world, moves)
    new_tiles = refill_inactive_tiles(world, rng)
    return SettleReport(moves=moves, new_tiles=new_tiles)


def check_board_invariants(world: World) -> None:
    """Raise BoardInvariantError if the world holds a board the engine cannot produce."""
    board = get_board(world)
    index = position_index(world)
    expected = {(row, col) for row in range(board.rows) for col in range(board.cols)}
    if set(index) != expected:
        missing = sorted(expected - set(index))
        extra = sorted(set(index) - expected)
        raise BoardInvariantError(f"Board cells mismatch: missing={missing} extra={extra}")
    for pos, entity in index.items():
        try:
            switch: ActiveSwitch = world.component_for_entity(entity, ActiveSwitch)
            tile: TileType = world.component_for_entity(entity, TileType)
            special: Special = world.component_for_entity(entity, Special)
        except KeyError as exc:
            raise BoardInvariantError(f"Cell {pos} is missing a tile component") from exc
        if not switch.active:
            if special.kind is not SpecialKind.NONE:
                raise BoardInvariantError(f"Empty cell {pos} carries special {special.kind.value}")
            continue
        if not 1 <= tile.kind <= board.palette_size:
            raise BoardInvariantError(f"Cell {pos} has kind {tile.kind} outside 1..{board.palette_size}")
