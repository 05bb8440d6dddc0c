from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional

from esper import World

from crush.constants import GRID_COLS, GRID_ROWS, PALETTE_SIZE, RESPAWN_ATTEMPTS
from crush.events.bus import EventBus, EVENT_BOARD_RESET
from crush.components.active_switch import ActiveSwitch
from crush.components.board import Board
from crush.components.board_position import BoardPosition
from crush.components.special import Special
from crush.components.tile import TileType
from crush.systems.board_ops import board_snapshot, get_board, resolve_rng, write_snapshot
from crush.systems.match import find_valid_moves
from crush.systems.match_detection import find_matches
from crush.utils.snapshot import BoardSnapshot, Position, Tile

logger = logging.getLogger(__name__)


def _generate_layout(rows: int, cols: int, palette_size: int, rng) -> Optional[List[List[int]]]:
    choices = list(range(1, palette_size + 1))
    layout: List[List[int]] = []
    for row in range(rows):
        row_values: List[int] = []
        for col in range(cols):
            available = list(choices)
            # Prevent horizontal triple: if last two cells share a kind, exclude it.
            if col >= 2:
                left1 = row_values[col - 1]
                left2 = row_values[col - 2]
                if left1 == left2 and left1 in available:
                    available = [k for k in available if k != left1]
            # Prevent vertical triple the same way.
            if row >= 2:
                up1 = layout[row - 1][col]
                up2 = layout[row - 2][col]
                if up1 == up2 and up1 in available:
                    available = [k for k in available if k != up1]
            if not available:
                return None
            row_values.append(rng.choice(available))
        layout.append(row_values)
    return layout


def respawn_board(
    world: World,
    rng: random.Random | None = None,
    *,
    max_attempts: int = RESPAWN_ATTEMPTS,
) -> List[Position]:
    """Fill the entire board with fresh tiles that contain no matches and at least one valid move."""
    board = get_board(world)
    rng = resolve_rng(world, rng)
    for attempt in range(max_attempts):
        layout = _generate_layout(board.rows, board.cols, board.palette_size, rng)
        if layout is None:
            continue
        tiles: Dict[Position, Tile] = {
            (row, col): Tile(layout[row][col])
            for row in range(board.rows)
            for col in range(board.cols)
        }
        candidate = BoardSnapshot(board.rows, board.cols, tiles)
        if find_matches(candidate):
            continue
        if not find_valid_moves(candidate):
            continue
        write_snapshot(world, candidate)
        logger.debug("Respawned %dx%d board after %d attempt(s)", board.rows, board.cols, attempt + 1)
        return candidate.occupied()
    raise RuntimeError("Unable to respawn board without matches and valid swaps")


class BoardSystem:
    """Owns the board entity and its tile entities; seeds a stable starting board."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        rows: int = GRID_ROWS,
        cols: int = GRID_COLS,
        *,
        palette_size: int = PALETTE_SIZE,
        rng: random.Random | None = None,
        seed: bool = True,
    ):
        if palette_size < 3:
            raise ValueError("palette_size must be at least 3 to seed a board without matches")
        self.world = world
        self.event_bus = event_bus
        self.rng = rng
        self.seed = seed
        self.board_entity = self.world.create_entity()
        self.world.add_component(self.board_entity, Board(rows=rows, cols=cols, palette_size=palette_size))
        self._init_board()

    def _init_board(self):
        board: Board = self.world.component_for_entity(self.board_entity, Board)
        for r in range(board.rows):
            for c in range(board.cols):
                self.world.create_entity(BoardPosition(row=r, col=c), TileType(kind=1), ActiveSwitch(), Special())
        if not self.seed:
            return
        positions = respawn_board(self.world, self.rng)
        self.event_bus.emit(EVENT_BOARD_RESET, reason="seeded", positions=positions)

    def snapshot(self) -> BoardSnapshot:
        return board_snapshot(self.world)

    def load(self, snapshot: BoardSnapshot) -> None:
        """Replace the board contents, e.g. with a hand-built layout."""
        board = get_board(self.world)
        if (snapshot.rows, snapshot.cols) != (board.rows, board.cols):
            raise ValueError(
                f"Snapshot is {snapshot.rows}x{snapshot.cols}, board is {board.rows}x{board.cols}"
            )
        write_snapshot(self.world, snapshot)
