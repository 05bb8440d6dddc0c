from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, List, Optional, Sequence

from esper import World

from crush.constants import MIN_RUN
from crush.systems.board_ops import board_snapshot
from crush.utils.clear_set import ClearSet
from crush.utils.snapshot import BoardSnapshot, Position

HORIZONTAL = "H"
VERTICAL = "V"


@dataclass(slots=True, frozen=True)
class MatchRun:
    start: Position
    length: int
    orientation: str
    kind: int

    def cells(self) -> List[Position]:
        row, col = self.start
        if self.orientation == HORIZONTAL:
            return [(row, col + offset) for offset in range(self.length)]
        return [(row + offset, col) for offset in range(self.length)]

    def __contains__(self, pos: object) -> bool:
        return pos in self.cells()


def _scan_line(
    board: BoardSnapshot,
    line: Sequence[Position],
    orientation: str,
    cells: Optional[Collection[Position]],
    min_length: int,
) -> List[MatchRun]:
    runs: List[MatchRun] = []
    run: List[Position] = []
    last_kind = None
    for pos in line:
        kind = board.kind_at(pos)
        if kind is not None and cells is not None and pos not in cells:
            kind = None
        if kind is not None and kind == last_kind:
            run.append(pos)
            continue
        if len(run) >= min_length:
            runs.append(MatchRun(run[0], len(run), orientation, last_kind))
        # An empty or ineligible cell restarts the run.
        run = [pos] if kind is not None else []
        last_kind = kind
    if len(run) >= min_length:
        runs.append(MatchRun(run[0], len(run), orientation, last_kind))
    return runs


def find_runs(
    board: BoardSnapshot,
    cells: Optional[Collection[Position]] = None,
    *,
    min_length: int = MIN_RUN,
) -> List[MatchRun]:
    """Enumerate maximal same-kind runs, rows first then columns.

    When cells is given only those positions may take part in a run.
    """
    runs: List[MatchRun] = []
    for row in range(board.rows):
        line = [(row, col) for col in range(board.cols)]
        runs.extend(_scan_line(board, line, HORIZONTAL, cells, min_length))
    for col in range(board.cols):
        line = [(row, col) for row in range(board.rows)]
        runs.extend(_scan_line(board, line, VERTICAL, cells, min_length))
    return runs


def find_matches(board: BoardSnapshot) -> ClearSet:
    """Mark every cell that lies in a horizontal or vertical run of three or more."""
    clear_set = ClearSet(board.rows, board.cols)
    for run in find_runs(board):
        clear_set.mark_all(run.cells())
    return clear_set


def find_all_matches(world: World) -> ClearSet:
    return find_matches(board_snapshot(world))
