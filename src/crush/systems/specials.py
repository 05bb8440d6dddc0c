from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Set

from esper import World

from crush.components.special import SpecialKind
from crush.systems.board_ops import board_snapshot, set_special
from crush.systems.match_detection import HORIZONTAL, MatchRun, find_runs
from crush.utils.clear_set import ClearSet
from crush.utils.snapshot import BoardSnapshot, Position

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class CreatedSpecial:
    position: Position
    special: SpecialKind
    kind: int


def _group_runs(runs: List[MatchRun]) -> List[List[MatchRun]]:
    """Merge runs that share a cell into logical match groups."""
    groups: List[List[MatchRun]] = [[run] for run in runs]
    merged: List[List[MatchRun]] = []
    while groups:
        first = groups.pop(0)
        cells = {pos for run in first for pos in run.cells()}
        changed = True
        while changed:
            changed = False
            for group in groups[:]:
                group_cells = {pos for run in group for pos in run.cells()}
                if cells & group_cells:
                    first.extend(group)
                    cells |= group_cells
                    groups.remove(group)
                    changed = True
        merged.append(first)
    merged.sort(key=lambda group: min(pos for run in group for pos in run.cells()))
    return merged


def _special_for_run(run: MatchRun) -> SpecialKind:
    if run.length >= 5:
        return SpecialKind.COLOR_BOMB
    if run.length == 4:
        # A horizontal four makes a tile that clears its column, and vice versa.
        if run.orientation == HORIZONTAL:
            return SpecialKind.STRIPED_VERTICAL
        return SpecialKind.STRIPED_HORIZONTAL
    return SpecialKind.NONE


def _pick_cell(candidates: List[Position], origins: Set[Position]) -> Position:
    in_origin = sorted(pos for pos in candidates if pos in origins)
    if in_origin:
        return in_origin[0]
    return min(candidates)


def plan_specials(
    board: BoardSnapshot, clear_set: ClearSet, origins: Iterable[Position] = ()
) -> List[CreatedSpecial]:
    """Decide which cells of the current clear set turn into special tiles.

    Runs are re-derived from the clear set itself, so only cells still marked
    for clearing are eligible. Each logical match group yields at most one
    special: intersecting runs make a color bomb at the crossing, a single run
    of five or more makes a color bomb, a run of four makes a striped tile.
    A cell that already holds a special is left alone unless it is an origin.
    """
    origin_set = set(origins)
    runs = find_runs(board, clear_set.cells)
    planned: List[CreatedSpecial] = []
    for group in _group_runs(runs):
        if len(group) > 1:
            counts: Dict[Position, int] = {}
            for run in group:
                for pos in run.cells():
                    counts[pos] = counts.get(pos, 0) + 1
            crossings = [pos for pos, count in counts.items() if count > 1]
            target = _pick_cell(crossings, origin_set)
            special = SpecialKind.COLOR_BOMB
        else:
            run = group[0]
            special = _special_for_run(run)
            if special is SpecialKind.NONE:
                continue
            target = _pick_cell(run.cells(), origin_set)
        if board.special_at(target) is not SpecialKind.NONE and target not in origin_set:
            logger.debug(
                "Skipping %s at %s: cell already holds %s",
                special.value,
                target,
                board.special_at(target).value,
            )
            continue
        planned.append(CreatedSpecial(target, special, board.kind_at(target)))
    return planned


def create_specials(
    world: World, clear_set: ClearSet, origins: Iterable[Position] = ()
) -> List[CreatedSpecial]:
    """Apply plan_specials to the world and drop the receiving cells from clear_set."""
    planned = plan_specials(board_snapshot(world), clear_set, origins)
    for created in planned:
        set_special(world, created.position, created.special)
        clear_set.unmark(created.position)
        logger.debug("Created %s at %s", created.special.value, created.position)
    return planned
