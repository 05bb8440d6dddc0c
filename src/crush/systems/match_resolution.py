from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from esper import World

from crush.events.bus import (EventBus, EVENT_TILE_SWAP_REQUEST, EVENT_TILE_SWAP_VALID,
                              EVENT_TILE_SWAP_INVALID, EVENT_MATCH_FOUND, EVENT_SPECIAL_CREATED,
                              EVENT_MATCH_CLEARED, EVENT_GRAVITY_APPLIED, EVENT_REFILL_COMPLETED,
                              EVENT_CASCADE_STEP, EVENT_CASCADE_COMPLETE, EVENT_TURN_RESOLVED,
                              EVENT_BOARD_RESET)
from crush.systems.board import respawn_board
from crush.systems.board_ops import (board_snapshot, check_board_invariants, clear_tiles,
                                     resolve_rng, settle, swap_tiles)
from crush.systems.cascade import activate, bomb_cells, bomb_trigger, is_bomb_swap
from crush.systems.match import find_valid_moves, rejection_reason, require_in_bounds
from crush.systems.match_detection import find_matches
from crush.systems.specials import create_specials
from crush.systems.turn_state_utils import get_or_create_turn_state
from crush.utils.clear_set import ClearSet
from crush.utils.snapshot import BoardSnapshot, Position

logger = logging.getLogger(__name__)

PassCallback = Callable[[BoardSnapshot, int], None]


@dataclass(slots=True, frozen=True)
class TurnResult:
    accepted: bool
    total_cleared: int
    score_delta: int
    final_board: BoardSnapshot
    passes: int = 0
    reason: Optional[str] = None


def _emit(event_bus: Optional[EventBus], name: str, **payload) -> None:
    if event_bus is not None:
        event_bus.emit(name, **payload)


def _rejected(board: BoardSnapshot, reason: str) -> TurnResult:
    return TurnResult(accepted=False, total_cleared=0, score_delta=0, final_board=board, reason=reason)


def attempt_move(
    world: World,
    a: Position,
    b: Position,
    *,
    rng=None,
    on_pass: Optional[PassCallback] = None,
    event_bus: Optional[EventBus] = None,
) -> TurnResult:
    """Validate the swap of a and b and, when legal, resolve it until the board is stable.

    Out-of-range coordinates raise OutOfBoundsError before anything else happens.
    A rejected move never touches the world. An accepted move runs every
    cascade pass before returning; ``on_pass`` and EVENT_CASCADE_STEP observe
    the board after each pass.
    """
    a = (a[0], a[1])
    b = (b[0], b[1])
    board = board_snapshot(world)
    require_in_bounds(board, a, b)
    state = get_or_create_turn_state(world)
    if state.resolving:
        logger.info("Rejecting swap %s<->%s while a move is resolving", a, b)
        _emit(event_bus, EVENT_TILE_SWAP_INVALID, src=a, dst=b, reason="resolving")
        return _rejected(board, "resolving")
    reason = rejection_reason(board, a, b)
    if reason is not None:
        _emit(event_bus, EVENT_TILE_SWAP_INVALID, src=a, dst=b, reason=reason)
        return _rejected(board, reason)
    bomb = is_bomb_swap(board, a, b)
    _emit(event_bus, EVENT_TILE_SWAP_VALID, src=a, dst=b, bomb=bomb)

    state.resolving = True
    state.cascade_depth = 0
    try:
        swap_tiles(world, a, b)
        total, passes = _resolve(world, a, b, bomb, rng, on_pass, event_bus, state)
    finally:
        state.resolving = False
    state.last_move = (a, b)
    state.moves_resolved += 1
    check_board_invariants(world)
    _emit(event_bus, EVENT_CASCADE_COMPLETE, depth=passes, total_cleared=total)
    logger.debug("Swap %s<->%s resolved in %d passes, %d cleared", a, b, passes, total)
    return TurnResult(
        accepted=True,
        total_cleared=total,
        score_delta=total,
        final_board=board_snapshot(world),
        passes=passes,
    )


def _first_pass_clear_set(world: World, a: Position, b: Position, bomb: bool,
                          event_bus: Optional[EventBus]) -> ClearSet:
    board = board_snapshot(world)
    if bomb:
        clear_set = bomb_trigger(board, a, b)
        return activate(board, clear_set, expanded=bomb_cells(board, a, b))
    return _matched_clear_set(world, (a, b), 1, event_bus)


def _matched_clear_set(world: World, origins: Tuple[Position, ...], depth: int,
                       event_bus: Optional[EventBus]) -> ClearSet:
    clear_set = find_matches(board_snapshot(world))
    if not clear_set:
        return clear_set
    _emit(event_bus, EVENT_MATCH_FOUND, positions=clear_set.positions(), size=len(clear_set), depth=depth)
    created_specials = create_specials(world, clear_set, origins)
    for created in created_specials:
        _emit(event_bus, EVENT_SPECIAL_CREATED, position=created.position, special=created.special, depth=depth)
    # Re-read so the activator sees the board after special creation.
    return activate(board_snapshot(world), clear_set,
                    protected=[created.position for created in created_specials])


def _resolve(world, a, b, bomb, rng, on_pass, event_bus, state) -> Tuple[int, int]:
    rng = resolve_rng(world, rng)
    total = 0
    depth = 0
    while True:
        if depth == 0:
            clear_set = _first_pass_clear_set(world, a, b, bomb, event_bus)
        else:
            clear_set = _matched_clear_set(world, (), depth + 1, event_bus)
        if not clear_set:
            return total, depth
        depth += 1
        state.cascade_depth = depth
        cleared = clear_tiles(world, clear_set.positions())
        total += len(cleared)
        _emit(event_bus, EVENT_MATCH_CLEARED, positions=[(r, c) for r, c, _ in cleared],
              kinds=cleared, depth=depth)
        if not cleared:
            return total, depth
        report = settle(world, rng)
        _emit(event_bus, EVENT_GRAVITY_APPLIED, moves=report.moves, depth=depth)
        _emit(event_bus, EVENT_REFILL_COMPLETED, new_tiles=report.new_tiles, depth=depth)
        snapshot = board_snapshot(world)
        logger.debug("Pass %d cleared %d tiles", depth, len(cleared))
        if on_pass is not None:
            on_pass(snapshot, len(cleared))
        _emit(event_bus, EVENT_CASCADE_STEP, depth=depth, cleared=len(cleared), board=snapshot)


class MatchResolutionSystem:
    """Turns swap requests into resolved turns.

    Flow:
      - EVENT_TILE_SWAP_REQUEST runs attempt_move against the world.
      - Pipeline events are emitted as each pass resolves.
      - EVENT_TURN_RESOLVED carries the TurnResult.
      - If the settled board offers no valid move, it is respawned and
        EVENT_BOARD_RESET is emitted.
    """
    def __init__(self, world: World, event_bus: EventBus, *, rng=None, reset_on_stalemate: bool = True):
        self.world = world
        self.event_bus = event_bus
        self.rng = rng
        self.reset_on_stalemate = reset_on_stalemate
        self.last_result: Optional[TurnResult] = None
        self.event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self.on_swap_request)
        get_or_create_turn_state(self.world)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if not src or not dst:
            return
        self.attempt_move(src, dst)

    def attempt_move(self, src: Position, dst: Position, on_pass: Optional[PassCallback] = None) -> TurnResult:
        result = attempt_move(self.world, src, dst, rng=self.rng, on_pass=on_pass, event_bus=self.event_bus)
        self.last_result = result
        self.event_bus.emit(EVENT_TURN_RESOLVED, src=tuple(src), dst=tuple(dst), result=result)
        if result.accepted and self.reset_on_stalemate:
            self._reset_if_stalemate()
        return result

    def _reset_if_stalemate(self) -> None:
        if find_valid_moves(board_snapshot(self.world)):
            return
        logger.info("No valid moves left; respawning board")
        # Respawns draw from the world rng; self.rng only feeds refills.
        positions = respawn_board(self.world)
        self.event_bus.emit(EVENT_BOARD_RESET, reason="stalemate_reset", positions=positions)
