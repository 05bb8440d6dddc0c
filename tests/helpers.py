from __future__ import annotations

import random
from typing import Iterable, List, Sequence, Tuple

from esper import World

from crush.components.special import SpecialKind
from crush.events.bus import EventBus
from crush.systems.board import BoardSystem
from crush.utils.snapshot import BoardSnapshot, Tile
from crush.world import create_world

_SPECIAL_SUFFIX = {
    "-": SpecialKind.STRIPED_HORIZONTAL,
    "|": SpecialKind.STRIPED_VERTICAL,
    "*": SpecialKind.COLOR_BOMB,
}

# Rows alternate between two offsets of 1..4 so no run of three can form; kind 5 is free for tests.
BASE_ROWS = [
    "1 2 3 4 1 2 3 4",
    "3 4 1 2 3 4 1 2",
    "1 2 3 4 1 2 3 4",
    "3 4 1 2 3 4 1 2",
    "1 2 3 4 1 2 3 4",
    "3 4 1 2 3 4 1 2",
    "1 2 3 4 1 2 3 4",
    "3 4 1 2 3 4 1 2",
]


class ScriptedRandom:
    """Deterministic stand-in for the refill generator.

    Hands out the scripted kinds in order and fails loudly when a test draws
    more tiles than it planned for.
    """

    def __init__(self, values: Iterable[int]):
        self.values: List[int] = list(values)
        self.drawn = 0

    def randint(self, a: int, b: int) -> int:
        if self.drawn >= len(self.values):
            raise AssertionError(f"Refill drew more than the {len(self.values)} scripted tiles")
        value = self.values[self.drawn]
        self.drawn += 1
        assert a <= value <= b, f"Scripted kind {value} outside {a}..{b}"
        return value

    @property
    def remaining(self) -> int:
        return len(self.values) - self.drawn


def parse_board(rows: Sequence[str]) -> BoardSnapshot:
    """Build a snapshot from rows of tokens: a kind digit with an optional
    special suffix (``-`` striped horizontal, ``|`` striped vertical, ``*``
    color bomb), or ``.`` for an empty cell."""
    grid = [row.split() for row in rows]
    cols = len(grid[0])
    tiles = {}
    for r, tokens in enumerate(grid):
        assert len(tokens) == cols, f"Row {r} has {len(tokens)} cells, expected {cols}"
        for c, token in enumerate(tokens):
            if token == ".":
                continue
            special = _SPECIAL_SUFFIX.get(token[-1], SpecialKind.NONE)
            kind = int(token[:-1] if special is not SpecialKind.NONE else token)
            tiles[(r, c)] = Tile(kind, special)
    return BoardSnapshot(len(grid), cols, tiles)


def base_rows(**overrides: str) -> List[str]:
    """BASE_ROWS with selected rows replaced, e.g. base_rows(r2="5 5 3 5 1 2 3 4")."""
    rows = list(BASE_ROWS)
    for key, value in overrides.items():
        rows[int(key[1:])] = value
    return rows


def column_major_kinds(rows: Sequence[str]) -> List[int]:
    """Kinds of a plain layout in refill order (column by column, top to bottom)."""
    grid = [row.split() for row in rows]
    return [int(grid[r][c]) for c in range(len(grid[0])) for r in range(len(grid))]


def build_game(
    rows: Sequence[str],
    *,
    palette_size: int = 5,
    seed: int = 1234,
) -> Tuple[EventBus, World, BoardSystem]:
    """World plus board system, loaded with the given layout."""
    bus = EventBus()
    world = create_world(rng=random.Random(seed))
    layout = parse_board(rows)
    board = BoardSystem(world, bus, layout.rows, layout.cols, palette_size=palette_size, seed=False)
    board.load(layout)
    return bus, world, board
