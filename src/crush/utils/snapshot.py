from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from crush.components.special import SpecialKind

Position = Tuple[int, int]

_SPECIAL_MARKS = {
    SpecialKind.NONE: " ",
    SpecialKind.STRIPED_HORIZONTAL: "-",
    SpecialKind.STRIPED_VERTICAL: "|",
    SpecialKind.COLOR_BOMB: "*",
}


@dataclass(slots=True, frozen=True)
class Tile:
    kind: int
    special: SpecialKind = SpecialKind.NONE


@dataclass(slots=True, frozen=True)
class BoardSnapshot:
    """Read-only copy of the board used by the analysis passes.

    Only occupied cells appear in ``tiles``; a missing position is an empty cell.
    """

    rows: int
    cols: int
    tiles: Dict[Position, Tile] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash((self.rows, self.cols, frozenset(self.tiles.items())))

    def in_bounds(self, pos: Position) -> bool:
        row, col = pos
        return 0 <= row < self.rows and 0 <= col < self.cols

    def tile_at(self, pos: Position) -> Optional[Tile]:
        return self.tiles.get(pos)

    def kind_at(self, pos: Position) -> Optional[int]:
        tile = self.tiles.get(pos)
        return tile.kind if tile is not None else None

    def special_at(self, pos: Position) -> SpecialKind:
        tile = self.tiles.get(pos)
        return tile.special if tile is not None else SpecialKind.NONE

    def positions(self) -> Iterator[Position]:
        """Every cell in row-major order, occupied or not."""
        for row in range(self.rows):
            for col in range(self.cols):
                yield (row, col)

    def occupied(self) -> List[Position]:
        return sorted(self.tiles)

    def swapped(self, a: Position, b: Position) -> BoardSnapshot:
        tiles = self.tiles.copy()
        tile_a = tiles.pop(a, None)
        tile_b = tiles.pop(b, None)
        if tile_b is not None:
            tiles[a] = tile_b
        if tile_a is not None:
            tiles[b] = tile_a
        return BoardSnapshot(self.rows, self.cols, tiles)

    def format(self) -> str:
        lines: List[str] = []
        for row in range(self.rows):
            cells: List[str] = []
            for col in range(self.cols):
                tile = self.tiles.get((row, col))
                if tile is None:
                    cells.append(". ")
                else:
                    cells.append(f"{tile.kind}{_SPECIAL_MARKS[tile.special]}")
            lines.append(" ".join(cells).rstrip())
        return "\n".join(lines)
