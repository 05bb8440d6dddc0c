from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Set

from crush.utils.snapshot import Position


@dataclass(slots=True)
class ClearSet:
    """Cells scheduled for clearing during one resolution pass."""

    rows: int
    cols: int
    cells: Set[Position] = field(default_factory=set)

    def mark(self, pos: Position) -> bool:
        """Mark pos; return True when it was not already marked."""
        row, col = pos
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            return False
        if pos in self.cells:
            return False
        self.cells.add(pos)
        return True

    def mark_all(self, positions: Iterable[Position]) -> int:
        added = 0
        for pos in positions:
            if self.mark(pos):
                added += 1
        return added

    def unmark(self, pos: Position) -> None:
        self.cells.discard(pos)

    def positions(self) -> List[Position]:
        return sorted(self.cells)

    def copy(self) -> ClearSet:
        return ClearSet(self.rows, self.cols, set(self.cells))

    def __contains__(self, pos: object) -> bool:
        return pos in self.cells

    def __iter__(self) -> Iterator[Position]:
        return iter(self.positions())

    def __len__(self) -> int:
        return len(self.cells)

    def __bool__(self) -> bool:
        return bool(self.cells)
