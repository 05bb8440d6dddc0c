from dataclasses import dataclass

from crush.constants import PALETTE_SIZE

@dataclass(slots=True)
class Board:
    rows: int
    cols: int
    palette_size: int = PALETTE_SIZE
