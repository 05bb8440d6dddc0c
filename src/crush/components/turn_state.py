from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(slots=True)
class TurnState:
    """Tracks turn-level resolution state shared across systems."""

    resolving: bool = False
    cascade_depth: int = 0
    last_move: Optional[Tuple[Tuple[int, int], Tuple[int, int]]] = None
    moves_resolved: int = 0
