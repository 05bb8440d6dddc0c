from dataclasses import dataclass

@dataclass(slots=True)
class TileType:
    """Per-tile colored kind (1..palette_size).

    Empty cells keep their last kind here; occupancy is handled by ActiveSwitch.
    """
    kind: int
