from dataclasses import dataclass

@dataclass(slots=True)
class ActiveSwitch:
    """Per-tile occupancy flag.

    active: True if the cell currently holds a tile; False if cleared/empty.
    Kind information lives in a separate TileType component.
    """
    active: bool = True
