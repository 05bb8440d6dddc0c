from dataclasses import dataclass
from enum import Enum


class SpecialKind(Enum):
    NONE = "none"
    STRIPED_HORIZONTAL = "striped_horizontal"  # clears its row
    STRIPED_VERTICAL = "striped_vertical"      # clears its column
    COLOR_BOMB = "color_bomb"


@dataclass(slots=True)
class Special:
    """Per-tile special effect. Empty cells always carry SpecialKind.NONE."""
    kind: SpecialKind = SpecialKind.NONE
