from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SWAP REQUESTS
# ============================================================================
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"      # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_VALID = "tile_swap_valid"          # payload: src=(r,c), dst=(r,c), bomb=bool
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=(r,c), dst=(r,c), reason=str


# ============================================================================
# RESOLUTION PIPELINE
# ============================================================================
EVENT_MATCH_FOUND = "match_found"                  # payload: positions=[(r,c),...], size=int, depth=int
EVENT_SPECIAL_CREATED = "special_created"          # payload: position=(r,c), special=SpecialKind, depth=int
EVENT_MATCH_CLEARED = "match_cleared"              # payload: positions=[(r,c),...], kinds=[(r,c,kind),...], depth=int
EVENT_GRAVITY_APPLIED = "gravity_applied"          # payload: moves=[GravityMove,...], depth=int
EVENT_REFILL_COMPLETED = "refill_completed"        # payload: new_tiles=[(r,c),...], depth=int
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, cleared=int, board=BoardSnapshot
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: depth=int, total_cleared=int


# ============================================================================
# TURN & BOARD LIFECYCLE
# ============================================================================
EVENT_TURN_RESOLVED = "turn_resolved"              # payload: src=(r,c), dst=(r,c), result=TurnResult
EVENT_BOARD_RESET = "board_reset"                  # payload: reason=str, positions=[(r,c),...]
