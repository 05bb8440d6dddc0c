import random

from esper import World
from crush.components.turn_state import TurnState


def create_world(*, rng: random.Random | None = None) -> World:
    """Create an empty world with its random source and turn state.

    The board itself is created by BoardSystem so callers can pick its size.
    """
    world = World()
    setattr(world, "random", rng or random.Random())
    world.create_entity(TurnState())
    return world
