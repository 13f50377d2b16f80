import random

from esper import World

from dicefall.components.mode_config import Difficulty, ModeConfig, mode_config_for
from dicefall.effects.factory import ensure_default_boosters_registered
from dicefall.events.bus import EventBus


def create_world(
    event_bus: EventBus,
    difficulty: Difficulty | str | None = Difficulty.MEDIUM,
    *,
    rng: random.Random | None = None,
) -> World:
    world = World()
    setattr(world, "random", rng or random.Random())

    # Mode rules live on a singleton entity, like the board dimensions.
    mode_entity = world.create_entity()
    world.add_component(mode_entity, mode_config_for(difficulty))

    ensure_default_boosters_registered()
    return world


def get_mode_config(world: World) -> ModeConfig | None:
    for _, config in world.get_component(ModeConfig):
        return config
    return None


def resolve_rng(world: World, rng: random.Random | None = None) -> random.Random:
    candidate_rng = rng or getattr(world, "random", None)
    if isinstance(candidate_rng, random.Random):
        return candidate_rng
    return random.Random()
