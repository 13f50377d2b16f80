from __future__ import annotations

import random

from esper import World

from dicefall.components.die import Die
from dicefall.components.die_color import DieColor
from dicefall.components.mode_config import ModeConfig, mode_config_for
from dicefall.constants import SPAWNED_WILD_SIDES
from dicefall.world import get_mode_config, resolve_rng


def _mode(world: World) -> ModeConfig:
    return get_mode_config(world) or mode_config_for(None)


def roll(sides: int, rng: random.Random) -> int:
    return rng.randint(1, max(1, sides))


def create_specific_die(
    world: World,
    sides: int,
    color: DieColor,
    *,
    number: int | None = None,
    is_wild: bool = False,
    is_black: bool = False,
    rng: random.Random | None = None,
) -> int:
    """Die entity with explicit properties; ``number`` is rolled when omitted."""
    if is_wild:
        number = 0
    elif number is None:
        number = roll(sides, resolve_rng(world, rng))
    return world.create_entity(
        Die(sides=sides, number=number, color=color, is_wild=is_wild, is_black=is_black)
    )


def create_wild_die(
    world: World,
    *,
    sides: int = SPAWNED_WILD_SIDES,
    color: DieColor | None = DieColor.GREEN,
    rng: random.Random | None = None,
) -> int:
    if color is None:
        color = resolve_rng(world, rng).choice(_mode(world).colors)
    return create_specific_die(world, sides, color, is_wild=True)


def create_random_die(
    world: World,
    *,
    wild_chance: float = 0.0,
    rng: random.Random | None = None,
) -> int:
    """Roll a die from the session's mode table.

    Black dice appear with the mode's black-die chance. Wild dice appear with
    the mode's wild chance plus ``wild_chance`` (the green booster bonus).
    """
    rng = resolve_rng(world, rng)
    mode = _mode(world)
    sides = rng.choice(mode.dice_types)
    color = rng.choice(mode.colors)
    if rng.random() < mode.black_die_chance:
        return create_specific_die(world, sides, color, is_black=True, rng=rng)
    if rng.random() < mode.wild_die_chance + max(0.0, wild_chance):
        return create_specific_die(world, sides, color, is_wild=True)
    return create_specific_die(world, sides, color, rng=rng)


def create_dice_for_piece(
    world: World,
    count: int,
    *,
    wild_chance: float = 0.0,
    rng: random.Random | None = None,
) -> list[int]:
    return [create_random_die(world, wild_chance=wild_chance, rng=rng) for _ in range(max(0, count))]
