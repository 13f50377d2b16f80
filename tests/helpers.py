from __future__ import annotations

import random
from typing import Iterable, Sequence

from esper import World

from dicefall.components.die_color import DieColor
from dicefall.events.bus import EventBus
from dicefall.factories.dice import create_specific_die
from dicefall.systems.booster_manager import BoosterManager
from dicefall.systems.cascade import CascadeManager
from dicefall.systems.grid import Grid
from dicefall.systems.match_processor import MatchProcessor
from dicefall.world import create_world


def make_board(
    width: int = 10,
    height: int = 20,
    *,
    difficulty: str = "medium",
    cohesive_pieces: bool = False,
    seed: int = 0,
) -> tuple[EventBus, World, Grid]:
    bus = EventBus()
    world = create_world(bus, difficulty, rng=random.Random(seed))
    grid = Grid(world, width, height, cohesive_pieces=cohesive_pieces)
    return bus, world, grid


def make_engine(width: int = 10, height: int = 20, **kwargs):
    """Board plus booster, match and cascade managers sharing one bus."""

    max_cascades = kwargs.pop("max_cascades", 10)
    bus, world, grid = make_board(width, height, **kwargs)
    boosters = BoosterManager(world, bus)
    processor = MatchProcessor(world, bus, grid, boosters)
    cascade = CascadeManager(world, bus, grid, processor, boosters, max_cascades=max_cascades)
    return bus, world, grid, boosters, processor, cascade


def put_die(
    world: World,
    grid: Grid,
    x: int,
    y: int,
    number: int = 1,
    *,
    sides: int = 6,
    color: DieColor = DieColor.RED,
    wild: bool = False,
    black: bool = False,
) -> int:
    entity = create_specific_die(world, sides, color, number=number, is_wild=wild, is_black=black)
    assert grid.set_die(x, y, entity)
    return entity


def put_row(world: World, grid: Grid, y: int, numbers: Sequence[int | str | None], x0: int = 0, **kwargs) -> list[int]:
    """Place one die per number along row ``y``; None leaves a gap, "W" places a wild die."""

    placed: list[int] = []
    for offset, number in enumerate(numbers):
        if number is None:
            continue
        if number == "W":
            placed.append(put_die(world, grid, x0 + offset, y, 0, wild=True, **kwargs))
        else:
            placed.append(put_die(world, grid, x0 + offset, y, number, **kwargs))
    return placed


def positions_of(groups: Iterable) -> list[set[tuple[int, int]]]:
    return [{(p.x, p.y) for p in group.positions} for group in groups]
