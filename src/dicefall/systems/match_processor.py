from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Sequence

from esper import World

from dicefall.components.booster import Booster
from dicefall.components.die import Die
from dicefall.components.die_color import DieColor
from dicefall.components.grid_position import GridPosition
from dicefall.constants import AREA_CLEAR_SIZE, DEFAULT_MAX_SIDES
from dicefall.effects.factory import create_color_booster
from dicefall.effects.size_effects import SizeEffect, SizeEffectType
from dicefall.events.bus import (
    EVENT_BLACK_DIE_MATCHED,
    EVENT_MATCH_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_ULTIMATE_COMBO,
    EVENT_WILD_DIE_DEFERRED,
    EVENT_WILD_DIE_SPAWNED,
    EventBus,
)
from dicefall.factories.dice import create_wild_die
from dicefall.systems.booster_manager import BoosterManager
from dicefall.systems.grid import Grid
from dicefall.systems.match_group import MatchGroup
from dicefall.utils.score_math import sanitize_points
from dicefall.world import get_mode_config, resolve_rng

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MatchProcessResult:
    matches_found: bool = False
    total_score: int = 0
    cleared_dice: List[Die] = field(default_factory=list)
    activated_boosters: List[Booster] = field(default_factory=list)
    size_effects: List[SizeEffect] = field(default_factory=list)
    ultimate_combo_triggered: bool = False
    black_die_triggered: bool = False
    # Number of wild dice that found no empty cell and should ride on the next piece.
    wild_spawn_deferred: int = 0
    spawned_wild_entities: List[int] = field(default_factory=list)
    matches: List[MatchGroup] = field(default_factory=list)


class MatchProcessor:
    """Resolves one detection pass: boosters, Ultimate Combo, scoring and clear effects."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        grid: Grid,
        booster_manager: BoosterManager,
        *,
        max_sides: int | None = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.grid = grid
        self.booster_manager = booster_manager
        self._max_sides = max_sides
        self._effect_handlers: Dict[SizeEffectType, Callable[[MatchGroup, MatchProcessResult], List[int]]] = {
            SizeEffectType.STANDARD: self._apply_standard_clear,
            SizeEffectType.LINE_CLEAR: self._apply_line_clear,
            SizeEffectType.SPAWN_WILD: self._apply_wild_spawn,
            SizeEffectType.AREA_CLEAR: self._apply_area_clear,
            SizeEffectType.GRID_CLEAR: self._apply_grid_clear,
        }

    @property
    def max_sides(self) -> int:
        if self._max_sides is not None:
            return self._max_sides
        config = get_mode_config(self.world)
        return config.max_sides if config is not None else DEFAULT_MAX_SIDES

    def process_matches(self) -> MatchProcessResult:
        return self.process_groups(self.grid.detect_matches())

    def process_groups(self, groups: Sequence[MatchGroup]) -> MatchProcessResult:
        result = MatchProcessResult()
        if not groups:
            return result
        result.matches_found = True
        for group in groups:
            self._process_single_match(group, result)
        return result

    def _process_single_match(self, group: MatchGroup, result: MatchProcessResult) -> None:
        result.matches.append(group)
        self.event_bus.emit(
            EVENT_MATCH_FOUND,
            positions=list(group.positions),
            size=group.size,
            matched_number=group.matched_number,
        )

        # Black dice wipe boosters before this match is scored.
        has_black = group.has_black_dice
        if has_black:
            result.black_die_triggered = True
            removed = self.booster_manager.remove_all_boosters()
            self.event_bus.emit(EVENT_BLACK_DIE_MATCHED, positions=list(group.positions), removed=removed)

        if group.is_ultimate_combo:
            result.ultimate_combo_triggered = True
            upgraded = self.upgrade_all_dice_to_max()
            logger.info("Ultimate Combo: upgraded %d dice to d%d", upgraded, self.max_sides)
            self.event_bus.emit(
                EVENT_ULTIMATE_COMBO,
                positions=list(group.positions),
                upgraded=upgraded,
                max_sides=self.max_sides,
            )

        size_effect = group.size_effect
        result.size_effects.append(size_effect)

        score = sanitize_points(self.booster_manager.apply_score_multipliers(group.base_score))
        result.total_score += score

        if not has_black:
            color = group.dominant_color
            if color is not None:
                result.activated_boosters.append(self._activate_booster(color))

        cleared_entities = self._effect_handlers[size_effect.type](group, result)
        result.cleared_dice.extend(self._destroy(cleared_entities))
        self.event_bus.emit(
            EVENT_MATCH_CLEARED,
            positions=list(group.positions),
            effect=size_effect.type,
            score=score,
            cleared=len(cleared_entities),
        )

    def _activate_booster(self, color: DieColor) -> Booster:
        booster = create_color_booster(color)
        self.booster_manager.activate_booster(booster)
        return booster

    def upgrade_all_dice_to_max(self) -> int:
        max_sides = self.max_sides
        upgraded = 0
        for y in range(self.grid.height):
            for x in range(self.grid.width):
                die = self.grid.get_die(x, y)
                if die is None or die.is_wild or die.is_black:
                    continue
                die.upgrade_to_max(max_sides)
                upgraded += 1
        return upgraded

    def _destroy(self, entities: Sequence[int]) -> List[Die]:
        snapshots: List[Die] = []
        for entity in entities:
            if not self.world.entity_exists(entity):
                continue
            die = self.world.try_component(entity, Die)
            if die is not None:
                snapshots.append(replace(die))
            self.world.delete_entity(entity, immediate=True)
        return snapshots

    # ------------------------------------------------------------------
    # Size effects
    # ------------------------------------------------------------------
    def _matched_positions(self, group: MatchGroup) -> List[GridPosition]:
        # An earlier effect in the same pass may already have removed some of these dice.
        if not group.entities:
            return list(group.positions)
        return [
            pos
            for pos, entity in zip(group.positions, group.entities)
            if self.grid.get_entity(pos.x, pos.y) == entity
        ]

    def _apply_standard_clear(self, group: MatchGroup, result: MatchProcessResult) -> List[int]:
        return self.grid.clear_cells(self._matched_positions(group))

    def _apply_line_clear(self, group: MatchGroup, result: MatchProcessResult) -> List[int]:
        center = group.center_position
        if group.is_horizontal:
            return self.grid.clear_row(center.y)
        return self.grid.clear_column(center.x)

    def _apply_wild_spawn(self, group: MatchGroup, result: MatchProcessResult) -> List[int]:
        cleared = self.grid.clear_cells(self._matched_positions(group))
        self.spawn_wild_die(result)
        return cleared

    def _apply_area_clear(self, group: MatchGroup, result: MatchProcessResult) -> List[int]:
        center = group.center_position
        return self.grid.clear_area(center.x, center.y, AREA_CLEAR_SIZE)

    def _apply_grid_clear(self, group: MatchGroup, result: MatchProcessResult) -> List[int]:
        return self.grid.clear_all()

    def spawn_wild_die(self, result: MatchProcessResult) -> int | None:
        empty = [
            GridPosition(x, y)
            for y in range(self.grid.height)
            for x in range(self.grid.width)
            if self.grid.is_empty(x, y)
        ]
        if not empty:
            result.wild_spawn_deferred += 1
            self.event_bus.emit(EVENT_WILD_DIE_DEFERRED)
            return None
        position = resolve_rng(self.world).choice(empty)
        entity = create_wild_die(self.world)
        self.grid.set_die(position.x, position.y, entity)
        result.spawned_wild_entities.append(entity)
        self.event_bus.emit(EVENT_WILD_DIE_SPAWNED, entity=entity, position=position)
        return entity
