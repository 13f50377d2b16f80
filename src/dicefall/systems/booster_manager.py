from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from esper import World

from dicefall.components.booster import Booster, BoosterEffectType
from dicefall.components.die_color import DIE_COLOR_HEX, DieColor
from dicefall.effects.factory import create_color_booster, ensure_default_boosters_registered
from dicefall.effects.registry import default_booster_registry
from dicefall.events.bus import (
    EVENT_BOOSTER_ACTIVATED,
    EVENT_BOOSTER_EXPIRED,
    EVENT_BOOSTER_EXTENDED,
    EVENT_PIECE_SPAWNED,
    EVENT_TICK,
    EventBus,
)

logger = logging.getLogger(__name__)


def _is_finite_number(value: Any) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


class BoosterManager:
    """Owns the active booster entities for one session.

    At most one booster exists per ``(color, effect_type)``; activating a
    duplicate extends the live one. Time-based boosters decay through
    ``update`` (driven by ``EVENT_TICK``), event-based ones through
    ``consume_piece_based_boosters`` (driven by ``EVENT_PIECE_SPAWNED``).
    """

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self._entities: Dict[Tuple[DieColor, BoosterEffectType], int] = {}
        ensure_default_boosters_registered()
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)
        self.event_bus.subscribe(EVENT_PIECE_SPAWNED, self.on_piece_spawned)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def on_tick(self, sender, **kwargs):
        dt = kwargs.get("dt", 0.0)
        if not _is_finite_number(dt):
            return
        self.update(float(dt) * 1000.0)

    def on_piece_spawned(self, sender, **kwargs):
        self.consume_piece_based_boosters()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def activate_booster(self, booster: Booster) -> Optional[int]:
        """Activate ``booster`` or extend the matching live one.

        Returns the booster entity, or None when the booster is malformed and
        was dropped on arrival.
        """
        if not self._is_well_formed(booster):
            booster.active = False
            logger.debug("Dropping malformed booster %s", booster)
            return None
        existing = self._entities.get(booster.key)
        if existing is not None:
            current = self.world.component_for_entity(existing, Booster)
            current.extend(booster.duration)
            logger.debug(
                "Extended %s %s booster to %.0f",
                current.color.value,
                current.effect_type.value,
                current.remaining_duration,
            )
            self.event_bus.emit(
                EVENT_BOOSTER_EXTENDED,
                entity=existing,
                color=current.color,
                effect_type=current.effect_type,
                remaining=current.remaining_duration,
            )
            return existing
        booster.active = True
        booster.remaining_duration = booster.duration
        entity = self.world.create_entity(booster)
        self._entities[booster.key] = entity
        logger.debug("Activated %s %s booster", booster.color.value, booster.effect_type.value)
        self.event_bus.emit(
            EVENT_BOOSTER_ACTIVATED,
            entity=entity,
            color=booster.color,
            effect_type=booster.effect_type,
        )
        return entity

    def activate_color_booster(self, color: DieColor) -> Optional[int]:
        return self.activate_booster(create_color_booster(color))

    def update(self, delta_ms: float) -> None:
        """Advance time-based boosters by ``delta_ms`` milliseconds."""
        if not _is_finite_number(delta_ms) or delta_ms <= 0:
            return
        for entity, booster in self._live():
            if booster.event_based:
                continue
            booster.remaining_duration -= delta_ms
            if booster.remaining_duration <= 0:
                self._expire(entity, booster, reason="timeout")

    def consume_piece_based_boosters(self) -> None:
        """Spend one use of every event-based booster."""
        for entity, booster in self._live():
            if not booster.event_based:
                continue
            booster.remaining_duration -= 1
            if booster.remaining_duration <= 0:
                self._expire(entity, booster, reason="consumed")

    def remove_booster(self, color: DieColor, effect_type: BoosterEffectType) -> bool:
        entity = self._entities.get((color, effect_type))
        if entity is None:
            return False
        booster = self.world.component_for_entity(entity, Booster)
        self._expire(entity, booster, reason="removed")
        return True

    def remove_all_boosters(self) -> int:
        """Drop every active booster; returns how many were removed."""
        live = self._live()
        for entity, booster in live:
            self._expire(entity, booster, reason="cleared")
        if live:
            logger.debug("Removed %d active boosters", len(live))
        return len(live)

    def clear(self) -> None:
        self.remove_all_boosters()

    def _expire(self, entity: int, booster: Booster, *, reason: str) -> None:
        booster.active = False
        self._entities.pop(booster.key, None)
        if self.world.entity_exists(entity):
            self.world.delete_entity(entity, immediate=True)
        self.event_bus.emit(
            EVENT_BOOSTER_EXPIRED,
            entity=entity,
            color=booster.color,
            effect_type=booster.effect_type,
            reason=reason,
        )

    def _live(self) -> List[Tuple[int, Booster]]:
        return [
            (entity, self.world.component_for_entity(entity, Booster))
            for entity in list(self._entities.values())
        ]

    @staticmethod
    def _is_well_formed(booster: Booster) -> bool:
        if not _is_finite_number(booster.value) or not _is_finite_number(booster.duration):
            return False
        return booster.duration > 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_booster_active(self, color: DieColor, effect_type: BoosterEffectType) -> bool:
        return (color, effect_type) in self._entities

    def get_booster(self, color: DieColor, effect_type: BoosterEffectType) -> Booster | None:
        entity = self._entities.get((color, effect_type))
        if entity is None:
            return None
        return self.world.component_for_entity(entity, Booster)

    def get_active_boosters(self) -> List[Booster]:
        return [booster for _, booster in self._live() if booster.active]

    def _first_value(self, effect_type: BoosterEffectType, default: float) -> float:
        for booster in self.get_active_boosters():
            if booster.effect_type is effect_type:
                return booster.value
        return default

    def apply_score_multipliers(self, score: float) -> int:
        multiplied = score
        for booster in self.get_active_boosters():
            if booster.effect_type is BoosterEffectType.SCORE_MULTIPLIER:
                multiplied *= booster.value
        if not _is_finite_number(multiplied):
            return 0
        return int(math.floor(multiplied))

    def score_multiplier_product(self) -> float:
        product = 1.0
        for booster in self.get_active_boosters():
            if booster.effect_type is BoosterEffectType.SCORE_MULTIPLIER:
                product *= booster.value
        return product

    def apply_chain_bonus(self, multiplier: float) -> float:
        modified = multiplier
        for booster in self.get_active_boosters():
            if booster.effect_type is BoosterEffectType.CHAIN_BONUS:
                modified += booster.value
        return modified

    def get_fall_speed_modifier(self) -> float:
        return self._first_value(BoosterEffectType.SLOW_FALL, 1.0)

    def get_wild_chance_modifier(self) -> float:
        return self._first_value(BoosterEffectType.WILD_CHANCE, 0.0)

    def get_size_boost_modifier(self) -> float:
        return self._first_value(BoosterEffectType.SIZE_BOOST, 0)

    def get_gravity_delay(self) -> float:
        return self._first_value(BoosterEffectType.GRAVITY_DELAY, 0)

    def get_hud_data(self) -> List[Dict[str, Any]]:
        hud: List[Dict[str, Any]] = []
        for booster in self.get_active_boosters():
            if default_booster_registry.has(booster.color):
                definition = default_booster_registry.get(booster.color)
                name, description = definition.display_name, definition.description
            else:
                name, description = f"{booster.color.value.title()} Booster", ""
            hud.append(
                {
                    "color": booster.color,
                    "icon": f"booster-{booster.color.value}",
                    "name": name,
                    "description": description,
                    "progress": booster.progress(),
                    "display_color": DIE_COLOR_HEX[booster.color],
                }
            )
        return hud

    def debug_string(self) -> str:
        parts = [
            f"{b.color.value}:{b.effect_type.value}({math.ceil(b.remaining_duration)})"
            for b in self.get_active_boosters()
        ]
        return f"ActiveBoosters({len(parts)}): [{', '.join(parts)}]"
