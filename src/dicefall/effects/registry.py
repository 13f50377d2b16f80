from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from dicefall.components.booster import Booster, BoosterEffectType
from dicefall.components.die_color import DieColor


@dataclass(frozen=True, slots=True)
class BoosterDefinition:
    """Static description of the booster a color grants when it dominates a match.

    ``duration`` is milliseconds for time-based effects and a piece/use count
    for event-based ones.
    """

    color: DieColor
    effect_type: BoosterEffectType
    value: float
    duration: float
    display_name: str = ""
    description: str = ""

    def create(self) -> Booster:
        return Booster(
            color=self.color,
            effect_type=self.effect_type,
            value=self.value,
            duration=self.duration,
        )


class BoosterRegistry:
    """In-memory collection of booster definitions keyed by color."""

    def __init__(self) -> None:
        self._definitions: dict[DieColor, BoosterDefinition] = {}

    def register(self, definition: BoosterDefinition) -> None:
        if definition.color in self._definitions:
            raise ValueError(f"Booster for '{definition.color.value}' already registered")
        self._definitions[definition.color] = definition

    def get(self, color: DieColor) -> BoosterDefinition:
        try:
            return self._definitions[color]
        except KeyError as exc:
            raise KeyError(f"Booster for '{color.value}' is not registered") from exc

    def has(self, color: DieColor) -> bool:
        return color in self._definitions

    def all(self) -> Iterable[BoosterDefinition]:
        return tuple(self._definitions.values())


default_booster_registry = BoosterRegistry()


def register_booster(definition: BoosterDefinition) -> None:
    default_booster_registry.register(definition)
