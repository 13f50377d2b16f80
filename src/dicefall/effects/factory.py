from __future__ import annotations

from dicefall.components.booster import Booster, BoosterEffectType
from dicefall.components.die_color import DieColor
from dicefall.effects.registry import BoosterDefinition, default_booster_registry, register_booster


def ensure_default_boosters_registered() -> None:
    """Register the color booster catalog if it is not already present."""

    def _register(definition: BoosterDefinition) -> None:
        if default_booster_registry.has(definition.color):
            return
        register_booster(definition)

    _register(
        BoosterDefinition(
            color=DieColor.RED,
            effect_type=BoosterEffectType.SCORE_MULTIPLIER,
            value=1.5,
            duration=10000,
            display_name="Red Booster",
            description="1.5x score multiplier.",
        )
    )
    _register(
        BoosterDefinition(
            color=DieColor.BLUE,
            effect_type=BoosterEffectType.SLOW_FALL,
            value=0.5,
            duration=15000,
            display_name="Blue Booster",
            description="Pieces fall at half speed.",
        )
    )
    _register(
        BoosterDefinition(
            color=DieColor.GREEN,
            effect_type=BoosterEffectType.WILD_CHANCE,
            value=0.1,
            duration=3,
            display_name="Green Booster",
            description="+10% wild die chance for the next 3 pieces.",
        )
    )
    _register(
        BoosterDefinition(
            color=DieColor.YELLOW,
            effect_type=BoosterEffectType.EXTRA_TIME,
            value=5000,
            duration=1,
            display_name="Yellow Booster",
            description="+5s of time, single use.",
        )
    )
    _register(
        BoosterDefinition(
            color=DieColor.PURPLE,
            effect_type=BoosterEffectType.CHAIN_BONUS,
            value=2,
            duration=8000,
            display_name="Purple Booster",
            description="+2 chain multiplier on cascades.",
        )
    )
    _register(
        BoosterDefinition(
            color=DieColor.ORANGE,
            effect_type=BoosterEffectType.SIZE_BOOST,
            value=1,
            duration=5000,
            display_name="Orange Booster",
            description="+1 size boost.",
        )
    )
    _register(
        BoosterDefinition(
            color=DieColor.CYAN,
            effect_type=BoosterEffectType.GRAVITY_DELAY,
            value=2000,
            duration=12000,
            display_name="Cyan Booster",
            description="Delays gravity by 2s.",
        )
    )


def create_color_booster(color: DieColor) -> Booster:
    """Fresh, inactive booster instance for ``color``."""
    ensure_default_boosters_registered()
    return default_booster_registry.get(color).create()
