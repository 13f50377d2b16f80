from dataclasses import dataclass
from enum import Enum

from dicefall.components.die_color import DieColor


class BoosterEffectType(Enum):
    SCORE_MULTIPLIER = "score_multiplier"
    SLOW_FALL = "slow_fall"
    WILD_CHANCE = "wild_chance"
    EXTRA_TIME = "extra_time"
    CHAIN_BONUS = "chain_bonus"
    SIZE_BOOST = "size_boost"
    GRAVITY_DELAY = "gravity_delay"

    @property
    def event_based(self) -> bool:
        """True when duration counts pieces/uses instead of milliseconds."""
        return self in EVENT_BASED_EFFECTS


EVENT_BASED_EFFECTS = frozenset({BoosterEffectType.WILD_CHANCE, BoosterEffectType.EXTRA_TIME})


@dataclass(slots=True)
class Booster:
    """Temporary color-keyed modifier.

    ``duration`` is the full length granted on activation; ``remaining_duration``
    is decremented by elapsed milliseconds (time-based) or by explicit
    consumption (event-based).
    """

    color: DieColor
    effect_type: BoosterEffectType
    value: float
    duration: float
    remaining_duration: float | None = None
    active: bool = False

    def __post_init__(self) -> None:
        if self.remaining_duration is None:
            self.remaining_duration = self.duration

    @property
    def key(self) -> tuple[DieColor, BoosterEffectType]:
        return self.color, self.effect_type

    @property
    def event_based(self) -> bool:
        return self.effect_type.event_based

    def progress(self) -> float:
        if self.duration <= 0:
            return 0.0
        return max(0.0, self.remaining_duration / self.duration)

    def extend(self, additional: float) -> None:
        self.remaining_duration += additional
