"""Difficulty mode configuration stored on a singleton entity."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from dicefall.components.die_color import DieColor


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"
    ZEN = "zen"


@dataclass(slots=True)
class ModeConfig:
    """Rules that vary per difficulty: which dice spawn and how the run ends."""
    difficulty: Difficulty
    dice_types: Tuple[int, ...]
    colors: Tuple[DieColor, ...]
    black_die_chance: float = 0.0
    fall_speed: int = 800
    score_multiplier: float = 1.0
    has_game_over: bool = True
    wild_die_chance: float = 0.0
    allowed_sides: Tuple[int, ...] = field(default=(4, 6, 8, 10, 12, 20), repr=False)

    def __post_init__(self) -> None:
        # Unknown side counts are dropped; an empty result falls back to d6.
        sides = tuple(s for s in self.dice_types if s in self.allowed_sides)
        self.dice_types = sides or (6,)
        if not self.colors:
            self.colors = tuple(DieColor)

    @property
    def max_sides(self) -> int:
        return max(self.dice_types)


_BASE_COLORS = (DieColor.RED, DieColor.BLUE, DieColor.GREEN)

MODE_CONFIGS = {
    Difficulty.EASY: dict(
        dice_types=(4, 6),
        colors=_BASE_COLORS,
        black_die_chance=0.0,
        fall_speed=1000,
        score_multiplier=1.0,
    ),
    Difficulty.MEDIUM: dict(
        dice_types=(4, 6, 8, 10),
        colors=_BASE_COLORS + (DieColor.YELLOW,),
        black_die_chance=0.0,
        fall_speed=800,
        score_multiplier=1.1,
    ),
    Difficulty.HARD: dict(
        dice_types=(4, 6, 8, 10, 12),
        colors=_BASE_COLORS + (DieColor.YELLOW, DieColor.PURPLE),
        black_die_chance=0.01,
        fall_speed=600,
        score_multiplier=1.25,
    ),
    Difficulty.EXPERT: dict(
        dice_types=(4, 6, 8, 10, 12, 20),
        colors=_BASE_COLORS + (DieColor.YELLOW, DieColor.PURPLE, DieColor.ORANGE),
        black_die_chance=0.02,
        fall_speed=400,
        score_multiplier=1.5,
    ),
    Difficulty.ZEN: dict(
        dice_types=(4, 6, 8, 10),
        colors=_BASE_COLORS + (DieColor.YELLOW,),
        black_die_chance=0.0,
        fall_speed=1200,
        score_multiplier=0.9,
        has_game_over=False,
    ),
}


def mode_config_for(difficulty: Difficulty | str | None) -> ModeConfig:
    """Build the config for a difficulty; unknown or missing values use medium."""
    if isinstance(difficulty, str):
        try:
            difficulty = Difficulty(difficulty)
        except ValueError:
            difficulty = Difficulty.MEDIUM
    if difficulty is None:
        difficulty = Difficulty.MEDIUM
    return ModeConfig(difficulty=difficulty, **MODE_CONFIGS[difficulty])
