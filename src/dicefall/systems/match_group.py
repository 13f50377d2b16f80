from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dicefall.components.die import Die
from dicefall.components.die_color import DieColor
from dicefall.components.grid_position import GridPosition
from dicefall.constants import AREA_CLEAR_SIZE, MIN_MATCH_SIZE
from dicefall.effects.size_effects import SizeEffect, size_effect_for


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(slots=True)
class MatchGroup:
    """Connected set of mutually matching dice found by ``Grid.detect_matches``.

    ``dice``, ``positions`` and ``entities`` are parallel lists in flood-fill
    order. The dice are the live components, so effects that mutate dice on the
    board (Ultimate Combo upgrades) are visible here until the group is cleared.
    """

    dice: List[Die]
    positions: List[GridPosition]
    matched_number: int
    entities: List[int] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.dice)

    @property
    def size_effect(self) -> SizeEffect:
        return size_effect_for(self.size)

    @property
    def color_counts(self) -> Dict[DieColor, int]:
        return dict(Counter(d.color for d in self.dice if not d.is_black and not d.is_wild))

    @property
    def dominant_color(self) -> Optional[DieColor]:
        """Most frequent color among plain dice; ties go to the lowest ordinal."""
        counts = self.color_counts
        if not counts:
            return None
        return min(counts, key=lambda color: (-counts[color], color.ordinal))

    @property
    def is_ultimate_combo(self) -> bool:
        return self.size >= MIN_MATCH_SIZE and all(d.is_wild for d in self.dice)

    @property
    def has_black_dice(self) -> bool:
        return any(d.is_black for d in self.dice)

    @property
    def has_wild_dice(self) -> bool:
        return any(d.is_wild for d in self.dice)

    @property
    def center_position(self) -> GridPosition:
        if not self.positions:
            return GridPosition(0, 0)
        cx = sum(p.x for p in self.positions) / len(self.positions)
        cy = sum(p.y for p in self.positions) / len(self.positions)
        return GridPosition(_round_half_up(cx), _round_half_up(cy))

    @property
    def is_horizontal(self) -> bool:
        """True when the group spreads at least as far across as it does down."""
        if not self.positions:
            return True
        xs = [p.x for p in self.positions]
        ys = [p.y for p in self.positions]
        return (max(xs) - min(xs)) >= (max(ys) - min(ys))

    @property
    def base_score(self) -> int:
        total_sides = sum(d.sides for d in self.dice)
        return total_sides * self.size * self.matched_number

    def line_clear_positions(self, width: int, height: int) -> List[GridPosition]:
        center = self.center_position
        if self.is_horizontal:
            return [GridPosition(x, center.y) for x in range(width)]
        return [GridPosition(center.x, y) for y in range(height)]

    def area_clear_positions(self, width: int, height: int, size: int = AREA_CLEAR_SIZE) -> List[GridPosition]:
        center = self.center_position
        half = size // 2
        return [
            GridPosition(x, y)
            for y in range(max(0, center.y - half), min(height, center.y + half + 1))
            for x in range(max(0, center.x - half), min(width, center.x + half + 1))
        ]

    @staticmethod
    def grid_clear_positions(width: int, height: int) -> List[GridPosition]:
        return [GridPosition(x, y) for y in range(height) for x in range(width)]
