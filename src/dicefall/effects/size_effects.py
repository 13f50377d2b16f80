"""Size-tier table for match clear effects.

Each tier applies from its ``min_size`` up to the next tier's threshold, so a
size-6 match resolves as ``SPAWN_WILD`` and a size-8 match as ``AREA_CLEAR``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SizeEffectType(Enum):
    STANDARD = "standard"
    LINE_CLEAR = "line_clear"
    SPAWN_WILD = "spawn_wild"
    AREA_CLEAR = "area_clear"
    GRID_CLEAR = "grid_clear"


@dataclass(frozen=True, slots=True)
class SizeEffect:
    type: SizeEffectType
    min_size: int
    description: str


# Highest threshold first.
SIZE_EFFECT_TIERS: tuple[SizeEffect, ...] = (
    SizeEffect(SizeEffectType.GRID_CLEAR, 9, "Clear entire grid"),
    SizeEffect(SizeEffectType.AREA_CLEAR, 7, "Clear 7x7 area"),
    SizeEffect(SizeEffectType.SPAWN_WILD, 5, "Spawn wild die"),
    SizeEffect(SizeEffectType.LINE_CLEAR, 4, "Clear row or column"),
    SizeEffect(SizeEffectType.STANDARD, 0, "Clear matched dice"),
)


def size_effect_for(size: int) -> SizeEffect:
    for tier in SIZE_EFFECT_TIERS:
        if size >= tier.min_size:
            return tier
    return SIZE_EFFECT_TIERS[-1]
