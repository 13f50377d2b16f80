from __future__ import annotations

import math
from typing import Any


def sanitize_score(value: Any) -> float:
    """Return ``value`` as a finite, non-negative float; anything else becomes 0."""

    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(numeric) or numeric < 0:
        return 0.0
    return numeric


def sanitize_points(value: Any) -> int:
    """Whole-point variant of ``sanitize_score`` (floors the result)."""

    return int(math.floor(sanitize_score(value)))


def base_chain_multiplier(cascade_index: int) -> int:
    """floor(log2(i)) for a 1-indexed cascade iteration; 0 for i <= 0."""

    if cascade_index <= 0:
        return 0
    return int(cascade_index).bit_length() - 1


def final_chain_multiplier(modified: float) -> int:
    """Chain multiplier actually applied to an iteration; never below 1."""

    if not math.isfinite(modified):
        return 1
    return max(1, int(math.floor(modified)))


def cascade_iteration_score(match_score: Any, multiplier: int, ultimate_combo: bool, combo_multiplier: int) -> int:
    score = sanitize_score(match_score) * multiplier
    if ultimate_combo:
        score *= combo_multiplier
    return sanitize_points(score)
