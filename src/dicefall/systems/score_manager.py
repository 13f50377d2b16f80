from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dicefall.constants import ULTIMATE_COMBO_MULTIPLIER
from dicefall.events.bus import EVENT_SCORE_ADDED, EventBus
from dicefall.systems.booster_manager import BoosterManager
from dicefall.systems.cascade import CascadeSequenceResult
from dicefall.systems.match_group import MatchGroup
from dicefall.utils.score_math import (
    base_chain_multiplier,
    cascade_iteration_score,
    final_chain_multiplier,
    sanitize_points,
    sanitize_score,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    base_score: int
    cascade_score: int
    chain_multiplier: int
    ultimate_combo_multiplier: int
    # Score-multiplier product active when the turn was scored; already folded into the scores.
    booster_modifiers: float
    total_score: int
    cascade_count: int = 0


class ScoreManager:
    """Turns one turn's match and cascade scores into a breakdown and keeps the running total."""

    def __init__(self, event_bus: EventBus, booster_manager: BoosterManager):
        self.event_bus = event_bus
        self.booster_manager = booster_manager
        self.total_score = 0
        self.session_score = 0
        self._history: List[ScoreBreakdown] = []
        self._highest_single_turn = 0
        self._longest_chain = 0
        self._ultimate_combo_score = 0

    # ------------------------------------------------------------------
    # Formulas
    # ------------------------------------------------------------------
    @staticmethod
    def calculate_base_score(group: MatchGroup | None) -> int:
        if group is None or group.size == 0:
            return 0
        return sanitize_points(group.base_score)

    def calculate_chain_multiplier(self, cascade_index: int) -> float:
        """floor(log2(i)) plus any chain bonus; 0 for non-positive indexes."""
        if cascade_index <= 0:
            return 0
        return self.booster_manager.apply_chain_bonus(base_chain_multiplier(cascade_index))

    def calculate_cascade_score(self, match_score: Any, cascade_index: int, ultimate_combo: bool = False) -> int:
        multiplier = final_chain_multiplier(self.calculate_chain_multiplier(cascade_index))
        return cascade_iteration_score(match_score, multiplier, ultimate_combo, ULTIMATE_COMBO_MULTIPLIER)

    def calculate_turn_score(
        self,
        base_score: Any,
        cascade_result: CascadeSequenceResult | None = None,
        ultimate_combo: bool = False,
    ) -> ScoreBreakdown:
        if cascade_result is None:
            cascade_result = CascadeSequenceResult()
        base = sanitize_points(base_score)
        cascade = sanitize_points(cascade_result.total_score)
        combo = ultimate_combo or cascade_result.ultimate_combo_triggered
        combo_multiplier = ULTIMATE_COMBO_MULTIPLIER if combo else 1
        total = sanitize_points((base + cascade) * combo_multiplier)
        modifiers = sanitize_score(self.booster_manager.score_multiplier_product())
        return ScoreBreakdown(
            base_score=base,
            cascade_score=cascade,
            chain_multiplier=cascade_result.chain_multiplier,
            ultimate_combo_multiplier=combo_multiplier,
            booster_modifiers=modifiers,
            total_score=total,
            cascade_count=cascade_result.cascade_count,
        )

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------
    def add_score(self, breakdown: ScoreBreakdown) -> int:
        points = sanitize_points(breakdown.total_score)
        self.total_score += points
        self.session_score += points
        self._history.append(breakdown)
        self._highest_single_turn = max(self._highest_single_turn, points)
        self._longest_chain = max(self._longest_chain, breakdown.cascade_count)
        if breakdown.ultimate_combo_multiplier > 1:
            self._ultimate_combo_score += points
        logger.debug("Added %d points, total %d", points, self.total_score)
        self.event_bus.emit(EVENT_SCORE_ADDED, breakdown=breakdown, total=self.total_score)
        return self.total_score

    def get_recent_breakdown(self) -> Optional[ScoreBreakdown]:
        return self._history[-1] if self._history else None

    def get_score_history(self) -> List[ScoreBreakdown]:
        return list(self._history)

    def get_score_statistics(self) -> Dict[str, int]:
        turns = len(self._history)
        return {
            "total_score": self.total_score,
            "session_score": self.session_score,
            "highest_single_turn": self._highest_single_turn,
            "longest_chain": self._longest_chain,
            "total_ultimate_combo_score": self._ultimate_combo_score,
            "average_turn_score": self.session_score // turns if turns else 0,
            "total_turns": turns,
        }

    def reset_session(self) -> None:
        self.session_score = 0
        self._history = []
        self._highest_single_turn = 0
        self._longest_chain = 0
        self._ultimate_combo_score = 0

    def reset_total(self) -> None:
        self.total_score = 0
        self.reset_session()

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------
    @staticmethod
    def format_score(score: int) -> str:
        return f"{int(score):,}"

    @classmethod
    def format_breakdown(cls, breakdown: ScoreBreakdown) -> str:
        parts = [f"Base: {cls.format_score(breakdown.base_score)}"]
        if breakdown.cascade_score > 0:
            parts.append(f"Cascade: {cls.format_score(breakdown.cascade_score)}")
        if breakdown.chain_multiplier > 0:
            parts.append(f"Chain: x{breakdown.chain_multiplier}")
        if breakdown.ultimate_combo_multiplier > 1:
            parts.append(f"Ultimate: x{breakdown.ultimate_combo_multiplier}")
        if breakdown.booster_modifiers != 1:
            parts.append(f"Boosters: x{breakdown.booster_modifiers:.1f}")
        parts.append(f"Total: {cls.format_score(breakdown.total_score)}")
        return " | ".join(parts)
