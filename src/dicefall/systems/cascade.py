from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from esper import World

from dicefall.components.booster import Booster
from dicefall.components.cascade_state import CascadePhase, CascadeState
from dicefall.components.die import Die
from dicefall.constants import (
    DEFAULT_CASCADE_DELAY,
    DEFAULT_GRAVITY_ANIMATION,
    DEFAULT_MAX_CASCADES,
    MAX_CASCADE_LIMIT,
    MIN_CASCADE_LIMIT,
    ULTIMATE_COMBO_MULTIPLIER,
)
from dicefall.events.bus import (
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_LIMIT_REACHED,
    EVENT_CASCADE_STEP,
    EVENT_CASCADE_STOPPED,
    EVENT_GRAVITY_APPLIED,
    EVENT_TICK,
    EventBus,
)
from dicefall.systems.booster_manager import BoosterManager
from dicefall.systems.grid import Grid
from dicefall.systems.match_processor import MatchProcessor
from dicefall.utils.score_math import (
    base_chain_multiplier,
    cascade_iteration_score,
    final_chain_multiplier,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChainMultiplierInfo:
    cascade_number: int
    base_multiplier: int
    final_multiplier: int
    match_score: int
    score_contribution: int


@dataclass(slots=True)
class CascadeSequenceResult:
    total_score: int = 0
    cascade_count: int = 0
    cleared_dice: List[Die] = field(default_factory=list)
    activated_boosters: List[Booster] = field(default_factory=list)
    ultimate_combo_triggered: bool = False
    max_cascades_reached: bool = False
    wild_spawn_deferred: int = 0
    chain_multipliers: List[ChainMultiplierInfo] = field(default_factory=list)

    @property
    def chain_multiplier(self) -> int:
        """Multiplier of the most recent iteration, 0 when nothing cascaded."""
        if not self.chain_multipliers:
            return 0
        return self.chain_multipliers[-1].final_multiplier


class CascadeManager:
    """Runs gravity -> detect -> clear until the board settles or the cap is hit.

    ``process_cascade_sequence`` resolves everything in one call.
    ``start_cascade_sequence`` runs the same loop one iteration per
    ``cascade_delay`` seconds of ``EVENT_TICK`` time so an animation layer can
    keep up. Only one sequence may be in flight at a time.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        grid: Grid,
        match_processor: MatchProcessor,
        booster_manager: BoosterManager,
        *,
        max_cascades: int = DEFAULT_MAX_CASCADES,
        cascade_delay: float = DEFAULT_CASCADE_DELAY,
        gravity_animation: float = DEFAULT_GRAVITY_ANIMATION,
    ):
        self.world = world
        self.event_bus = event_bus
        self.grid = grid
        self.match_processor = match_processor
        self.booster_manager = booster_manager
        self.state_entity = self.world.create_entity(CascadeState())
        self.max_cascades = DEFAULT_MAX_CASCADES
        self.set_max_cascades(max_cascades)
        self.cascade_delay = DEFAULT_CASCADE_DELAY
        self.gravity_animation = DEFAULT_GRAVITY_ANIMATION
        self.set_animation_timing(gravity_animation, cascade_delay)
        self._pending: Optional[CascadeSequenceResult] = None
        self._sequences_processed = 0
        self._cascades_processed = 0
        self._longest_chain = 0
        self._total_chain_score = 0
        self._limit_hits = 0
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    @property
    def state(self) -> CascadeState:
        return self.world.component_for_entity(self.state_entity, CascadeState)

    @property
    def is_processing(self) -> bool:
        return self.state.processing

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def process_cascade_sequence(self) -> CascadeSequenceResult:
        if not self._begin():
            return CascadeSequenceResult()
        result = CascadeSequenceResult()
        try:
            while self._run_iteration(result):
                pass
        finally:
            self._finish(result)
        return result

    def start_cascade_sequence(self) -> bool:
        """Begin a tick-paced sequence; False if one is already running."""
        if not self._begin():
            return False
        self._pending = CascadeSequenceResult()
        return True

    def on_tick(self, sender, **kwargs):
        if self._pending is None or not self.state.processing:
            return
        dt = kwargs.get("dt", 0.0)
        try:
            dt = float(dt)
        except (TypeError, ValueError):
            return
        if not math.isfinite(dt) or dt <= 0:
            return
        state = self.state
        state.elapsed += dt
        if state.elapsed < self.effective_delay():
            return
        state.elapsed = 0.0
        result = self._pending
        if not self._run_iteration(result):
            self._pending = None
            self._finish(result)
            self.event_bus.emit(EVENT_CASCADE_COMPLETE, result=result)

    def effective_delay(self) -> float:
        """Pacing delay in seconds, stretched by any active gravity-delay booster."""
        return self.cascade_delay + self.booster_manager.get_gravity_delay() / 1000.0

    def force_stop_cascade(self) -> None:
        """Abandon any running sequence; a paced one reports its partial result."""
        if self.state.processing:
            logger.debug("Force stopping cascade at depth %d", self.state.depth)
        result = self._pending
        self._pending = None
        self._reset_state()
        if result is not None:
            self.event_bus.emit(EVENT_CASCADE_STOPPED, result=result)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def _begin(self) -> bool:
        state = self.state
        if state.processing:
            logger.warning("Cascade sequence already in progress; ignoring request")
            return False
        self._reset_state()
        state.phase = CascadePhase.PROCESSING
        return True

    def _run_iteration(self, result: CascadeSequenceResult) -> bool:
        """Run one cascade iteration; return whether another may follow."""
        if self.grid.apply_gravity():
            self.event_bus.emit(EVENT_GRAVITY_APPLIED, moves=list(self.grid.last_gravity_moves))
        else:
            return False
        groups = self.grid.detect_matches()
        if not groups:
            return False

        index = result.cascade_count + 1
        result.cascade_count = index
        processed = self.match_processor.process_groups(groups)

        base = base_chain_multiplier(index)
        final = final_chain_multiplier(self.booster_manager.apply_chain_bonus(base))
        score = cascade_iteration_score(
            processed.total_score,
            final,
            processed.ultimate_combo_triggered,
            ULTIMATE_COMBO_MULTIPLIER,
        )

        result.total_score += score
        result.cleared_dice.extend(processed.cleared_dice)
        result.activated_boosters.extend(processed.activated_boosters)
        result.wild_spawn_deferred += processed.wild_spawn_deferred
        result.ultimate_combo_triggered = result.ultimate_combo_triggered or processed.ultimate_combo_triggered
        result.chain_multipliers.append(
            ChainMultiplierInfo(
                cascade_number=index,
                base_multiplier=base,
                final_multiplier=final,
                match_score=processed.total_score,
                score_contribution=score,
            )
        )

        state = self.state
        state.depth = index
        state.base_chain_multiplier = base
        state.chain_multiplier = final
        self.event_bus.emit(EVENT_CASCADE_STEP, depth=index, chain_multiplier=final, score=score)

        if index >= self.max_cascades:
            result.max_cascades_reached = True
            self._limit_hits += 1
            logger.warning("Cascade limit of %d reached", self.max_cascades)
            self.event_bus.emit(EVENT_CASCADE_LIMIT_REACHED, depth=index)
            return False
        return True

    def _finish(self, result: CascadeSequenceResult) -> None:
        self._sequences_processed += 1
        self._cascades_processed += result.cascade_count
        self._longest_chain = max(self._longest_chain, result.cascade_count)
        self._total_chain_score += result.total_score
        self._reset_state()

    def _reset_state(self) -> None:
        self.world.add_component(self.state_entity, CascadeState())

    # ------------------------------------------------------------------
    # Configuration and introspection
    # ------------------------------------------------------------------
    def set_max_cascades(self, max_cascades: int) -> None:
        self.max_cascades = max(MIN_CASCADE_LIMIT, min(MAX_CASCADE_LIMIT, int(max_cascades)))

    def set_animation_timing(self, gravity_animation: float, cascade_delay: float) -> None:
        self.gravity_animation = max(0.0, float(gravity_animation))
        self.cascade_delay = max(0.0, float(cascade_delay))

    def get_cascade_state(self) -> Dict[str, Any]:
        state = self.state
        return {
            "is_processing": state.processing,
            "current_cascade_count": state.depth,
            "max_cascades": self.max_cascades,
            "chain_multiplier": state.chain_multiplier,
            "base_chain_multiplier": state.base_chain_multiplier,
        }

    def get_cascade_statistics(self) -> Dict[str, Any]:
        return {
            "sequences_processed": self._sequences_processed,
            "total_cascades_processed": self._cascades_processed,
            "longest_chain": self._longest_chain,
            "total_chain_score": self._total_chain_score,
            "limit_hits": self._limit_hits,
            "max_cascade_limit": self.max_cascades,
            "gravity_animation": self.gravity_animation,
            "cascade_delay": self.cascade_delay,
        }
