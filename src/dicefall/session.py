from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from dicefall.components.grid_position import GridPosition
from dicefall.components.mode_config import Difficulty, ModeConfig, mode_config_for
from dicefall.constants import DEFAULT_MAX_CASCADES, GRID_HEIGHT, GRID_WIDTH
from dicefall.events.bus import (
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STOPPED,
    EVENT_GAME_OVER,
    EVENT_PIECE_PLACED,
    EVENT_PIECE_REJECTED,
    EVENT_PIECE_SPAWNED,
    EVENT_TICK,
    EVENT_TURN_RESOLVED,
    EventBus,
)
from dicefall.factories.dice import create_dice_for_piece, create_wild_die
from dicefall.systems.booster_manager import BoosterManager
from dicefall.systems.cascade import CascadeManager, CascadeSequenceResult
from dicefall.systems.grid import Grid, Placement, as_position
from dicefall.systems.match_processor import MatchProcessor, MatchProcessResult
from dicefall.systems.score_manager import ScoreBreakdown, ScoreManager
from dicefall.world import create_world, get_mode_config

logger = logging.getLogger(__name__)

LINES_PER_LEVEL = 10


@dataclass(slots=True)
class TurnResult:
    placed: bool = True
    matches_processed: bool = False
    match_result: Optional[MatchProcessResult] = None
    cascade_result: Optional[CascadeSequenceResult] = None
    score_breakdown: Optional[ScoreBreakdown] = None
    game_over: bool = False
    level_up: bool = False
    new_level: int = 1


def lines_equivalent(cascade_result: CascadeSequenceResult) -> int:
    """Level progress earned by a cascade sequence; deeper cascades count for more."""
    lines = 0.0
    for info in cascade_result.chain_multipliers:
        if info.cascade_number <= 2:
            lines += 0.5
        elif info.cascade_number <= 5:
            lines += 1
        else:
            lines += 2
    return int(lines)


class GameSession:
    """One game: owns the world, the board and every manager wired to a shared bus."""

    def __init__(
        self,
        difficulty: Difficulty | str | None = Difficulty.MEDIUM,
        *,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
        cohesive_pieces: bool = False,
        max_cascades: int = DEFAULT_MAX_CASCADES,
    ):
        self.event_bus = event_bus or EventBus()
        self.world = create_world(self.event_bus, difficulty, rng=rng)
        self.grid = Grid(self.world, width, height, cohesive_pieces=cohesive_pieces)
        self.booster_manager = BoosterManager(self.world, self.event_bus)
        self.match_processor = MatchProcessor(self.world, self.event_bus, self.grid, self.booster_manager)
        self.cascade_manager = CascadeManager(
            self.world,
            self.event_bus,
            self.grid,
            self.match_processor,
            self.booster_manager,
            max_cascades=max_cascades,
        )
        self.score_manager = ScoreManager(self.event_bus, self.booster_manager)
        self.pending_wild_dice = 0
        self.lines_cleared = 0
        self.level = 1
        self.game_over = False
        self._turn_in_progress = False
        self._paced_match_result: Optional[MatchProcessResult] = None
        self.event_bus.subscribe(EVENT_CASCADE_COMPLETE, self.on_cascade_complete)
        self.event_bus.subscribe(EVENT_CASCADE_STOPPED, self.on_cascade_complete)

    @property
    def mode(self) -> ModeConfig:
        return get_mode_config(self.world) or mode_config_for(None)

    # ------------------------------------------------------------------
    # Driving the session
    # ------------------------------------------------------------------
    def tick(self, dt: float) -> None:
        self.event_bus.emit(EVENT_TICK, dt=dt)

    def spawn_piece(self, count: int) -> List[int]:
        """Create the dice for the next piece and spend one use of piece-based boosters.

        A wild die owed by an earlier spawn-wild effect replaces the first die.
        """
        dice = create_dice_for_piece(
            self.world,
            count,
            wild_chance=self.booster_manager.get_wild_chance_modifier(),
        )
        if dice and self.pending_wild_dice > 0:
            self.world.delete_entity(dice[0], immediate=True)
            dice[0] = create_wild_die(self.world)
            self.pending_wild_dice -= 1
        self.event_bus.emit(EVENT_PIECE_SPAWNED, dice=list(dice))
        return dice

    def place_piece(self, placements: Sequence[Placement], *, locked: bool = False) -> TurnResult:
        positions = [as_position(pos) for pos, _ in placements]
        if self.game_over:
            return TurnResult(placed=False, game_over=True, new_level=self.level)
        if not self.grid.add_piece(placements, locked=locked):
            self._discard_unplaced([entity for _, entity in placements])
            self.event_bus.emit(EVENT_PIECE_REJECTED, positions=positions, reason="blocked")
            # A piece that cannot be seated ends the run; endless modes leave the board alone.
            if self.mode.has_game_over:
                self._end_game()
            return TurnResult(placed=False, game_over=self.game_over, new_level=self.level)
        self.event_bus.emit(EVENT_PIECE_PLACED, positions=positions, locked=locked)
        return self.resolve_turn()

    def resolve_turn(self) -> TurnResult:
        """Score initial matches, run the full cascade and bank the breakdown."""
        if self._turn_in_progress or self.cascade_manager.is_processing:
            logger.warning("Turn already in progress")
            return TurnResult(new_level=self.level)
        self._turn_in_progress = True
        try:
            groups = self.grid.detect_matches()
            if not groups:
                return self._finish_turn(TurnResult(new_level=self.level))
            match_result = self.match_processor.process_groups(groups)
            cascade_result = self.cascade_manager.process_cascade_sequence()
            return self._finish_turn(self._score_turn(match_result, cascade_result))
        finally:
            self._turn_in_progress = False

    def begin_paced_turn(self) -> bool:
        """Score initial matches now and let the cascade run off ``tick``.

        The turn is banked when the cascade completes or is force-stopped.
        Returns False if no match was found or a turn is already running.
        """
        if self._turn_in_progress or self.cascade_manager.is_processing:
            logger.warning("Turn already in progress")
            return False
        groups = self.grid.detect_matches()
        if not groups:
            return False
        self._paced_match_result = self.match_processor.process_groups(groups)
        if not self.cascade_manager.start_cascade_sequence():
            self._paced_match_result = None
            return False
        self._turn_in_progress = True
        return True

    def on_cascade_complete(self, sender, **kwargs):
        match_result = self._paced_match_result
        if match_result is None:
            return
        self._paced_match_result = None
        self._turn_in_progress = False
        cascade_result = kwargs.get("result") or CascadeSequenceResult()
        self._finish_turn(self._score_turn(match_result, cascade_result))

    def _discard_unplaced(self, entities: Sequence[int]) -> None:
        for entity in entities:
            if not self.world.entity_exists(entity):
                continue
            if self.world.has_component(entity, GridPosition):
                continue
            self.world.delete_entity(entity, immediate=True)

    def _score_turn(self, match_result: MatchProcessResult, cascade_result: CascadeSequenceResult) -> TurnResult:
        breakdown = self.score_manager.calculate_turn_score(
            match_result.total_score,
            cascade_result,
            match_result.ultimate_combo_triggered,
        )
        self.score_manager.add_score(breakdown)
        self.pending_wild_dice += match_result.wild_spawn_deferred + cascade_result.wild_spawn_deferred
        self.lines_cleared += lines_equivalent(cascade_result)
        new_level = self.lines_cleared // LINES_PER_LEVEL + 1
        level_up = new_level > self.level
        self.level = max(self.level, new_level)
        self.event_bus.emit(EVENT_TURN_RESOLVED, breakdown=breakdown)
        return TurnResult(
            matches_processed=match_result.matches_found,
            match_result=match_result,
            cascade_result=cascade_result,
            score_breakdown=breakdown,
            level_up=level_up,
            new_level=self.level,
        )

    def _finish_turn(self, result: TurnResult) -> TurnResult:
        if self.grid.is_full():
            self._end_game()
        result.game_over = self.game_over
        return result

    def _end_game(self) -> None:
        if not self.mode.has_game_over:
            # Endless modes wipe the board instead of ending the run.
            logger.info("Board full in %s mode; clearing board", self.mode.difficulty.value)
            self.grid.reset()
            return
        if self.game_over:
            return
        self.game_over = True
        self.event_bus.emit(EVENT_GAME_OVER, total=self.score_manager.total_score)

    def reset(self) -> None:
        self._paced_match_result = None
        self.cascade_manager.force_stop_cascade()
        self.grid.reset()
        self.booster_manager.clear()
        self.score_manager.reset_session()
        self.pending_wild_dice = 0
        self.lines_cleared = 0
        self.level = 1
        self.game_over = False
        self._turn_in_progress = False
