from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of managers that are not stored elsewhere alive.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: dt=float (seconds)


# ============================================================================
# PIECES & PLACEMENT
# ============================================================================
EVENT_PIECE_SPAWNED = "piece_spawned"              # payload: dice=list[int]
EVENT_PIECE_PLACED = "piece_placed"                # payload: positions=[GridPosition,...], locked=bool
EVENT_PIECE_REJECTED = "piece_rejected"            # payload: positions=[GridPosition,...], reason=str


# ============================================================================
# BOARD MECHANICS
# ============================================================================
EVENT_MATCH_FOUND = "match_found"                  # payload: positions=[GridPosition,...], size=int, matched_number=int
EVENT_MATCH_CLEARED = "match_cleared"              # payload: positions=[GridPosition,...], effect=SizeEffectType, score=int, cleared=int
EVENT_GRAVITY_APPLIED = "gravity_applied"          # payload: moves=list[GravityMove]
EVENT_WILD_DIE_SPAWNED = "wild_die_spawned"        # payload: entity=int, position=GridPosition
EVENT_WILD_DIE_DEFERRED = "wild_die_deferred"      # payload: None (next piece should carry a wild die)
EVENT_ULTIMATE_COMBO = "ultimate_combo"            # payload: positions=[GridPosition,...], upgraded=int, max_sides=int
EVENT_BLACK_DIE_MATCHED = "black_die_matched"      # payload: positions=[GridPosition,...], removed=int


# ============================================================================
# CASCADES
# ============================================================================
EVENT_CASCADE_STEP = "cascade_step"                # payload: depth=int, chain_multiplier=int, score=int
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: result=CascadeSequenceResult
EVENT_CASCADE_STOPPED = "cascade_stopped"          # payload: result=CascadeSequenceResult (partial)
EVENT_CASCADE_LIMIT_REACHED = "cascade_limit_reached"  # payload: depth=int


# ============================================================================
# BOOSTERS
# ============================================================================
EVENT_BOOSTER_ACTIVATED = "booster_activated"      # payload: entity=int, color=DieColor, effect_type=BoosterEffectType
EVENT_BOOSTER_EXTENDED = "booster_extended"        # payload: entity=int, color=DieColor, effect_type=BoosterEffectType, remaining=float
EVENT_BOOSTER_EXPIRED = "booster_expired"          # payload: entity=int, color=DieColor, effect_type=BoosterEffectType, reason=str


# ============================================================================
# SCORING & GAME FLOW
# ============================================================================
EVENT_SCORE_ADDED = "score_added"                  # payload: breakdown=ScoreBreakdown, total=int
EVENT_TURN_RESOLVED = "turn_resolved"              # payload: breakdown=ScoreBreakdown
EVENT_GAME_OVER = "game_over"                      # payload: total=int
