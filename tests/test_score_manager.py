import math

import pytest

from dicefall.components.die import Die
from dicefall.components.die_color import DieColor
from dicefall.components.grid_position import GridPosition
from dicefall.events.bus import EVENT_SCORE_ADDED, EventBus
from dicefall.systems.booster_manager import BoosterManager
from dicefall.systems.cascade import CascadeSequenceResult, ChainMultiplierInfo
from dicefall.systems.match_group import MatchGroup
from dicefall.systems.score_manager import ScoreBreakdown, ScoreManager
from dicefall.world import create_world


def make_scores():
    bus = EventBus()
    world = create_world(bus)
    boosters = BoosterManager(world, bus)
    return bus, boosters, ScoreManager(bus, boosters)


def cascade_result(total, count=1, ultimate=False):
    infos = [
        ChainMultiplierInfo(cascade_number=i + 1, base_multiplier=0, final_multiplier=i + 1, match_score=0, score_contribution=0)
        for i in range(count)
    ]
    return CascadeSequenceResult(
        total_score=total,
        cascade_count=count,
        ultimate_combo_triggered=ultimate,
        chain_multipliers=infos,
    )


def test_base_score_formula():
    group = MatchGroup(
        dice=[Die(6, 4, DieColor.RED) for _ in range(3)],
        positions=[GridPosition(x, 0) for x in range(3)],
        matched_number=4,
    )
    assert ScoreManager.calculate_base_score(group) == 216
    assert ScoreManager.calculate_base_score(None) == 0
    assert ScoreManager.calculate_base_score(MatchGroup(dice=[], positions=[], matched_number=3)) == 0


def test_turn_total_adds_base_and_cascade():
    _, _, scores = make_scores()
    breakdown = scores.calculate_turn_score(100, cascade_result(50, count=2))
    assert breakdown.total_score == 150
    assert breakdown.cascade_score == 50
    assert breakdown.chain_multiplier == 2
    assert breakdown.ultimate_combo_multiplier == 1
    assert breakdown.cascade_count == 2
    with pytest.raises(AttributeError):
        breakdown.total_score = 0


def test_ultimate_combo_anywhere_multiplies_turn_by_five():
    _, _, scores = make_scores()
    assert scores.calculate_turn_score(100, cascade_result(50), ultimate_combo=True).total_score == 750
    assert scores.calculate_turn_score(100, cascade_result(50, ultimate=True)).total_score == 750


def test_degenerate_inputs_clamp_to_zero():
    _, _, scores = make_scores()
    assert scores.calculate_turn_score(-40).total_score == 0
    assert scores.calculate_turn_score(math.nan, cascade_result(10)).total_score == 10
    assert scores.calculate_turn_score(math.inf).total_score == 0
    assert scores.calculate_cascade_score(-5, 3) == 0


def test_cascade_score_uses_chain_table_and_bonus():
    _, boosters, scores = make_scores()
    assert scores.calculate_chain_multiplier(0) == 0
    assert scores.calculate_cascade_score(100, 1) == 100
    assert scores.calculate_cascade_score(100, 4) == 200
    assert scores.calculate_cascade_score(100, 4, ultimate_combo=True) == 1000
    boosters.activate_color_booster(DieColor.PURPLE)
    assert scores.calculate_chain_multiplier(4) == 4
    assert scores.calculate_cascade_score(100, 1) == 200


def test_booster_modifiers_are_reported():
    _, boosters, scores = make_scores()
    boosters.activate_color_booster(DieColor.RED)
    breakdown = scores.calculate_turn_score(100)
    assert breakdown.booster_modifiers == 1.5
    assert breakdown.total_score == 100


def test_running_total_and_statistics():
    bus, _, scores = make_scores()
    added = []
    bus.subscribe(EVENT_SCORE_ADDED, lambda sender, **kw: added.append(kw["total"]))
    scores.add_score(scores.calculate_turn_score(100, cascade_result(20, count=3)))
    scores.add_score(scores.calculate_turn_score(10, cascade_result(0, count=0), ultimate_combo=True))

    assert scores.total_score == 170
    assert added == [120, 170]
    stats = scores.get_score_statistics()
    assert stats["highest_single_turn"] == 120
    assert stats["longest_chain"] == 3
    assert stats["total_ultimate_combo_score"] == 50
    assert stats["average_turn_score"] == 85
    assert stats["total_turns"] == 2
    assert scores.get_recent_breakdown().total_score == 50
    assert len(scores.get_score_history()) == 2

    scores.reset_session()
    assert scores.total_score == 170
    assert scores.get_score_statistics()["total_turns"] == 0
    scores.reset_total()
    assert scores.total_score == 0
    assert scores.get_recent_breakdown() is None


def test_formatting():
    assert ScoreManager.format_score(1234567) == "1,234,567"
    breakdown = ScoreBreakdown(
        base_score=1000,
        cascade_score=200,
        chain_multiplier=2,
        ultimate_combo_multiplier=5,
        booster_modifiers=1.5,
        total_score=6000,
    )
    assert ScoreManager.format_breakdown(breakdown) == (
        "Base: 1,000 | Cascade: 200 | Chain: x2 | Ultimate: x5 | Boosters: x1.5 | Total: 6,000"
    )
