import math

import pytest

from dicefall.components.booster import Booster, BoosterEffectType
from dicefall.components.die_color import DieColor
from dicefall.effects.registry import BoosterDefinition, BoosterRegistry
from dicefall.events.bus import (
    EVENT_BOOSTER_ACTIVATED,
    EVENT_BOOSTER_EXPIRED,
    EVENT_BOOSTER_EXTENDED,
    EVENT_PIECE_SPAWNED,
    EVENT_TICK,
    EventBus,
)
from dicefall.systems.booster_manager import BoosterManager
from dicefall.world import create_world


def make_manager():
    bus = EventBus()
    world = create_world(bus)
    return bus, world, BoosterManager(world, bus)


def test_neutral_defaults_without_boosters():
    _, _, manager = make_manager()
    assert manager.apply_score_multipliers(1000) == 1000
    assert manager.apply_chain_bonus(3) == 3
    assert manager.get_fall_speed_modifier() == 1.0
    assert manager.get_wild_chance_modifier() == 0
    assert manager.get_size_boost_modifier() == 0
    assert manager.get_gravity_delay() == 0
    assert manager.get_active_boosters() == []


def test_score_multiplier_expires_after_its_duration():
    _, _, manager = make_manager()
    manager.activate_color_booster(DieColor.RED)
    assert manager.apply_score_multipliers(1000) == 1500
    manager.update(10000 + 1)
    assert not manager.is_booster_active(DieColor.RED, BoosterEffectType.SCORE_MULTIPLIER)
    assert manager.apply_score_multipliers(1000) == 1000


def test_multipliers_floor_the_result():
    _, _, manager = make_manager()
    manager.activate_color_booster(DieColor.RED)
    assert manager.apply_score_multipliers(5) == 7


def test_reactivation_extends_instead_of_duplicating():
    bus, _, manager = make_manager()
    extended = []
    bus.subscribe(EVENT_BOOSTER_EXTENDED, lambda sender, **kw: extended.append(kw["remaining"]))
    first = manager.activate_color_booster(DieColor.RED)
    manager.update(4000)
    second = manager.activate_color_booster(DieColor.RED)
    assert first == second
    assert len(manager.get_active_boosters()) == 1
    booster = manager.get_booster(DieColor.RED, BoosterEffectType.SCORE_MULTIPLIER)
    assert booster.remaining_duration == 16000
    assert extended == [16000]


def test_tick_events_drive_time_based_decay():
    bus, _, manager = make_manager()
    expired = []
    bus.subscribe(EVENT_BOOSTER_EXPIRED, lambda sender, **kw: expired.append((kw["color"], kw["reason"])))
    manager.activate_color_booster(DieColor.PURPLE)
    bus.emit(EVENT_TICK, dt=7.9)
    assert manager.apply_chain_bonus(0) == 2
    bus.emit(EVENT_TICK, dt=0.2)
    assert manager.apply_chain_bonus(0) == 0
    assert expired == [(DieColor.PURPLE, "timeout")]


def test_event_based_boosters_ignore_time_and_count_pieces():
    bus, _, manager = make_manager()
    manager.activate_color_booster(DieColor.GREEN)
    manager.activate_color_booster(DieColor.YELLOW)
    manager.update(10_000_000)
    assert manager.get_wild_chance_modifier() == pytest.approx(0.1)

    bus.emit(EVENT_PIECE_SPAWNED, dice=[])
    assert not manager.is_booster_active(DieColor.YELLOW, BoosterEffectType.EXTRA_TIME)
    assert manager.is_booster_active(DieColor.GREEN, BoosterEffectType.WILD_CHANCE)
    manager.consume_piece_based_boosters()
    manager.consume_piece_based_boosters()
    assert manager.get_wild_chance_modifier() == 0


def test_query_modifiers_reflect_active_boosters():
    _, _, manager = make_manager()
    for color in (DieColor.BLUE, DieColor.ORANGE, DieColor.CYAN):
        manager.activate_color_booster(color)
    assert manager.get_fall_speed_modifier() == 0.5
    assert manager.get_size_boost_modifier() == 1
    assert manager.get_gravity_delay() == 2000


def test_malformed_boosters_are_dropped():
    bus, _, manager = make_manager()
    activated = []
    bus.subscribe(EVENT_BOOSTER_ACTIVATED, lambda sender, **kw: activated.append(kw))
    zero = Booster(DieColor.RED, BoosterEffectType.SCORE_MULTIPLIER, 1.5, 0)
    negative = Booster(DieColor.BLUE, BoosterEffectType.SLOW_FALL, 0.5, -10)
    nan_value = Booster(DieColor.CYAN, BoosterEffectType.GRAVITY_DELAY, math.nan, 1000)
    for booster in (zero, negative, nan_value):
        assert manager.activate_booster(booster) is None
        assert not booster.active
    assert manager.get_active_boosters() == []
    assert activated == []


def test_remove_booster_and_remove_all():
    _, world, manager = make_manager()
    red = manager.activate_color_booster(DieColor.RED)
    manager.activate_color_booster(DieColor.BLUE)
    assert manager.remove_booster(DieColor.RED, BoosterEffectType.SCORE_MULTIPLIER)
    assert not manager.remove_booster(DieColor.RED, BoosterEffectType.SCORE_MULTIPLIER)
    assert not world.entity_exists(red)
    assert manager.remove_all_boosters() == 1
    assert manager.get_active_boosters() == []


def test_hud_and_debug_output():
    _, _, manager = make_manager()
    manager.activate_color_booster(DieColor.RED)
    manager.update(5000)
    hud = manager.get_hud_data()
    assert hud == [
        {
            "color": DieColor.RED,
            "icon": "booster-red",
            "name": "Red Booster",
            "description": "1.5x score multiplier.",
            "progress": 0.5,
            "display_color": "#ff4444",
        }
    ]
    assert manager.debug_string() == "ActiveBoosters(1): [red:score_multiplier(5000)]"


def test_registry_rejects_duplicates_and_unknown_colors():
    registry = BoosterRegistry()
    definition = BoosterDefinition(DieColor.RED, BoosterEffectType.SCORE_MULTIPLIER, 2.0, 1000)
    registry.register(definition)
    with pytest.raises(ValueError):
        registry.register(definition)
    with pytest.raises(KeyError):
        registry.get(DieColor.BLUE)
    created = registry.get(DieColor.RED).create()
    assert created.remaining_duration == 1000
    assert not created.active
