import random

from dicefall.components.die import Die
from dicefall.components.die_color import DieColor
from dicefall.components.grid_position import GridPosition
from dicefall.effects.size_effects import SizeEffectType, size_effect_for
from dicefall.systems.grid import is_connected
from dicefall.systems.match_group import MatchGroup
from helpers import make_board, positions_of, put_die, put_row


def test_horizontal_triple_is_found():
    _, world, grid = make_board(5, 5)
    put_row(world, grid, 4, [4, 4, 4, 2])
    groups = grid.detect_matches()
    assert positions_of(groups) == [{(0, 4), (1, 4), (2, 4)}]
    assert groups[0].matched_number == 4
    assert groups[0].size == 3


def test_pairs_and_diagonals_do_not_match():
    _, world, grid = make_board(5, 5)
    put_row(world, grid, 4, [3, 3, None, 5])
    put_die(world, grid, 0, 2, 6)
    put_die(world, grid, 1, 3, 6)
    put_die(world, grid, 2, 2, 6)
    assert grid.detect_matches() == []


def test_vertical_and_bent_groups_are_connected():
    _, world, grid = make_board(5, 5)
    for y in (2, 3, 4):
        put_die(world, grid, 0, y, 5)
    put_die(world, grid, 1, 4, 5)
    groups = grid.detect_matches()
    assert len(groups) == 1
    assert groups[0].size == 4
    assert is_connected(groups[0].positions)


def test_wild_joins_numbered_dice():
    _, world, grid = make_board(5, 5)
    put_row(world, grid, 4, [4, "W", 4])
    groups = grid.detect_matches()
    assert len(groups) == 1
    assert groups[0].matched_number == 4
    assert groups[0].has_wild_dice


def test_candidates_are_compared_with_the_seed_die():
    _, world, grid = make_board(5, 5)
    # The wild accepts 5 but the seed 3 does not.
    put_row(world, grid, 4, [3, "W", 5])
    assert grid.detect_matches() == []


def test_wild_seed_records_zero():
    _, world, grid = make_board(5, 5)
    put_row(world, grid, 4, ["W", 4, 4])
    groups = grid.detect_matches()
    assert len(groups) == 1
    assert groups[0].matched_number == 0
    assert groups[0].base_score == 0


def test_all_wild_group_is_ultimate_combo():
    _, world, grid = make_board(5, 5)
    put_row(world, grid, 4, ["W", "W", "W"])
    group = grid.detect_matches()[0]
    assert group.is_ultimate_combo
    assert group.matched_number == 0
    assert group.dominant_color is None


def test_random_boards_only_yield_connected_disjoint_groups():
    rng = random.Random(1234)
    for _ in range(25):
        _, world, grid = make_board(6, 8)
        for y in range(8):
            for x in range(6):
                roll = rng.random()
                if roll < 0.2:
                    continue
                if roll < 0.27:
                    put_die(world, grid, x, y, 0, wild=True)
                else:
                    put_die(world, grid, x, y, rng.randint(1, 3))
        groups = grid.detect_matches()
        seen = set()
        for group in groups:
            cells = {(p.x, p.y) for p in group.positions}
            assert group.size >= 3
            assert is_connected(group.positions)
            assert not (cells & seen)
            seen |= cells
            seed = group.dice[0]
            assert all(seed.can_match(die) for die in group.dice)


def test_size_effect_tiers():
    expected = {
        3: SizeEffectType.STANDARD,
        4: SizeEffectType.LINE_CLEAR,
        5: SizeEffectType.SPAWN_WILD,
        6: SizeEffectType.SPAWN_WILD,
        7: SizeEffectType.AREA_CLEAR,
        8: SizeEffectType.AREA_CLEAR,
        9: SizeEffectType.GRID_CLEAR,
        15: SizeEffectType.GRID_CLEAR,
    }
    for size, effect in expected.items():
        assert size_effect_for(size).type is effect


def _group(dice, positions, number=1):
    return MatchGroup(dice=dice, positions=[GridPosition(x, y) for x, y in positions], matched_number=number)


def test_dominant_color_ties_break_to_lowest_ordinal():
    dice = [
        Die(6, 2, DieColor.BLUE),
        Die(6, 2, DieColor.RED),
        Die(6, 2, DieColor.CYAN, is_black=True),
    ]
    group = _group(dice, [(0, 0), (1, 0), (2, 0)])
    assert group.color_counts == {DieColor.BLUE: 1, DieColor.RED: 1}
    assert group.dominant_color is DieColor.RED
    assert group.has_black_dice

    dice = [Die(6, 2, DieColor.CYAN), Die(6, 2, DieColor.CYAN), Die(6, 2, DieColor.RED)]
    assert _group(dice, [(0, 0), (1, 0), (2, 0)]).dominant_color is DieColor.CYAN


def test_center_rounds_half_up():
    dice = [Die(6, 1, DieColor.RED) for _ in range(4)]
    group = _group(dice, [(1, 3), (2, 3), (3, 3), (4, 3)])
    assert group.center_position == GridPosition(3, 3)
    assert group.is_horizontal
    assert group.line_clear_positions(6, 5) == [GridPosition(x, 3) for x in range(6)]

    tall = _group(dice, [(2, 0), (2, 1), (2, 2), (3, 2)])
    assert not tall.is_horizontal
    assert tall.line_clear_positions(6, 5) == [GridPosition(2, y) for y in range(5)]


def test_area_positions_are_clipped():
    dice = [Die(6, 1, DieColor.RED) for _ in range(3)]
    group = _group(dice, [(0, 0), (1, 0), (2, 0)])
    area = group.area_clear_positions(10, 20)
    assert len(area) == 5 * 4
    assert all(0 <= p.x < 10 and 0 <= p.y < 20 for p in area)
    assert len(MatchGroup.grid_clear_positions(3, 2)) == 6
