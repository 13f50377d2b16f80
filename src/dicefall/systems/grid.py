from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from esper import World

from dicefall.components.board import Board
from dicefall.components.die import Die, WILD_MATCH_VALUE
from dicefall.components.grid_position import GridPosition
from dicefall.components.locked_piece import LockedPiece
from dicefall.constants import GRID_HEIGHT, GRID_WIDTH, MIN_MATCH_SIZE
from dicefall.systems.match_group import MatchGroup

Offset = Tuple[int, int]
PositionLike = GridPosition | Tuple[int, int]
Placement = Tuple[PositionLike, int]


@dataclass(slots=True)
class GravityMove:
    source: GridPosition
    target: GridPosition
    entity: int


def as_position(value: PositionLike) -> GridPosition:
    if isinstance(value, GridPosition):
        return value
    x, y = value
    return GridPosition(int(x), int(y))


def is_connected(positions: Iterable[PositionLike]) -> bool:
    """True when ``positions`` form one 4-connected region (empty counts as connected)."""
    cells = {as_position(p) for p in positions}
    if not cells:
        return True
    start = next(iter(cells))
    seen = {start}
    stack = [start]
    while stack:
        for neighbor in stack.pop().neighbors():
            if neighbor in cells and neighbor not in seen:
                seen.add(neighbor)
                stack.append(neighbor)
    return len(seen) == len(cells)


class Grid:
    """Fixed-size board of die entities.

    Cells hold entity ids (or None); each die entity carries a ``Die`` component
    and a ``GridPosition`` mirroring the cell it occupies. Clearing primitives
    only detach entities from the board; deleting them is the caller's job.
    """

    def __init__(
        self,
        world: World,
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
        *,
        cohesive_pieces: bool = False,
    ):
        self.world = world
        self.board_entity = self.world.create_entity()
        self.world.add_component(
            self.board_entity,
            Board(width=width, height=height, cohesive_pieces=cohesive_pieces),
        )
        self.cells: List[List[Optional[int]]] = [[None] * width for _ in range(height)]
        self.last_gravity_moves: List[GravityMove] = []
        self._next_piece_id = 1

    @property
    def board(self) -> Board:
        return self.world.component_for_entity(self.board_entity, Board)

    @property
    def width(self) -> int:
        return self.board.width

    @property
    def height(self) -> int:
        return self.board.height

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def is_valid_position(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_empty(self, x: int, y: int) -> bool:
        if not self.is_valid_position(x, y):
            return False
        return self.cells[y][x] is None

    def get_entity(self, x: int, y: int) -> int | None:
        if not self.is_valid_position(x, y):
            return None
        return self.cells[y][x]

    def get_die(self, x: int, y: int) -> Die | None:
        entity = self.get_entity(x, y)
        if entity is None:
            return None
        return self.world.try_component(entity, Die)

    def set_die(self, x: int, y: int, entity: int | None) -> bool:
        """Place ``entity`` at (x, y), or empty the cell when ``entity`` is None."""
        if not self.is_valid_position(x, y):
            return False
        if entity is None:
            previous = self.cells[y][x]
            self.cells[y][x] = None
            if previous is not None:
                self._detach_position(previous)
            return True
        # Keep the one-cell-per-die invariant when re-seating a die.
        current = self.world.try_component(entity, GridPosition)
        if current is not None and self.get_entity(current.x, current.y) == entity:
            self.cells[current.y][current.x] = None
        displaced = self.cells[y][x]
        if displaced is not None and displaced != entity:
            self._detach_position(displaced)
        self.cells[y][x] = entity
        self.world.add_component(entity, GridPosition(x, y))
        return True

    def _detach_position(self, entity: int) -> None:
        if self.world.entity_exists(entity) and self.world.has_component(entity, GridPosition):
            self.world.remove_component(entity, GridPosition)

    def occupied_positions(self) -> List[GridPosition]:
        return [
            GridPosition(x, y)
            for y in range(self.height)
            for x in range(self.width)
            if self.cells[y][x] is not None
        ]

    def get_row(self, y: int) -> List[Optional[int]]:
        if y < 0 or y >= self.height:
            return []
        return list(self.cells[y])

    def get_column(self, x: int) -> List[Optional[int]]:
        if x < 0 or x >= self.width:
            return []
        return [self.cells[y][x] for y in range(self.height)]

    def get_filled_cell_count(self) -> int:
        return sum(1 for row in self.cells for cell in row if cell is not None)

    def is_full(self) -> bool:
        """Game-over predicate: any die in the top row."""
        return any(cell is not None for cell in self.cells[0])

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------
    def check_collision(self, offsets: Iterable[Offset], x: int, y: int) -> bool:
        """Return True if a piece with ``offsets`` at (x, y) hits a wall, the floor or a die.

        Cells above the grid (negative y) never collide.
        """
        for dx, dy in offsets:
            ax, ay = x + dx, y + dy
            if ax < 0 or ax >= self.width or ay >= self.height:
                return True
            if ay < 0:
                continue
            if self.cells[ay][ax] is not None:
                return True
        return False

    def can_place_piece(self, offsets: Iterable[Offset], x: int, y: int) -> bool:
        for dx, dy in offsets:
            ax, ay = x + dx, y + dy
            if not self.is_valid_position(ax, ay):
                return False
            if self.cells[ay][ax] is not None:
                return False
        return True

    def find_drop_position(self, offsets: Sequence[Offset], x: int, start_y: int = 0) -> int | None:
        """Lowest y a piece can rest at in column ``x``; None if it cannot enter at all."""
        if self.check_collision(offsets, x, start_y):
            return None
        y = start_y
        while not self.check_collision(offsets, x, y + 1):
            y += 1
        return y

    def add_piece(self, placements: Sequence[Placement], *, locked: bool = False) -> bool:
        """Seat every die of a piece, or none of them.

        ``placements`` pairs absolute positions with die entities. With
        ``locked`` the dice are tagged as one cohesive piece; gravity only
        honours that when the board has ``cohesive_pieces`` enabled.
        """
        resolved = [(as_position(pos), entity) for pos, entity in placements]
        if not resolved:
            return False
        seen: Set[GridPosition] = set()
        for pos, _ in resolved:
            if pos in seen or not self.is_empty(pos.x, pos.y):
                return False
            seen.add(pos)
        piece_id = None
        if locked:
            piece_id = self._next_piece_id
            self._next_piece_id += 1
        for pos, entity in resolved:
            self.set_die(pos.x, pos.y, entity)
            if piece_id is not None:
                self.world.add_component(entity, LockedPiece(piece_id=piece_id))
        return True

    def is_locked(self, entity: int) -> bool:
        if not self.board.cohesive_pieces:
            return False
        return self.world.has_component(entity, LockedPiece)

    def break_pieces_containing(self, positions: Iterable[PositionLike]) -> Set[int]:
        """Release every locked piece that owns a die at one of ``positions``."""
        piece_ids: Set[int] = set()
        for raw in positions:
            pos = as_position(raw)
            entity = self.get_entity(pos.x, pos.y)
            if entity is None:
                continue
            locked = self.world.try_component(entity, LockedPiece)
            if locked is not None:
                piece_ids.add(locked.piece_id)
        self._release_pieces(piece_ids)
        return piece_ids

    def _release_pieces(self, piece_ids: Set[int]) -> None:
        if not piece_ids:
            return
        for entity, locked in list(self.world.get_component(LockedPiece)):
            if locked.piece_id in piece_ids:
                self.world.remove_component(entity, LockedPiece)

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------
    def _take(self, x: int, y: int, released: Set[int]) -> int | None:
        entity = self.cells[y][x]
        if entity is None:
            return None
        self.cells[y][x] = None
        locked = self.world.try_component(entity, LockedPiece)
        if locked is not None:
            released.add(locked.piece_id)
            self.world.remove_component(entity, LockedPiece)
        self._detach_position(entity)
        return entity

    def _clear_many(self, positions: Iterable[Tuple[int, int]]) -> List[int]:
        cleared: List[int] = []
        released: Set[int] = set()
        for x, y in positions:
            if not self.is_valid_position(x, y):
                continue
            entity = self._take(x, y, released)
            if entity is not None:
                cleared.append(entity)
        # A match breaks every piece it touches.
        self._release_pieces(released)
        return cleared

    def clear_cells(self, positions: Iterable[PositionLike]) -> List[int]:
        return self._clear_many((p.x, p.y) for p in map(as_position, positions))

    def clear_row(self, y: int) -> List[int]:
        if y < 0 or y >= self.height:
            return []
        return self._clear_many((x, y) for x in range(self.width))

    def clear_column(self, x: int) -> List[int]:
        if x < 0 or x >= self.width:
            return []
        return self._clear_many((x, y) for y in range(self.height))

    def clear_area(self, center_x: int, center_y: int, size: int) -> List[int]:
        half = size // 2
        return self._clear_many(
            (x, y)
            for y in range(center_y - half, center_y + half + 1)
            for x in range(center_x - half, center_x + half + 1)
        )

    def clear_all(self) -> List[int]:
        return self._clear_many((x, y) for y in range(self.height) for x in range(self.width))

    def reset(self) -> None:
        """Empty the board and delete every die entity it held."""
        for entity in self.clear_all():
            if self.world.entity_exists(entity):
                self.world.delete_entity(entity, immediate=True)
        self.last_gravity_moves = []
        self._next_piece_id = 1

    # ------------------------------------------------------------------
    # Gravity
    # ------------------------------------------------------------------
    def compute_gravity_moves(self) -> List[GravityMove]:
        moves: List[GravityMove] = []
        for x in range(self.width):
            write_y = self.height - 1
            for y in range(self.height - 1, -1, -1):
                entity = self.cells[y][x]
                if entity is None:
                    continue
                if self.is_locked(entity):
                    # Locked dice hold their cell; loose dice above stack onto them.
                    write_y = y - 1
                    continue
                if write_y != y:
                    moves.append(GravityMove(GridPosition(x, y), GridPosition(x, write_y), entity))
                write_y -= 1
        return moves

    def apply_gravity_moves(self, moves: Sequence[GravityMove]) -> None:
        # Moves are ordered bottom-to-top per column, so every target is already vacant.
        for move in moves:
            self.cells[move.source.y][move.source.x] = None
            self.cells[move.target.y][move.target.x] = move.entity
            self.world.add_component(move.entity, move.target)

    def apply_gravity(self) -> bool:
        """Compact every column downward; return True if any die moved."""
        moves = self.compute_gravity_moves()
        self.apply_gravity_moves(moves)
        self.last_gravity_moves = moves
        return bool(moves)

    # ------------------------------------------------------------------
    # Match detection
    # ------------------------------------------------------------------
    def detect_matches(self) -> List[MatchGroup]:
        """Flood-fill every unvisited die; keep connected groups of MIN_MATCH_SIZE or more."""
        visited = [[False] * self.width for _ in range(self.height)]
        matches: List[MatchGroup] = []
        for y in range(self.height):
            for x in range(self.width):
                if visited[y][x] or self.cells[y][x] is None:
                    continue
                group = self._flood_fill(x, y, visited)
                if group is not None and group.size >= MIN_MATCH_SIZE:
                    matches.append(group)
        return matches

    def _flood_fill(self, start_x: int, start_y: int, visited: List[List[bool]]) -> MatchGroup | None:
        seed_entity = self.cells[start_y][start_x]
        if seed_entity is None:
            return None
        seed = self.world.component_for_entity(seed_entity, Die)
        dice: List[Die] = []
        entities: List[int] = []
        positions: List[GridPosition] = []
        stack: List[Tuple[int, int]] = [(start_x, start_y)]
        while stack:
            x, y = stack.pop()
            if not self.is_valid_position(x, y) or visited[y][x]:
                continue
            entity = self.cells[y][x]
            if entity is None:
                continue
            die = self.world.component_for_entity(entity, Die)
            # Compatibility is judged against the seed die.
            if not seed.can_match(die):
                continue
            visited[y][x] = True
            dice.append(die)
            entities.append(entity)
            positions.append(GridPosition(x, y))
            stack.extend(((x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)))
        if len(dice) < MIN_MATCH_SIZE:
            return None
        match_value = seed.match_value()
        matched_number = 0 if match_value == WILD_MATCH_VALUE else match_value
        return MatchGroup(dice=dice, positions=positions, matched_number=matched_number, entities=entities)

    # ------------------------------------------------------------------
    # Debug helpers
    # ------------------------------------------------------------------
    def get_grid_state(self) -> List[List[Optional[str]]]:
        state: List[List[Optional[str]]] = []
        for y in range(self.height):
            row: List[Optional[str]] = []
            for x in range(self.width):
                die = self.get_die(x, y)
                row.append(die.display_text() if die is not None else None)
            state.append(row)
        return state

    def debug_string(self) -> str:
        lines = []
        for row in self.get_grid_state():
            cells = []
            for text in row:
                if text is None:
                    cells.append(".")
                elif text == "WILD":
                    cells.append("*")
                elif text == "BLACK":
                    cells.append("X")
                else:
                    cells.append(text)
            lines.append(" ".join(f"{c:>2}" for c in cells))
        return "\n".join(lines)
