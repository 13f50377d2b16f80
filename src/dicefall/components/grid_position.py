from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GridPosition:
    """Board coordinate; x grows to the right, y grows downward (row 0 is the top).

    Die entities carry one of these while they sit on the board. Negative y is
    above the grid and only ever appears in collision queries.
    """
    x: int
    y: int

    def neighbors(self) -> tuple["GridPosition", ...]:
        return (
            GridPosition(self.x - 1, self.y),
            GridPosition(self.x + 1, self.y),
            GridPosition(self.x, self.y - 1),
            GridPosition(self.x, self.y + 1),
        )

    def is_adjacent(self, other: "GridPosition") -> bool:
        return abs(self.x - other.x) + abs(self.y - other.y) == 1
