from dataclasses import dataclass

@dataclass(slots=True)
class Board:
    width: int
    height: int
    # Dice belonging to a locked piece stay put under gravity until a match breaks the piece.
    cohesive_pieces: bool = False
