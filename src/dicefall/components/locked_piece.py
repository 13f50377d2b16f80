from dataclasses import dataclass


@dataclass(slots=True)
class LockedPiece:
    """Marks a die as part of a placed piece that has not been broken by a match.

    Only consulted when the board runs with ``cohesive_pieces`` enabled.
    """

    piece_id: int
