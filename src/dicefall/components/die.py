from dataclasses import dataclass

from dicefall.components.die_color import DieColor

WILD_MATCH_VALUE = -1


@dataclass(slots=True)
class Die:
    """Per-die value component.

    ``number`` is 0 for wild dice. Wild and black are independent flags; rules
    check each of them separately.
    """
    sides: int
    number: int
    color: DieColor
    is_wild: bool = False
    is_black: bool = False

    def match_value(self) -> int:
        if self.is_wild:
            return WILD_MATCH_VALUE
        return self.number

    def can_match(self, other: "Die") -> bool:
        if self.is_wild or other.is_wild:
            return True
        return self.number == other.number

    def upgrade_to_max(self, max_sides: int) -> None:
        if self.is_wild or self.is_black:
            return
        self.sides = max_sides
        self.number = max_sides

    def convert_to_wild(self) -> None:
        self.is_wild = True
        self.is_black = False
        self.number = 0

    def display_text(self) -> str:
        if self.is_black:
            return "BLACK"
        if self.is_wild:
            return "WILD"
        return str(self.number)


def can_match(a: Die, b: Die) -> bool:
    return a.can_match(b)
