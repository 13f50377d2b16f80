from enum import Enum


class DieColor(Enum):
    """Die colors in canonical order; the order doubles as the tie-break ordinal."""
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    ORANGE = "orange"
    CYAN = "cyan"

    @property
    def ordinal(self) -> int:
        return list(DieColor).index(self)


# Display colors used by HUD payloads.
DIE_COLOR_HEX = {
    DieColor.RED: "#ff4444",
    DieColor.BLUE: "#4444ff",
    DieColor.GREEN: "#44ff44",
    DieColor.YELLOW: "#ffff44",
    DieColor.PURPLE: "#ff44ff",
    DieColor.ORANGE: "#ff8844",
    DieColor.CYAN: "#44ffff",
}
