GRID_WIDTH = 10
GRID_HEIGHT = 20

# Smallest connected group that counts as a match.
MIN_MATCH_SIZE = 3

# Side length of the square cleared by the area effect.
AREA_CLEAR_SIZE = 7

# Cascade loop guard. The configured limit is clamped into [MIN, MAX].
DEFAULT_MAX_CASCADES = 10
MIN_CASCADE_LIMIT = 1
MAX_CASCADE_LIMIT = 50

# Pacing between paced cascade iterations, in seconds of tick time.
DEFAULT_CASCADE_DELAY = 0.2
# Gravity animation budget handed to the animation layer, in seconds.
DEFAULT_GRAVITY_ANIMATION = 0.3

ULTIMATE_COMBO_MULTIPLIER = 5

# Wild dice spawned by the size-5 effect.
SPAWNED_WILD_SIDES = 6

# Fallback when no mode config is registered on the world.
DEFAULT_MAX_SIDES = 20
