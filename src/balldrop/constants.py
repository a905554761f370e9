GRID_ROWS = 25
GRID_COLS = 15

# Runs shorter than this are never reported as matches.
MIN_MATCH_LENGTH = 3
# Hard stop for a single cascade sequence, counted in cleared levels.
MAX_CASCADE_DEPTH = 10
# Chebyshev radius cleared around a matched exploding ball (7x7 block).
EXPLOSION_RADIUS = 3

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


# Rotation wall kicks as (row offset, col offset), tried in order.
WALL_KICKS = (
    (0, -1),
    (0, 1),
    (0, -2),
    (0, 2),
    (-1, 0),
)
