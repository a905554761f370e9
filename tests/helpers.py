from __future__ import annotations

from typing import Dict, Optional, Sequence

from balldrop.components.ball import Ball, BallType
from balldrop.components.grid import Grid

# Single-character codes used by the ASCII grid layouts in tests.
COLOR_CODES: Dict[str, str] = {
    "R": "#FF0000",
    "G": "#00FF00",
    "B": "#0000FF",
    "Y": "#FFFF00",
    "M": "#FF00FF",
    "C": "#00FFFF",
}
BLOCKING_COLOR = "#808080"

RED = COLOR_CODES["R"]
GREEN = COLOR_CODES["G"]
BLUE = COLOR_CODES["B"]
YELLOW = COLOR_CODES["Y"]


def ball(color: str = RED, ball_type: BallType = BallType.NORMAL) -> Ball:
    return Ball(ball_type, color)


def make_grid(rows: int = 25, cols: int = 15) -> Grid:
    return Grid(rows=rows, cols=cols)


def fill_grid(grid: Grid, layout: Sequence[str], *, bottom: bool = True) -> Grid:
    """Write an ASCII layout into grid.

    Each character is a color code from COLOR_CODES, ``X`` for a blocking ball
    or ``.`` for empty. With bottom=True the layout's last line lands on the
    grid's bottom row.
    """
    offset = grid.rows - len(layout) if bottom else 0
    for r, line in enumerate(layout):
        for c, code in enumerate(line):
            if code == ".":
                continue
            if code == "X":
                grid.set_ball(offset + r, c, Ball(BallType.BLOCKING, BLOCKING_COLOR))
            else:
                grid.set_ball(offset + r, c, Ball(BallType.NORMAL, COLOR_CODES[code]))
    return grid


def place(grid: Grid, row: int, col: int, color: str = RED, ball_type: BallType = BallType.NORMAL) -> Ball:
    placed = Ball(ball_type, color)
    grid.set_ball(row, col, placed)
    return placed


def column_colors(grid: Grid, col: int) -> list[Optional[str]]:
    return [grid.cells[r][col].color if grid.cells[r][col] else None for r in range(grid.rows)]


def blocking() -> Ball:
    return Ball(BallType.BLOCKING, BLOCKING_COLOR)


def quiet_config(**overrides):
    """Default config with every special-ball rate at zero so generated pieces are plain."""
    from balldrop.config_loader import GameConfig, SpecialBallConfig

    specials = SpecialBallConfig(
        exploding_rate=0.0,
        painter_horizontal_rate=0.0,
        painter_vertical_rate=0.0,
        painter_diagonal_rate=0.0,
        blocking_base_rate=0.0,
        blocking_rate_increment=0.0,
    )
    return GameConfig(special_balls=specials, **overrides)
