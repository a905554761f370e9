from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from balldrop.components.ball import Ball
from balldrop.components.piece import Piece
from balldrop.constants import GRID_COLS, GRID_ROWS
from balldrop.errors import PlacementBlocked

Position = Tuple[int, int]


@dataclass(slots=True)
class Grid:
    """The playfield: a fixed rows x cols matrix of balls, row 0 at the top.

    Only placement, clearing and gravity mutate the cells. Matching and gravity
    live in ``balldrop.systems.board_ops``; the methods here forward to them.
    """

    rows: int = GRID_ROWS
    cols: int = GRID_COLS
    cells: List[List[Optional[Ball]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {self.rows}x{self.cols}")
        if not self.cells:
            self.cells = [[None] * self.cols for _ in range(self.rows)]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def ball_at(self, row: int, col: int) -> Optional[Ball]:
        if not self.in_bounds(row, col):
            return None
        return self.cells[row][col]

    def is_empty(self, row: int, col: int) -> bool:
        return self.ball_at(row, col) is None

    def set_ball(self, row: int, col: int, ball: Optional[Ball]) -> None:
        if not self.in_bounds(row, col):
            raise IndexError(f"Cell {(row, col)} is outside the {self.rows}x{self.cols} grid")
        self.cells[row][col] = ball

    def remove_ball(self, row: int, col: int) -> Optional[Ball]:
        ball = self.ball_at(row, col)
        if ball is not None:
            self.cells[row][col] = None
        return ball

    def clear(self) -> None:
        for row in self.cells:
            for col in range(self.cols):
                row[col] = None

    def occupied_cells(self) -> Iterator[Tuple[Position, Ball]]:
        for r, row in enumerate(self.cells):
            for c, ball in enumerate(row):
                if ball is not None:
                    yield (r, c), ball

    def ball_count(self) -> int:
        return sum(1 for _ in self.occupied_cells())

    def blocked_cells(self, piece: Piece, row: int | None = None, col: int | None = None) -> List[Position]:
        """Absolute cells the piece would occupy that are out of bounds or taken."""
        origin_row, origin_col = piece.position
        if row is not None:
            origin_row = row
        if col is not None:
            origin_col = col
        blocked: List[Position] = []
        for (r, c), _ in piece.local_cells():
            target = (origin_row + r, origin_col + c)
            if not self.in_bounds(*target) or self.cells[target[0]][target[1]] is not None:
                blocked.append(target)
        return blocked

    def is_valid_position(self, piece: Piece, row: int | None = None, col: int | None = None) -> bool:
        return not self.blocked_cells(piece, row, col)

    def place_piece(self, piece: Piece) -> List[Position]:
        """Write every ball of the piece into the grid at its current position.

        All-or-nothing: raises PlacementBlocked without touching any cell when a
        target is occupied or out of bounds.
        """
        blocked = self.blocked_cells(piece)
        if blocked:
            above_top = any(r < 0 for r, _ in blocked)
            raise PlacementBlocked(blocked, reason="above top" if above_top else "blocked")
        placed: List[Position] = []
        for (r, c), ball in piece.cells():
            self.cells[r][c] = ball
            placed.append((r, c))
        return placed

    def is_column_full(self, col: int) -> bool:
        if not 0 <= col < self.cols:
            return False
        return self.cells[0][col] is not None

    def is_any_column_full(self) -> bool:
        return any(self.is_column_full(col) for col in range(self.cols))

    def is_settled(self) -> bool:
        """True when no empty cell sits directly below an occupied one."""
        for col in range(self.cols):
            seen_ball = False
            for row in range(self.rows):
                if self.cells[row][col] is not None:
                    seen_ball = True
                elif seen_ball:
                    return False
        return True

    def find_matches(self, min_length: int | None = None):
        from balldrop.systems.board_ops import find_matches
        if min_length is None:
            return find_matches(self)
        return find_matches(self, min_length=min_length)

    def apply_gravity(self):
        from balldrop.systems.board_ops import apply_gravity
        return apply_gravity(self)
