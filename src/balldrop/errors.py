from __future__ import annotations

from typing import Iterable, Tuple

Position = Tuple[int, int]


class BallDropError(Exception):
    """Base class for errors raised by the puzzle core."""


class PlacementBlocked(BallDropError):
    """A piece cannot be written into the grid.

    Raised when any target cell is occupied or outside the grid (including above
    the top row). Callers treat it as game over; placement is never retried.
    """

    def __init__(self, positions: Iterable[Position], reason: str = "blocked") -> None:
        self.positions: tuple[Position, ...] = tuple(positions)
        self.reason = reason
        super().__init__(f"Placement {reason} at {list(self.positions)}")


class InvalidShapeConfiguration(BallDropError):
    """Shape matrix is malformed or does not agree with the ball count."""
