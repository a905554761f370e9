from __future__ import annotations

from typing import Optional

from esper import World

from balldrop.components.piece import Piece
from balldrop.constants import WALL_KICKS
from balldrop.events.bus import EventBus
from balldrop.utils.world_state import get_grid, get_or_create_active_piece


class PieceControlSystem:
    """Moves, rotates and drops the active piece against the grid.

    Every method returns False (or leaves the piece untouched) when the move is
    blocked; only a successful move changes the piece.
    """

    def __init__(self, world: World, event_bus: EventBus) -> None:
        self.world = world
        self.event_bus = event_bus

    @property
    def piece(self) -> Optional[Piece]:
        return get_or_create_active_piece(self.world).current

    def spawn_column(self, piece: Piece) -> int:
        grid = get_grid(self.world)
        return grid.cols // 2 - piece.width // 2

    def spawn(self, piece: Piece) -> bool:
        """Center piece in the top row and make it current; False when it does not fit."""
        piece.set_position(0, self.spawn_column(piece))
        get_or_create_active_piece(self.world).current = piece
        return get_grid(self.world).is_valid_position(piece)

    def move(self, dcol: int) -> bool:
        return self._shift(0, dcol)

    def move_left(self) -> bool:
        return self._shift(0, -1)

    def move_right(self) -> bool:
        return self._shift(0, 1)

    def soft_drop(self) -> bool:
        return self._shift(1, 0)

    def rotate(self) -> bool:
        """Rotate clockwise, trying each wall kick in turn; revert when none fits."""
        piece = self.piece
        if piece is None:
            return False
        grid = get_grid(self.world)
        row, col = piece.position
        piece.rotate()
        for drow, dcol in ((0, 0),) + WALL_KICKS:
            if grid.is_valid_position(piece, row + drow, col + dcol):
                piece.set_position(row + drow, col + dcol)
                return True
        piece.rotate_counter_clockwise()
        return False

    def ghost_row(self) -> Optional[int]:
        """Lowest row the piece could drop to from its current position."""
        piece = self.piece
        if piece is None:
            return None
        grid = get_grid(self.world)
        row, col = piece.position
        while grid.is_valid_position(piece, row + 1, col):
            row += 1
        return row

    def hard_drop(self) -> int:
        """Drop straight to the ghost row; returns the number of rows fallen."""
        piece = self.piece
        target = self.ghost_row()
        if piece is None or target is None:
            return 0
        row, col = piece.position
        piece.set_position(target, col)
        return target - row

    def _shift(self, drow: int, dcol: int) -> bool:
        piece = self.piece
        if piece is None:
            return False
        row, col = piece.position
        if not get_grid(self.world).is_valid_position(piece, row + drow, col + dcol):
            return False
        piece.set_position(row + drow, col + dcol)
        return True
