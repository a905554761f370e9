from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from balldrop.components.ball import Ball
from balldrop.errors import InvalidShapeConfiguration

Position = Tuple[int, int]
Shape = List[List[int]]


class PieceType(Enum):
    I = "I"
    O = "O"
    T = "T"
    L = "L"
    J = "J"
    S = "S"
    Z = "Z"
    SINGLE = "SINGLE"


def validate_shape(shape: Sequence[Sequence[int]]) -> Shape:
    """Return a copy of shape after checking it is a non-empty rectangular 0/1 matrix."""
    if not isinstance(shape, (list, tuple)) or not all(isinstance(row, (list, tuple)) for row in shape):
        raise InvalidShapeConfiguration(f"Shape must be a list of rows, got {shape!r}")
    if not shape or not shape[0]:
        raise InvalidShapeConfiguration("Shape must have at least one row and one column")
    width = len(shape[0])
    copied: Shape = []
    for row in shape:
        if len(row) != width:
            raise InvalidShapeConfiguration(f"Shape rows must have equal length, got {[len(r) for r in shape]}")
        for value in row:
            if value not in (0, 1):
                raise InvalidShapeConfiguration(f"Shape cells must be 0 or 1, got {value!r}")
        copied.append([int(v) for v in row])
    if not any(any(row) for row in copied):
        raise InvalidShapeConfiguration("Shape has no occupied cells")
    return copied


def count_cells(shape: Sequence[Sequence[int]]) -> int:
    return sum(1 for row in shape for value in row if value == 1)


@dataclass(slots=True, init=False, eq=False)
class Piece:
    """Falling composition of balls laid out on a shape matrix.

    Balls are keyed by their cell in the current shape. Rotation moves the keys
    with the cells, so a ball always sits on the cell its original cell rotated
    onto. ``position`` is the (row, col) of the shape's top-left corner in
    grid coordinates.
    """

    shape_type: PieceType
    shape: Shape
    position: Position
    _cells: Dict[Position, Ball] = field(default_factory=dict)

    def __init__(
        self,
        shape_type: PieceType,
        shape: Sequence[Sequence[int]],
        balls: Sequence[Ball],
        position: Position = (0, 0),
    ) -> None:
        matrix = validate_shape(shape)
        expected = count_cells(matrix)
        if expected != len(balls):
            raise InvalidShapeConfiguration(
                f"Shape {shape_type.value} has {expected} cells but {len(balls)} balls were supplied"
            )
        self.shape_type = shape_type
        self.shape = matrix
        self.position = position
        self._cells = {}
        ball_iter = iter(balls)
        for r, row in enumerate(matrix):
            for c, value in enumerate(row):
                if value == 1:
                    self._cells[(r, c)] = next(ball_iter)

    @property
    def height(self) -> int:
        return len(self.shape)

    @property
    def width(self) -> int:
        return len(self.shape[0])

    @property
    def ball_count(self) -> int:
        return len(self._cells)

    @property
    def balls(self) -> List[Ball]:
        """Balls in row-major order over the current shape."""
        return [self._cells[pos] for pos in sorted(self._cells)]

    def set_position(self, row: int, col: int) -> None:
        self.position = (row, col)

    def rotate(self) -> None:
        """Rotate 90 degrees clockwise: new[c][R-1-r] = old[r][c]."""
        rows = self.height
        cols = self.width
        rotated: Shape = [[0] * rows for _ in range(cols)]
        for r in range(rows):
            for c in range(cols):
                rotated[c][rows - 1 - r] = self.shape[r][c]
        self.shape = rotated
        self._cells = {(c, rows - 1 - r): ball for (r, c), ball in self._cells.items()}

    def rotate_counter_clockwise(self) -> None:
        for _ in range(3):
            self.rotate()

    def ball_at(self, row: int, col: int) -> Optional[Ball]:
        if not (0 <= row < self.height and 0 <= col < self.width):
            return None
        return self._cells.get((row, col))

    def local_cells(self) -> Iterator[Tuple[Position, Ball]]:
        for pos in sorted(self._cells):
            yield pos, self._cells[pos]

    def cells(self) -> Iterator[Tuple[Position, Ball]]:
        """Yield absolute grid positions with the ball occupying each."""
        origin_row, origin_col = self.position
        for (r, c), ball in self.local_cells():
            yield (origin_row + r, origin_col + c), ball

    def occupied_positions(self) -> List[Position]:
        return [pos for pos, _ in self.cells()]

    def __repr__(self) -> str:
        return f"Piece({self.shape_type.value}, shape={self.shape}, position={self.position})"
