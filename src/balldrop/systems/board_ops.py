from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set, Tuple

from balldrop.components.ball import Ball, BallType
from balldrop.constants import EXPLOSION_RADIUS, MIN_MATCH_LENGTH

if TYPE_CHECKING:
    from balldrop.components.grid import Grid

Position = Tuple[int, int]


class MatchDirection(Enum):
    """Scan directions in tie-break order; the vector is (row step, col step)."""
    HORIZONTAL = (0, 1)
    VERTICAL = (1, 0)
    DIAGONAL_NE = (-1, 1)
    DIAGONAL_SE = (1, 1)
    DIAGONAL_SW = (1, -1)
    DIAGONAL_NW = (-1, -1)


@dataclass(slots=True)
class Match:
    direction: MatchDirection
    color: str
    positions: List[Position] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.positions)


@dataclass(slots=True)
class GravityMove:
    source: Position
    target: Position
    ball: Ball


def _line_starts(grid: Grid, step: Tuple[int, int]) -> List[Position]:
    """Cells whose predecessor along step falls outside the grid."""
    dr, dc = step
    starts: List[Position] = []
    for r in range(grid.rows):
        for c in range(grid.cols):
            if not grid.in_bounds(r - dr, c - dc):
                starts.append((r, c))
    return starts


def _scan_runs(grid: Grid, direction: MatchDirection, min_length: int) -> List[Tuple[str, List[Position]]]:
    dr, dc = direction.value
    runs: List[Tuple[str, List[Position]]] = []
    for start in _line_starts(grid, direction.value):
        run: List[Position] = []
        run_color: Optional[str] = None
        r, c = start
        # One step past the edge flushes the final run.
        while True:
            ball = grid.ball_at(r, c) if grid.in_bounds(r, c) else None
            color = ball.color if ball is not None and ball.is_matchable() else None
            if color is not None and color == run_color:
                run.append((r, c))
            else:
                if len(run) >= min_length:
                    runs.append((run_color, run))
                run = [(r, c)] if color is not None else []
                run_color = color
            if not grid.in_bounds(r, c):
                break
            r += dr
            c += dc
    return runs


def find_matches(grid: Grid, min_length: int = MIN_MATCH_LENGTH) -> List[Match]:
    """Detect maximal same-color runs of at least min_length in all six directions.

    Runs that share a cell with an already reported match are folded into it, so
    every ball belongs to at most one match. The merged match keeps the
    direction of the scan that found it first (MatchDirection order).
    """
    matches: List[Match] = []
    owner: Dict[Position, int] = {}
    for direction in MatchDirection:
        for color, run in _scan_runs(grid, direction, min_length):
            touched = sorted({owner[pos] for pos in run if pos in owner})
            if not touched:
                index = len(matches)
                matches.append(Match(direction=direction, color=color, positions=[]))
            else:
                index = touched[0]
                # A run bridging two earlier matches joins them under the earliest.
                for other in touched[1:]:
                    for pos in matches[other].positions:
                        owner[pos] = index
                    matches[index].positions.extend(matches[other].positions)
                    matches[other].positions = []
            target = matches[index]
            for pos in run:
                if owner.get(pos) != index:
                    owner[pos] = index
                    target.positions.append(pos)
    result = [m for m in matches if m.positions]
    for match in result:
        match.positions.sort()
    return result


def matched_positions(matches: Iterable[Match]) -> List[Position]:
    return sorted({pos for match in matches for pos in match.positions})


def compute_gravity_moves(grid: Grid) -> List[GravityMove]:
    moves: List[GravityMove] = []
    for col in range(grid.cols):
        write_row = grid.rows - 1
        for read_row in range(grid.rows - 1, -1, -1):
            ball = grid.cells[read_row][col]
            if ball is None:
                continue
            if read_row != write_row:
                moves.append(GravityMove(source=(read_row, col), target=(write_row, col), ball=ball))
            write_row -= 1
    return moves


def apply_gravity(grid: Grid) -> List[GravityMove]:
    """Compact every column downward, keeping vertical order. Idempotent."""
    moves = compute_gravity_moves(grid)
    # Moves within a column run bottom-up, so sources are vacated before reuse.
    for move in moves:
        src_row, src_col = move.source
        dst_row, dst_col = move.target
        grid.cells[dst_row][dst_col] = move.ball
        grid.cells[src_row][src_col] = None
    return moves


def explosion_area(grid: Grid, center: Position, radius: int = EXPLOSION_RADIUS) -> List[Position]:
    """Occupied cells within Chebyshev distance radius of center."""
    row, col = center
    area: List[Position] = []
    for r in range(max(0, row - radius), min(grid.rows, row + radius + 1)):
        for c in range(max(0, col - radius), min(grid.cols, col + radius + 1)):
            if grid.cells[r][c] is not None:
                area.append((r, c))
    return area


def painter_line(grid: Grid, origin: Position, direction: str) -> List[Position]:
    """Every in-bounds cell on the painter's row, column or both diagonals."""
    row, col = origin
    if direction == "horizontal":
        return [(row, c) for c in range(grid.cols)]
    if direction == "vertical":
        return [(r, col) for r in range(grid.rows)]
    if direction == "diagonal":
        cells: Set[Position] = set()
        for r in range(grid.rows):
            offset = r - row
            for c in (col + offset, col - offset):
                if 0 <= c < grid.cols:
                    cells.add((r, c))
        return sorted(cells)
    raise ValueError(f"Unknown painter direction {direction!r}")


def paint_line(grid: Grid, origin: Position) -> List[Position]:
    """Repaint the painter's line to its color; returns positions whose color changed."""
    painter = grid.ball_at(*origin)
    if painter is None or not painter.is_painter():
        return []
    painted: List[Position] = []
    for r, c in painter_line(grid, origin, painter.painter_direction()):
        ball = grid.cells[r][c]
        if ball is None or ball.type is BallType.BLOCKING or ball is painter:
            continue
        if ball.color != painter.color:
            ball.paint(painter.color)
            painted.append((r, c))
    return painted
