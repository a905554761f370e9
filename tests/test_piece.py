import pytest

from balldrop.components.ball import Ball, BallType
from balldrop.components.piece import Piece, PieceType, count_cells, validate_shape
from balldrop.errors import InvalidShapeConfiguration


def _balls(n):
    return [Ball(BallType.NORMAL, f"c{i}") for i in range(n)]


def test_balls_map_onto_cells_in_row_major_order():
    a, b, c, d = _balls(4)
    piece = Piece(PieceType.T, [[1, 1, 1], [0, 1, 0]], [a, b, c, d])
    assert piece.ball_at(0, 0) is a
    assert piece.ball_at(0, 1) is b
    assert piece.ball_at(0, 2) is c
    assert piece.ball_at(1, 1) is d
    assert piece.ball_at(1, 0) is None
    assert piece.ball_at(5, 5) is None
    assert piece.balls == [a, b, c, d]
    assert piece.ball_count == 4


def test_ball_count_must_match_shape():
    with pytest.raises(InvalidShapeConfiguration):
        Piece(PieceType.I, [[1, 1, 1, 1]], _balls(3))


@pytest.mark.parametrize(
    "shape",
    [
        [],
        [[]],
        [[1, 1], [1]],
        [[0, 0], [0, 0]],
        [[1, 2]],
        5,
        "11",
        [1, 1],
        [[1, 1], "11"],
    ],
)
def test_malformed_shapes_rejected(shape):
    with pytest.raises(InvalidShapeConfiguration):
        validate_shape(shape)


def test_count_cells():
    assert count_cells([[1, 1, 1], [1, 1, 1]]) == 6
    assert count_cells([[0, 1], [0, 1], [1, 1]]) == 4


def test_rotate_moves_balls_with_their_cells():
    a, b, c, d = _balls(4)
    piece = Piece(PieceType.L, [[1, 0], [1, 0], [1, 1]], [a, b, c, d])

    piece.rotate()

    assert piece.shape == [[1, 1, 1], [1, 0, 0]]
    assert piece.ball_at(0, 0) is c
    assert piece.ball_at(0, 1) is b
    assert piece.ball_at(0, 2) is a
    assert piece.ball_at(1, 0) is d
    assert piece.width == 3 and piece.height == 2


def test_four_rotations_restore_shape_and_ball_layout():
    balls = _balls(4)
    piece = Piece(PieceType.S, [[0, 1, 1], [1, 1, 0]], balls)
    before = list(piece.local_cells())
    for _ in range(4):
        piece.rotate()
    assert piece.shape == [[0, 1, 1], [1, 1, 0]]
    assert list(piece.local_cells()) == before


def test_counter_clockwise_undoes_clockwise():
    balls = _balls(4)
    piece = Piece(PieceType.J, [[0, 1], [0, 1], [1, 1]], balls)
    before = list(piece.local_cells())
    piece.rotate()
    piece.rotate_counter_clockwise()
    assert list(piece.local_cells()) == before


def test_i_piece_rotates_to_vertical():
    piece = Piece(PieceType.I, [[1, 1, 1, 1]], _balls(4))
    piece.rotate()
    assert piece.shape == [[1], [1], [1], [1]]
    assert (piece.height, piece.width) == (4, 1)


def test_absolute_positions_follow_piece_position():
    piece = Piece(PieceType.O, [[1, 1, 1], [1, 1, 1]], _balls(6), position=(3, 4))
    assert piece.occupied_positions() == [(3, 4), (3, 5), (3, 6), (4, 4), (4, 5), (4, 6)]
    piece.set_position(10, 0)
    assert piece.occupied_positions()[0] == (10, 0)
