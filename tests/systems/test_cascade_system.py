import pytest

from balldrop.components.ball import BallType
from balldrop.components.cascade_state import CascadePhase
from balldrop.config_loader import GameConfig, GridConfig
from balldrop.events.bus import (
    EventBus,
    EVENT_BALLS_CLEARED,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_LEVEL_ADVANCE,
    EVENT_GRAVITY_APPLIED,
)
from balldrop.systems.board_ops import MatchDirection
from balldrop.systems.cascade import CAUSE_EXPLOSION, CAUSE_MATCH, CascadeSystem
from balldrop.utils.world_state import get_grid, get_or_create_cascade_state
from balldrop.world import create_world
from tests.helpers import BLOCKING_COLOR, BLUE, GREEN, RED, YELLOW, blocking, fill_grid, place, quiet_config

CASCADE_EVENTS = (
    EVENT_CASCADE_LEVEL_ADVANCE,
    EVENT_BALLS_CLEARED,
    EVENT_GRAVITY_APPLIED,
    EVENT_CASCADE_COMPLETE,
)


def _setup(config=None, **system_kwargs):
    bus = EventBus()
    world = create_world(bus, config or quiet_config())
    system = CascadeSystem(world, bus, **system_kwargs)
    return bus, world, get_grid(world), system


def _record(bus):
    seen = []
    for name in CASCADE_EVENTS:
        bus.subscribe(name, lambda sender, _name=name, **kw: seen.append((_name, kw)))
    return seen


def test_single_match_clears_and_completes():
    bus, world, grid, system = _setup()
    fill_grid(grid, ["RRRG"])
    seen = _record(bus)

    result = system.resolve()

    assert result.cascade_count == 1
    assert result.total_cleared == 3
    assert result.balls_per_level == [3]
    assert not result.depth_capped
    assert grid.ball_count() == 1
    assert grid.ball_at(24, 3).color == GREEN
    completes = [kw for name, kw in seen if name == EVENT_CASCADE_COMPLETE]
    assert completes == [{"cascade_count": 1, "total_cleared": 3, "depth_capped": False}]


def test_no_matches_still_reports_completion():
    bus, world, grid, system = _setup()
    fill_grid(grid, ["RG"])
    seen = _record(bus)

    result = system.resolve()

    assert result.cascade_count == 0
    assert result.total_cleared == 0
    assert [name for name, _ in seen] == [EVENT_CASCADE_COMPLETE]
    assert grid.ball_count() == 2


def test_gravity_creates_second_level_and_event_order():
    bus, world, grid, system = _setup()
    fill_grid(grid, ["..G", "..R", "..R", "GGR"])
    seen = _record(bus)

    result = system.resolve()

    assert result.balls_per_level == [3, 3]
    assert result.cascade_count == 2
    assert grid.ball_count() == 0
    assert [name for name, _ in seen] == [
        EVENT_CASCADE_LEVEL_ADVANCE,
        EVENT_BALLS_CLEARED,
        EVENT_GRAVITY_APPLIED,
        EVENT_CASCADE_LEVEL_ADVANCE,
        EVENT_BALLS_CLEARED,
        EVENT_GRAVITY_APPLIED,
        EVENT_CASCADE_COMPLETE,
    ]
    depths = [kw["depth"] for name, kw in seen if name == EVENT_BALLS_CLEARED]
    assert depths == [1, 2]
    first_clear = [kw for name, kw in seen if name == EVENT_BALLS_CLEARED][0]
    assert first_clear["count"] == 3
    assert {b.position for b in first_clear["balls"]} == {(22, 2), (23, 2), (24, 2)}


def test_state_returns_to_idle_flags_after_resolve():
    bus, world, grid, system = _setup()
    fill_grid(grid, ["RRR"])
    system.resolve()
    state = get_or_create_cascade_state(world)
    assert state.phase is CascadePhase.DONE
    assert not state.active
    assert state.depth == 1
    assert not system.is_active()


def test_explosion_clears_radius_including_blocking_balls():
    bus, world, grid, system = _setup()
    place(grid, 24, 3, BLUE)
    place(grid, 24, 4, GREEN)
    place(grid, 24, 6, RED)
    place(grid, 24, 7, RED, BallType.EXPLODING)
    place(grid, 24, 8, RED)
    grid.set_ball(24, 10, blocking())
    place(grid, 24, 11, YELLOW)

    result = system.resolve()

    level = result.levels[0]
    assert level.exploded == [(24, 4), (24, 10)]
    assert level.cleared_count == 5
    causes = {b.position: b.cause for b in level.cleared_balls}
    assert causes[(24, 7)] == CAUSE_MATCH
    assert causes[(24, 10)] == CAUSE_EXPLOSION
    blocking_cleared = [b for b in level.cleared_balls if b.type is BallType.BLOCKING]
    assert len(blocking_cleared) == 1 and blocking_cleared[0].color == BLOCKING_COLOR
    assert grid.ball_at(24, 3).color == BLUE
    assert grid.ball_at(24, 11).color == YELLOW
    assert grid.ball_count() == 2


def test_exploding_ball_caught_in_blast_does_not_chain():
    bus, world, grid, system = _setup()
    place(grid, 24, 1, YELLOW)
    place(grid, 24, 4, GREEN, BallType.EXPLODING)
    place(grid, 24, 6, RED)
    place(grid, 24, 7, RED, BallType.EXPLODING)
    place(grid, 24, 8, RED)

    result = system.resolve()

    assert result.levels[0].exploded == [(24, 4)]
    assert grid.ball_at(24, 1).color == YELLOW
    assert grid.ball_count() == 1


def test_painter_creates_new_run_cleared_in_same_level():
    bus, world, grid, system = _setup()
    fill_grid(grid, [".R...", ".R...", "G.BBX"])
    place(grid, 24, 1, RED, BallType.PAINTER_HORIZONTAL)

    result = system.resolve()

    assert result.cascade_count == 1
    level = result.levels[0]
    assert level.painted == [(24, 0), (24, 2), (24, 3)]
    assert level.cleared_count == 6
    assert len(level.matches) == 1
    assert level.matches[0].direction is MatchDirection.HORIZONTAL
    assert grid.ball_at(24, 1) is None
    assert grid.ball_count() == 1
    assert grid.ball_at(24, 4).color == BLOCKING_COLOR


def test_painter_outside_match_does_nothing():
    bus, world, grid, system = _setup()
    fill_grid(grid, ["RRRG"])
    place(grid, 24, 5, BLUE, BallType.PAINTER_HORIZONTAL)

    result = system.resolve()

    assert result.levels[0].painted == []
    assert grid.ball_at(24, 3).color == GREEN


def _nested_column(levels):
    """Bottom-up colors for one column that clears exactly one triple per level."""
    colors = [RED if i % 2 else GREEN for i in range(1, levels + 1)]
    stack = []
    for color in colors[:-1]:
        stack.extend([color, color])
    stack.extend([colors[-1]] * 3)
    stack.extend(reversed(colors[:-1]))
    return stack


def test_depth_cap_stops_at_ten_levels_even_with_matches_left():
    config = quiet_config(grid=GridConfig(rows=40, cols=3))
    bus, world, grid, system = _setup(config)
    stack = _nested_column(12)
    for offset, color in enumerate(stack):
        place(grid, grid.rows - 1 - offset, 0, color)
    assert len(grid.find_matches()) == 1

    result = system.resolve()

    assert result.cascade_count == 10
    assert result.depth_capped
    assert result.balls_per_level == [3] * 10
    assert grid.find_matches()


def test_custom_depth_cap():
    bus, world, grid, system = _setup(max_depth=1)
    fill_grid(grid, ["..G", "..R", "..R", "GGR"])

    result = system.resolve()

    assert result.cascade_count == 1
    assert result.depth_capped
    assert len(grid.find_matches()) == 1


def test_depth_cap_comes_from_world_config():
    config = GameConfig(grid=GridConfig(rows=10, cols=5))
    bus, world, grid, system = _setup(config)
    assert system.max_depth == 10
    assert (grid.rows, grid.cols) == (10, 5)


def test_nested_resolve_is_ignored():
    bus, world, grid, system = _setup()
    fill_grid(grid, ["RRR"])
    nested = []
    bus.subscribe(EVENT_BALLS_CLEARED, lambda sender, **kw: nested.append(system.resolve()))

    result = system.resolve()

    assert result.cascade_count == 1
    assert nested and nested[0].cascade_count == 0


def test_match_on_empty_cell_is_a_defect():
    bus, world, grid, system = _setup()
    with pytest.raises(RuntimeError):
        system._require_ball(grid, (0, 0))


def test_painted_painter_fires_in_the_same_level():
    bus, world, grid, system = _setup()
    fill_grid(grid, [".R.Y", ".R.G", "G.B."])
    place(grid, 24, 1, RED, BallType.PAINTER_HORIZONTAL)
    place(grid, 24, 3, BLUE, BallType.PAINTER_VERTICAL)

    result = system.resolve()

    assert result.cascade_count == 1
    level = result.levels[0]
    assert level.painted == [(24, 0), (24, 2), (24, 3), (22, 3), (23, 3)]
    assert level.cleared_count == 8
    assert level.exploded == []
    assert grid.ball_count() == 0


def test_painter_paints_exploding_ball_into_match():
    bus, world, grid, system = _setup()
    fill_grid(grid, [".R....", ".R....", "G....YY"])
    place(grid, 24, 1, RED, BallType.PAINTER_HORIZONTAL)
    place(grid, 24, 2, BLUE, BallType.EXPLODING)
    grid.set_ball(21, 4, blocking())

    result = system.resolve()

    level = result.levels[0]
    assert (24, 2) in level.painted
    assert level.exploded == [(21, 4), (24, 5)]
    assert level.cleared_count == 7
    causes = {b.position: b.cause for b in level.cleared_balls}
    assert causes[(24, 2)] == CAUSE_MATCH
    assert causes[(24, 5)] == CAUSE_EXPLOSION
    assert grid.ball_count() == 1
    assert grid.ball_at(24, 6).color == RED


def test_vertical_painter_repaints_its_column():
    bus, world, grid, system = _setup()
    fill_grid(grid, [".Y.", ".B.", ".G.", "R.R"])
    place(grid, 24, 1, RED, BallType.PAINTER_VERTICAL)

    result = system.resolve()

    assert result.cascade_count == 1
    level = result.levels[0]
    assert level.painted == [(21, 1), (22, 1), (23, 1)]
    assert level.cleared_count == 6
    assert grid.ball_count() == 0


def test_diagonal_painter_repaints_both_diagonals():
    bus, world, grid, system = _setup()
    fill_grid(grid, ["..B...B", "...G.G.", "...R.R."])
    place(grid, 24, 4, RED, BallType.PAINTER_DIAGONAL)

    result = system.resolve()

    assert result.cascade_count == 1
    level = result.levels[0]
    assert level.painted == [(22, 2), (22, 6), (23, 3), (23, 5)]
    assert level.cleared_count == 7
    directions = {match.direction for match in level.matches}
    assert MatchDirection.HORIZONTAL in directions
    assert grid.ball_count() == 0
