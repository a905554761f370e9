from typing import Type, TypeVar

from esper import World

from balldrop.components.active_piece import ActivePiece
from balldrop.components.cascade_state import CascadeState
from balldrop.components.game_state import GameState
from balldrop.components.grid import Grid
from balldrop.components.match_statistics import MatchStatistics
from balldrop.components.score_state import ScoreState

T = TypeVar("T")


def _get_or_create(world: World, component_type: Type[T]) -> T:
    existing = list(world.get_component(component_type))
    if existing:
        return existing[0][1]
    world.create_entity(component_type())
    return list(world.get_component(component_type))[0][1]


def get_grid(world: World) -> Grid:
    """Return the shared Grid component, creating a default-sized one if absent."""
    return _get_or_create(world, Grid)


def get_or_create_cascade_state(world: World) -> CascadeState:
    return _get_or_create(world, CascadeState)


def get_or_create_score_state(world: World) -> ScoreState:
    return _get_or_create(world, ScoreState)


def get_or_create_statistics(world: World) -> MatchStatistics:
    return _get_or_create(world, MatchStatistics)


def get_or_create_game_state(world: World) -> GameState:
    return _get_or_create(world, GameState)


def get_or_create_active_piece(world: World) -> ActivePiece:
    return _get_or_create(world, ActivePiece)
