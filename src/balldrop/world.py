import random

from esper import World

from balldrop.components.active_piece import ActivePiece
from balldrop.components.cascade_state import CascadeState
from balldrop.components.game_state import GameMode, GameState
from balldrop.components.grid import Grid
from balldrop.components.match_statistics import MatchStatistics
from balldrop.components.score_state import ScoreState
from balldrop.config_loader import GameConfig, default_config
from balldrop.events.bus import EventBus


def create_world(
    event_bus: EventBus,
    config: GameConfig | None = None,
    *,
    initial_mode: GameMode = GameMode.MENU,
    best_score: int = 0,
    rng: random.Random | None = None,
) -> World:
    config = config or default_config()
    world = World()
    setattr(world, "random", rng or random.Random())
    setattr(world, "config", config)

    # Board entity: the grid plus the piece falling onto it.
    world.create_entity(
        Grid(rows=config.grid.rows, cols=config.grid.cols),
        ActivePiece(),
    )

    # Session-wide state resource.
    world.create_entity(
        GameState(mode=initial_mode),
        CascadeState(),
        ScoreState(best_score=best_score),
        MatchStatistics(),
    )
    return world
