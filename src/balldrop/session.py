"""Game session: one world, one bus and every system that plays on them."""
from __future__ import annotations

import logging
import random
from typing import Optional

from esper import World

from balldrop.components.game_state import GameMode
from balldrop.components.grid import Grid
from balldrop.components.match_statistics import MatchStatistics
from balldrop.components.piece import Piece
from balldrop.config_loader import GameConfig, load_config
from balldrop.constants import MAX_DIFFICULTY, MIN_DIFFICULTY
from balldrop.errors import PlacementBlocked
from balldrop.events.bus import (
    EVENT_GAME_OVER,
    EVENT_GAME_START,
    EVENT_PIECE_LOCKED,
    EVENT_PIECE_SPAWNED,
    EventBus,
)
from balldrop.factories.pieces import PieceFactory
from balldrop.systems.cascade import CascadeResult, CascadeSystem
from balldrop.systems.piece_control import PieceControlSystem
from balldrop.systems.score_system import ScoreSystem
from balldrop.systems.statistics_system import StatisticsSystem
from balldrop.utils.game_state import set_game_mode
from balldrop.utils.world_state import (
    get_grid,
    get_or_create_active_piece,
    get_or_create_game_state,
)
from balldrop.world import create_world

logger = logging.getLogger(__name__)


class GameSession:
    """Drives start -> spawn -> move -> lock -> cascade -> score -> next piece.

    Every manager is an instance owned here; nothing is shared between sessions.
    Control methods are no-ops (returning False or None) unless the session is
    PLAYING and no cascade is running.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        *,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
        best_score: int = 0,
    ) -> None:
        self.config = config or load_config()
        self.event_bus = event_bus or EventBus()
        self.world: World = create_world(self.event_bus, self.config, best_score=best_score, rng=rng)
        self.piece_factory = PieceFactory(self.config, rng=getattr(self.world, "random"))
        self.cascade_system = CascadeSystem(self.world, self.event_bus)
        self.score_system = ScoreSystem(self.world, self.event_bus, self.config.scoring)
        self.statistics_system = StatisticsSystem(self.world, self.event_bus, self.piece_factory)
        self.piece_control = PieceControlSystem(self.world, self.event_bus)

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    @property
    def grid(self) -> Grid:
        return get_grid(self.world)

    @property
    def mode(self) -> GameMode:
        return get_or_create_game_state(self.world).mode

    @property
    def current_piece(self) -> Optional[Piece]:
        return get_or_create_active_piece(self.world).current

    @property
    def next_piece(self) -> Optional[Piece]:
        return get_or_create_active_piece(self.world).next

    @property
    def is_game_over(self) -> bool:
        return self.mode is GameMode.GAME_OVER

    @property
    def score(self) -> int:
        return self.score_system.score

    @property
    def best_score(self) -> int:
        return self.score_system.best_score

    @property
    def statistics(self) -> MatchStatistics:
        return self.statistics_system.stats

    def can_control(self) -> bool:
        return (
            self.mode is GameMode.PLAYING
            and not self.cascade_system.is_active()
            and self.current_piece is not None
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, difficulty: int = 1, level: int = 1) -> None:
        if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
            raise ValueError(f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}, got {difficulty}")
        if level < 1:
            raise ValueError(f"Level must be at least 1, got {level}")
        self.grid.clear()
        self.piece_factory.reset()
        self.score_system.reset(difficulty)
        self.statistics_system.reset(level)
        state = get_or_create_game_state(self.world)
        state.level = level
        state.difficulty = difficulty
        active = get_or_create_active_piece(self.world)
        active.current = None
        active.next = None
        set_game_mode(self.world, self.event_bus, GameMode.PLAYING)
        self.event_bus.emit(EVENT_GAME_START, difficulty=difficulty, level=level)
        self._spawn_next()

    def pause(self) -> None:
        if self.mode is GameMode.PLAYING:
            set_game_mode(self.world, self.event_bus, GameMode.PAUSED)

    def resume(self) -> None:
        if self.mode is GameMode.PAUSED:
            set_game_mode(self.world, self.event_bus, GameMode.PLAYING)

    # ------------------------------------------------------------------
    # Piece control
    # ------------------------------------------------------------------

    def move_left(self) -> bool:
        return self.can_control() and self.piece_control.move_left()

    def move_right(self) -> bool:
        return self.can_control() and self.piece_control.move_right()

    def rotate(self) -> bool:
        return self.can_control() and self.piece_control.rotate()

    def soft_drop(self) -> bool:
        return self.can_control() and self.piece_control.soft_drop()

    def step(self) -> Optional[CascadeResult]:
        """One gravity tick: move the piece down a row, or lock it when it cannot fall."""
        if not self.can_control():
            return None
        if self.piece_control.soft_drop():
            return None
        return self.lock_piece()

    def hard_drop(self) -> Optional[CascadeResult]:
        if not self.can_control():
            return None
        self.piece_control.hard_drop()
        return self.lock_piece()

    def lock_piece(self) -> Optional[CascadeResult]:
        """Write the current piece into the grid and resolve the resulting cascade.

        Returns None (and ends the game) when the piece cannot be placed.
        """
        if not self.can_control():
            return None
        piece = self.current_piece
        try:
            positions = self.grid.place_piece(piece)
        except PlacementBlocked as exc:
            self._game_over(exc.reason)
            return None
        get_or_create_active_piece(self.world).current = None
        self.event_bus.emit(EVENT_PIECE_LOCKED, piece=piece, positions=positions)
        result = self.cascade_system.resolve()
        self.score_system.apply_cascade_result(result)
        self.statistics_system.apply_cascade_result(result)
        self._spawn_next()
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _generate_piece(self) -> Piece:
        state = get_or_create_game_state(self.world)
        return self.piece_factory.generate_piece(state.level, state.difficulty)

    def _spawn_next(self) -> bool:
        active = get_or_create_active_piece(self.world)
        piece = active.next or self._generate_piece()
        active.next = self._generate_piece()
        if not self.piece_control.spawn(piece):
            self._game_over("spawn blocked")
            return False
        self.event_bus.emit(EVENT_PIECE_SPAWNED, piece=piece, next_piece=active.next)
        return True

    def _game_over(self, reason: str) -> None:
        set_game_mode(self.world, self.event_bus, GameMode.GAME_OVER)
        logger.info("Game over (%s): score=%d best=%d", reason, self.score, self.best_score)
        self.event_bus.emit(EVENT_GAME_OVER, score=self.score, best_score=self.best_score, reason=reason)
