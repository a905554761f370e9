from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Set, Tuple

from esper import World

from balldrop.components.ball import Ball, BallType
from balldrop.components.cascade_state import CascadePhase, CascadeState
from balldrop.components.grid import Grid
from balldrop.constants import EXPLOSION_RADIUS, MAX_CASCADE_DEPTH, MIN_MATCH_LENGTH
from balldrop.events.bus import (
    EventBus,
    EVENT_BALLS_CLEARED,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_LEVEL_ADVANCE,
    EVENT_GRAVITY_APPLIED,
)
from balldrop.systems.board_ops import (
    GravityMove,
    Match,
    apply_gravity,
    explosion_area,
    find_matches,
    matched_positions,
    paint_line,
)
from balldrop.utils.world_state import get_grid, get_or_create_cascade_state

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

CAUSE_MATCH = "match"
CAUSE_EXPLOSION = "explosion"


@dataclass(slots=True)
class ClearedBall:
    type: BallType
    color: str
    position: Position
    cause: str = CAUSE_MATCH


@dataclass(slots=True)
class CascadeLevel:
    """One MATCHING -> CLEARING -> GRAVITY pass. depth is 1 for the first level."""

    depth: int
    cleared_balls: List[ClearedBall] = field(default_factory=list)
    matches: List[Match] = field(default_factory=list)
    painted: List[Position] = field(default_factory=list)
    exploded: List[Position] = field(default_factory=list)
    gravity_moves: List[GravityMove] = field(default_factory=list)

    @property
    def cleared_count(self) -> int:
        return len(self.cleared_balls)


@dataclass(slots=True)
class CascadeResult:
    levels: List[CascadeLevel] = field(default_factory=list)
    depth_capped: bool = False

    @property
    def cascade_count(self) -> int:
        return len(self.levels)

    @property
    def total_cleared(self) -> int:
        return sum(level.cleared_count for level in self.levels)

    @property
    def balls_per_level(self) -> List[int]:
        return [level.cleared_count for level in self.levels]


class CascadeSystem:
    """Resolves matches after a piece locks until the grid is stable or the depth cap is hit.

    Runs synchronously: every level's clear event is emitted before that level's
    gravity, and EVENT_CASCADE_COMPLETE is emitted exactly once per resolve().
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        max_depth: int | None = None,
        explosion_radius: int | None = None,
        min_match_length: int | None = None,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        config = getattr(world, "config", None)
        cascade_config = config.cascade if config is not None else None
        self.max_depth = max_depth if max_depth is not None else (
            cascade_config.max_depth if cascade_config else MAX_CASCADE_DEPTH
        )
        self.explosion_radius = explosion_radius if explosion_radius is not None else (
            cascade_config.explosion_radius if cascade_config else EXPLOSION_RADIUS
        )
        self.min_match_length = min_match_length if min_match_length is not None else (
            cascade_config.min_match_length if cascade_config else MIN_MATCH_LENGTH
        )

    @property
    def state(self) -> CascadeState:
        return get_or_create_cascade_state(self.world)

    def is_active(self) -> bool:
        return self.state.active

    def resolve(self) -> CascadeResult:
        state = self.state
        if state.active:
            logger.debug("Cascade already in progress; ignoring nested resolve")
            return CascadeResult()
        grid = get_grid(self.world)
        result = CascadeResult()
        state.active = True
        state.depth = 0
        state.depth_capped = False
        state.phase = CascadePhase.SETTLING
        try:
            while True:
                state.phase = CascadePhase.MATCHING
                matches = find_matches(grid, self.min_match_length)
                if not matches:
                    break
                level = self._resolve_level(grid, state, matches)
                result.levels.append(level)
                if state.depth >= self.max_depth:
                    state.depth_capped = True
                    logger.debug("Cascade depth cap %d reached", self.max_depth)
                    break
            state.phase = CascadePhase.DONE
            result.depth_capped = state.depth_capped
            self.event_bus.emit(
                EVENT_CASCADE_COMPLETE,
                cascade_count=result.cascade_count,
                total_cleared=result.total_cleared,
                depth_capped=result.depth_capped,
            )
        finally:
            state.active = False
        return result

    def _resolve_level(self, grid: Grid, state: CascadeState, matches: List[Match]) -> CascadeLevel:
        depth = state.depth + 1
        level = CascadeLevel(depth=depth)
        self.event_bus.emit(
            EVENT_CASCADE_LEVEL_ADVANCE,
            depth=depth,
            positions=matched_positions(matches),
        )

        state.phase = CascadePhase.RESOLVING_EFFECTS
        matched: Set[Position] = set(matched_positions(matches))
        matches, painted = self._resolve_painters(grid, matches, matched)
        level.matches = matches
        level.painted = painted

        blast: Set[Position] = set()
        for pos in sorted(matched):
            ball = self._require_ball(grid, pos)
            if ball.is_exploding():
                # Balls caught in a blast do not trigger their own effects.
                blast.update(explosion_area(grid, pos, self.explosion_radius))
        exploded = sorted(blast - matched)
        level.exploded = exploded

        state.phase = CascadePhase.CLEARING
        for pos in sorted(matched):
            ball = self._require_ball(grid, pos)
            level.cleared_balls.append(ClearedBall(ball.type, ball.color, pos, CAUSE_MATCH))
        for pos in exploded:
            ball = self._require_ball(grid, pos)
            level.cleared_balls.append(ClearedBall(ball.type, ball.color, pos, CAUSE_EXPLOSION))
        for cleared in level.cleared_balls:
            grid.remove_ball(*cleared.position)
        state.depth = depth
        logger.debug(
            "Cascade level %d cleared %d balls (%d matched, %d exploded, %d painted)",
            depth,
            level.cleared_count,
            len(matched),
            len(exploded),
            len(painted),
        )
        self.event_bus.emit(
            EVENT_BALLS_CLEARED,
            depth=depth,
            count=level.cleared_count,
            balls=list(level.cleared_balls),
        )

        state.phase = CascadePhase.GRAVITY
        level.gravity_moves = apply_gravity(grid)
        self.event_bus.emit(EVENT_GRAVITY_APPLIED, depth=depth, moves=level.gravity_moves)
        return level

    def _resolve_painters(
        self, grid: Grid, matches: List[Match], matched: Set[Position]
    ) -> Tuple[List[Match], List[Position]]:
        """Fire every matched painter once, re-detecting after each round.

        matched is extended in place with every position that was part of a
        match in any round, so balls painted into a new run clear this level.
        """
        fired: Set[int] = set()
        painted: List[Position] = []
        while True:
            pending: List[Tuple[Position, Ball]] = []
            for pos in sorted(matched):
                ball = self._require_ball(grid, pos)
                if ball.is_painter() and id(ball) not in fired:
                    pending.append((pos, ball))
            if not pending:
                return matches, painted
            for pos, ball in pending:
                fired.add(id(ball))
                for changed in paint_line(grid, pos):
                    if changed not in painted:
                        painted.append(changed)
            matches = find_matches(grid, self.min_match_length)
            matched.update(matched_positions(matches))

    @staticmethod
    def _require_ball(grid: Grid, pos: Position) -> Ball:
        ball = grid.ball_at(*pos)
        if ball is None:
            raise RuntimeError(f"Match references empty cell {pos}")
        return ball
