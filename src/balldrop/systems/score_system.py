from __future__ import annotations

import math
from typing import Sequence

from esper import World

from balldrop.components.score_state import ScoreState
from balldrop.config_loader import ScoringConfig
from balldrop.events.bus import EventBus, EVENT_SCORE_UPDATE
from balldrop.utils.world_state import get_or_create_score_state


def calculate_cascade_score(
    balls_per_level: Sequence[int],
    cascade_count: int,
    difficulty: int,
    scoring: ScoringConfig | None = None,
) -> int:
    """Points for one cascade sequence.

    Level i (0-based) is worth balls * base * (i + 1); sequences of two or more
    levels add bonus * (N - 1); the sum is scaled by the difficulty multiplier
    and floored.
    """
    scoring = scoring or ScoringConfig()
    raw = 0
    for index, balls in enumerate(balls_per_level):
        raw += balls * scoring.base_points_per_ball * (index + 1)
    if cascade_count >= 2:
        raw += scoring.cascade_base_bonus * (cascade_count - 1)
    return math.floor(raw * scoring.multiplier_for(difficulty))


class ScoreSystem:
    """Accumulates the session score from completed cascade sequences."""

    def __init__(self, world: World, event_bus: EventBus, scoring: ScoringConfig | None = None) -> None:
        self.world = world
        self.event_bus = event_bus
        if scoring is None:
            config = getattr(world, "config", None)
            scoring = config.scoring if config is not None else ScoringConfig()
        self.scoring = scoring

    @property
    def state(self) -> ScoreState:
        return get_or_create_score_state(self.world)

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def best_score(self) -> int:
        return self.state.best_score

    def has_open_sequence(self) -> bool:
        return self.state.open_levels is not None

    def record_level(self, count: int) -> None:
        state = self.state
        if state.open_levels is None:
            state.open_levels = []
        state.open_levels.append(count)

    def complete_sequence(self, cascade_count: int | None = None) -> int:
        """Score and close the open sequence. Without one this does nothing and returns 0."""
        state = self.state
        if state.open_levels is None:
            return 0
        levels = state.open_levels
        if cascade_count is None:
            cascade_count = len(levels)
        points = calculate_cascade_score(levels, cascade_count, state.difficulty, self.scoring)
        state.open_levels = None
        self._award(points, cascade_count=cascade_count)
        return points

    def apply_cascade_result(self, result) -> int:
        for level in result.levels:
            self.record_level(level.cleared_count)
        return self.complete_sequence(result.cascade_count)

    def add_points(self, points: int) -> None:
        self._award(points, cascade_count=None)

    def reset(self, difficulty: int | None = None) -> None:
        state = self.state
        if difficulty is not None:
            state.difficulty = difficulty
        state.score = 0
        state.last_points = 0
        state.open_levels = None
        self.event_bus.emit(
            EVENT_SCORE_UPDATE,
            score=0,
            best_score=state.best_score,
            points=0,
            cascade_count=None,
        )

    def _award(self, points: int, *, cascade_count: int | None) -> None:
        state = self.state
        state.score += points
        state.last_points = points
        if state.score > state.best_score:
            state.best_score = state.score
        self.event_bus.emit(
            EVENT_SCORE_UPDATE,
            score=state.score,
            best_score=state.best_score,
            points=points,
            cascade_count=cascade_count,
        )
