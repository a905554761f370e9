from __future__ import annotations

from typing import Dict, Tuple

from esper import World

from balldrop.components.ball import BallType
from balldrop.components.match_statistics import MatchStatistics
from balldrop.events.bus import EventBus, EVENT_STATISTICS_CHANGED
from balldrop.factories.pieces import PieceFactory
from balldrop.systems.cascade import CAUSE_MATCH, CascadeLevel
from balldrop.utils.world_state import get_or_create_statistics


class StatisticsSystem:
    """Counts matched balls by type and color. Purely observational."""

    def __init__(self, world: World, event_bus: EventBus, piece_factory: PieceFactory) -> None:
        self.world = world
        self.event_bus = event_bus
        self.piece_factory = piece_factory

    @property
    def stats(self) -> MatchStatistics:
        return get_or_create_statistics(self.world)

    def reset(self, level: int = 1) -> None:
        stats = self.stats
        stats.counts.clear()
        stats.level = level
        stats.available_colors = self.piece_factory.available_colors(level)

    def record_match(self, ball_type: BallType, color: str) -> None:
        self.stats.add(ball_type, color)

    def record_level(self, level: CascadeLevel) -> Dict[Tuple[BallType, str], int]:
        """Record the matched balls of one cascade level; explosion victims and blocking balls are skipped."""
        delta: Dict[Tuple[BallType, str], int] = {}
        for cleared in level.cleared_balls:
            if cleared.cause != CAUSE_MATCH or cleared.type is BallType.BLOCKING:
                continue
            self.record_match(cleared.type, cleared.color)
            key = (cleared.type, cleared.color)
            delta[key] = delta.get(key, 0) + 1
        return delta

    def apply_cascade_result(self, result) -> Dict[Tuple[BallType, str], int]:
        delta: Dict[Tuple[BallType, str], int] = {}
        for level in result.levels:
            for key, amount in self.record_level(level).items():
                delta[key] = delta.get(key, 0) + amount
        if delta:
            stats = self.stats
            self.event_bus.emit(
                EVENT_STATISTICS_CHANGED,
                level=stats.level,
                total=stats.total(),
                delta=delta,
            )
        return delta

    def get_count(self, ball_type: BallType, color: str) -> int:
        return self.stats.get(ball_type, color)

    def total(self) -> int:
        return self.stats.total()
