from dataclasses import dataclass, field
from typing import Dict, List

from balldrop.components.ball import BallType


@dataclass(slots=True)
class MatchStatistics:
    """Matched ball counts keyed by ball type then color.

    level: the level the counters were last reset for.
    available_colors: palette for that level, used by presentation layers.
    """

    counts: Dict[BallType, Dict[str, int]] = field(default_factory=dict)
    level: int = 1
    available_colors: List[str] = field(default_factory=list)

    def add(self, ball_type: BallType, color: str, amount: int = 1) -> None:
        if amount <= 0:
            return
        by_color = self.counts.setdefault(ball_type, {})
        by_color[color] = by_color.get(color, 0) + amount

    def get(self, ball_type: BallType, color: str) -> int:
        return self.counts.get(ball_type, {}).get(color, 0)

    def total(self) -> int:
        return sum(n for by_color in self.counts.values() for n in by_color.values())
