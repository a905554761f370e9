from dataclasses import dataclass
from typing import List, Optional


@dataclass(slots=True)
class ScoreState:
    """Session score plus the per-level clear counts of the open cascade sequence.

    open_levels is None while no sequence is open; the first recorded level
    opens one and completing the sequence resets it to None.
    """

    score: int = 0
    best_score: int = 0
    difficulty: int = 1
    last_points: int = 0
    open_levels: Optional[List[int]] = None
