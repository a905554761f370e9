"""Game state resource describing the active high-level mode."""
from dataclasses import dataclass
from enum import Enum, auto


class GameMode(Enum):
    """High-level modes; only PLAYING accepts piece movement."""
    MENU = auto()
    PLAYING = auto()
    PAUSED = auto()
    GAME_OVER = auto()


@dataclass
class GameState:
    """Singleton component storing the mode plus the level and difficulty being played."""
    mode: GameMode = GameMode.MENU
    level: int = 1
    difficulty: int = 1
