from dataclasses import dataclass
from enum import Enum, auto


class CascadePhase(Enum):
    IDLE = auto()
    SETTLING = auto()
    MATCHING = auto()
    RESOLVING_EFFECTS = auto()
    CLEARING = auto()
    GRAVITY = auto()
    DONE = auto()


@dataclass(slots=True)
class CascadeState:
    """Tracks the running cascade shared across systems."""

    phase: CascadePhase = CascadePhase.IDLE
    active: bool = False
    depth: int = 0
    depth_capped: bool = False
