from dataclasses import dataclass
from typing import Optional

from balldrop.components.piece import Piece


@dataclass(slots=True)
class ActivePiece:
    """The falling piece and the preview of the one after it."""

    current: Optional[Piece] = None
    next: Optional[Piece] = None
