from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BallType(Enum):
    NORMAL = "NORMAL"
    EXPLODING = "EXPLODING"
    PAINTER_HORIZONTAL = "PAINTER_HORIZONTAL"
    PAINTER_VERTICAL = "PAINTER_VERTICAL"
    PAINTER_DIAGONAL = "PAINTER_DIAGONAL"
    BLOCKING = "BLOCKING"


PAINTER_DIRECTIONS = {
    BallType.PAINTER_HORIZONTAL: "horizontal",
    BallType.PAINTER_VERTICAL: "vertical",
    BallType.PAINTER_DIAGONAL: "diagonal",
}


@dataclass(slots=True, eq=False)
class Ball:
    """A single unit on a piece or in a grid cell.

    Color is an opaque token used only for equality checks while matching.
    Identity matters (the same Ball object moves from piece to grid), so
    equality is by identity rather than by field values.
    """

    type: BallType
    color: str

    def is_matchable(self) -> bool:
        return self.type is not BallType.BLOCKING

    def is_special(self) -> bool:
        return self.type is not BallType.NORMAL

    def is_exploding(self) -> bool:
        return self.type is BallType.EXPLODING

    def is_painter(self) -> bool:
        return self.type in PAINTER_DIRECTIONS

    def is_blocking(self) -> bool:
        return self.type is BallType.BLOCKING

    def painter_direction(self) -> Optional[str]:
        return PAINTER_DIRECTIONS.get(self.type)

    def paint(self, color: str) -> None:
        """Recolor the ball; the only mutation allowed after creation."""
        if not isinstance(color, str) or not color:
            raise ValueError(f"Invalid ball color {color!r}")
        self.color = color
