from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from balldrop.components.ball import Ball, BallType
from balldrop.components.piece import Piece, PieceType
from balldrop.config_loader import DEFAULT_PIECE_SHAPES, GameConfig, default_config

logger = logging.getLogger(__name__)

PIECE_SHAPES: Dict[PieceType, Tuple[Tuple[int, ...], ...]] = {
    PieceType(name): shape for name, shape in DEFAULT_PIECE_SHAPES.items()
}

SPECIAL_KINDS: Tuple[BallType, ...] = (
    BallType.EXPLODING,
    BallType.PAINTER_HORIZONTAL,
    BallType.PAINTER_VERTICAL,
    BallType.PAINTER_DIAGONAL,
)


class PieceFactory:
    """Builds random pieces with a level-scaled palette and rare special balls.

    Tracks how many pieces it has produced; blocking balls only start to appear
    once that count reaches the per-difficulty minimum.
    """

    def __init__(self, config: GameConfig | None = None, *, rng: random.Random | None = None) -> None:
        self.config = config or default_config()
        self._rng: random.Random = rng or random.Random()
        self._shapes: Dict[PieceType, Tuple[Tuple[int, ...], ...]] = dict(PIECE_SHAPES)
        for name, shape in self.config.piece_shapes.items():
            try:
                piece_type = PieceType(name)
            except ValueError:
                logger.warning("Ignoring shape for unknown piece type %r", name)
                continue
            self._shapes[piece_type] = tuple(tuple(row) for row in shape)
        self.pieces_dropped = 0

    @property
    def shapes(self) -> Dict[PieceType, Tuple[Tuple[int, ...], ...]]:
        return dict(self._shapes)

    def available_colors(self, level: int) -> List[str]:
        """Color tokens unlocked at level (highest tier whose threshold is <= level)."""
        palette = self.config.palette
        tiers = sorted(palette.unlocks)
        chosen = palette.unlocks[tiers[0]]
        for threshold in tiers:
            if level >= threshold:
                chosen = palette.unlocks[threshold]
        return [palette.colors[name] for name in chosen if name in palette.colors]

    def special_rate(self, kind: BallType) -> float:
        special = self.config.special_balls
        rates = {
            BallType.EXPLODING: special.exploding_rate,
            BallType.PAINTER_HORIZONTAL: special.painter_horizontal_rate,
            BallType.PAINTER_VERTICAL: special.painter_vertical_rate,
            BallType.PAINTER_DIAGONAL: special.painter_diagonal_rate,
        }
        return rates.get(kind, 0.0)

    def blocking_rate(self, difficulty: int) -> float:
        special = self.config.special_balls
        return special.blocking_base_rate + special.blocking_rate_increment * (difficulty - 1)

    def should_spawn_special(self, kind: BallType) -> bool:
        return self._rng.random() < self.special_rate(kind)

    def should_spawn_blocking(self, difficulty: int) -> bool:
        if self.pieces_dropped < self.config.special_balls.min_pieces_for(difficulty):
            return False
        return self._rng.random() < self.blocking_rate(difficulty)

    def generate_special_ball(self, difficulty: int, colors: Sequence[str]) -> Optional[Ball]:
        """Roll for a special ball; None means the cell gets a normal ball."""
        if self.should_spawn_blocking(difficulty):
            return Ball(BallType.BLOCKING, self.config.special_balls.blocking_color)
        kinds = list(SPECIAL_KINDS)
        self._rng.shuffle(kinds)
        for kind in kinds:
            if self.should_spawn_special(kind):
                return Ball(kind, self._rng.choice(colors))
        return None

    def generate_ball(self, difficulty: int, colors: Sequence[str]) -> Ball:
        special = self.generate_special_ball(difficulty, colors)
        if special is not None:
            return special
        return Ball(BallType.NORMAL, self._rng.choice(colors))

    def generate_piece(self, level: int, difficulty: int, piece_type: PieceType | None = None) -> Piece:
        colors = self.available_colors(level)
        if piece_type is None:
            piece_type = self._rng.choice(list(self._shapes))
        shape = self._shapes[piece_type]
        cell_count = sum(1 for row in shape for value in row if value == 1)
        # Counted before rolling so the blocking gate opens on the Nth piece itself.
        self.pieces_dropped += 1
        balls = [self.generate_ball(difficulty, colors) for _ in range(cell_count)]
        piece = Piece(piece_type, [list(row) for row in shape], balls)
        specials = [ball.type.value for ball in balls if ball.is_special()]
        if specials:
            logger.debug("Generated %s piece with special balls %s", piece_type.value, specials)
        return piece

    def reset(self) -> None:
        self.pieces_dropped = 0
