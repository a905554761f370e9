"""
Configuration Loader
====================

Loads game_config.yaml into typed, immutable sections. Any missing or malformed
tunable falls back to its documented default (with a warning) so a bad config
file can never break a running cascade. Malformed piece shapes are the one
fatal case because they would produce unplaceable pieces.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from balldrop.constants import (
    EXPLOSION_RADIUS,
    GRID_COLS,
    GRID_ROWS,
    MAX_CASCADE_DEPTH,
    MIN_MATCH_LENGTH,
)
from balldrop.components.piece import validate_shape

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("game_config.yaml")

DEFAULT_DIFFICULTY_MULTIPLIERS: Dict[int, float] = {1: 1.0, 2: 1.5, 3: 2.0, 4: 2.5, 5: 3.0}

DEFAULT_BALL_COLORS: Dict[str, str] = {
    "red": "#FF0000",
    "green": "#00FF00",
    "blue": "#0000FF",
    "yellow": "#FFFF00",
    "magenta": "#FF00FF",
    "cyan": "#00FFFF",
    "orange": "#FFA500",
    "purple": "#800080",
}

DEFAULT_COLOR_UNLOCKS: Dict[int, Tuple[str, ...]] = {
    1: ("red", "green", "blue"),
    3: ("red", "green", "blue", "yellow"),
    7: ("red", "green", "blue", "yellow", "magenta"),
    11: ("red", "green", "blue", "yellow", "magenta", "cyan"),
    15: ("red", "green", "blue", "yellow", "magenta", "cyan", "orange"),
    19: ("red", "green", "blue", "yellow", "magenta", "cyan", "orange", "purple"),
}

DEFAULT_PIECE_SHAPES: Dict[str, Tuple[Tuple[int, ...], ...]] = {
    "I": ((1, 1, 1, 1),),
    "O": ((1, 1, 1), (1, 1, 1)),
    "T": ((1, 1, 1), (0, 1, 0)),
    "L": ((1, 0), (1, 0), (1, 1)),
    "J": ((0, 1), (0, 1), (1, 1)),
    "S": ((0, 1, 1), (1, 1, 0)),
    "Z": ((1, 1, 0), (0, 1, 1)),
    "SINGLE": ((1,),),
}

DEFAULT_BLOCKING_MIN_PIECES: Dict[int, int] = {1: 50, 2: 40, 3: 30, 4: 20, 5: 10}


@dataclass(frozen=True)
class GridConfig:
    """Playfield dimensions."""
    rows: int = GRID_ROWS
    cols: int = GRID_COLS


@dataclass(frozen=True)
class CascadeConfig:
    """Match and cascade limits."""
    min_match_length: int = MIN_MATCH_LENGTH
    max_depth: int = MAX_CASCADE_DEPTH
    explosion_radius: int = EXPLOSION_RADIUS


@dataclass(frozen=True)
class ScoringConfig:
    """Scoring constants."""
    base_points_per_ball: int = 1
    cascade_base_bonus: int = 3
    difficulty_multipliers: Mapping[int, float] = field(
        default_factory=lambda: dict(DEFAULT_DIFFICULTY_MULTIPLIERS)
    )

    def multiplier_for(self, difficulty: int) -> float:
        return float(self.difficulty_multipliers.get(difficulty, 1.0))


@dataclass(frozen=True)
class SpecialBallConfig:
    """Spawn rates for special balls and the blocking-ball gate."""
    exploding_rate: float = 0.01
    painter_horizontal_rate: float = 0.01
    painter_vertical_rate: float = 0.01
    painter_diagonal_rate: float = 0.005
    blocking_base_rate: float = 0.005
    blocking_rate_increment: float = 0.001
    blocking_min_pieces: Mapping[int, int] = field(
        default_factory=lambda: dict(DEFAULT_BLOCKING_MIN_PIECES)
    )
    blocking_color: str = "#808080"

    def min_pieces_for(self, difficulty: int) -> int:
        return int(self.blocking_min_pieces.get(difficulty, 50))


@dataclass(frozen=True)
class PaletteConfig:
    """Named ball colors and the level tiers that unlock them."""
    colors: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_BALL_COLORS))
    unlocks: Mapping[int, Tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_COLOR_UNLOCKS))


@dataclass(frozen=True)
class GameConfig:
    """Complete configuration; all sections immutable."""
    grid: GridConfig = field(default_factory=GridConfig)
    cascade: CascadeConfig = field(default_factory=CascadeConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    special_balls: SpecialBallConfig = field(default_factory=SpecialBallConfig)
    palette: PaletteConfig = field(default_factory=PaletteConfig)
    piece_shapes: Mapping[str, Tuple[Tuple[int, ...], ...]] = field(
        default_factory=lambda: dict(DEFAULT_PIECE_SHAPES)
    )


def default_config() -> GameConfig:
    """Configuration built purely from documented defaults."""
    return GameConfig()


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        logger.warning("Config section %r is not a mapping; using defaults", key)
        return {}
    return value


def _number(data: Mapping[str, Any], key: str, default, cast, *, minimum=None):
    if key not in data:
        return default
    raw = data[key]
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        logger.warning("Config value %r=%r is invalid; using default %r", key, raw, default)
        return default
    if cast is int and isinstance(raw, float) and not raw.is_integer():
        logger.warning("Config value %r=%r is not a whole number; truncated to %r", key, raw, value)
    if minimum is not None and value < minimum:
        logger.warning("Config value %r=%r below %r; using default %r", key, value, minimum, default)
        return default
    return value


def _int_keyed(data: Any, prefix: str, default: Mapping[int, Any], cast, label: str) -> Dict[int, Any]:
    """Parse {"difficulty1": x, ...} or {1: x, ...} into an int-keyed dict merged over defaults."""
    merged = dict(default)
    if data is None:
        return merged
    if not isinstance(data, Mapping):
        logger.warning("Config %s is not a mapping; using defaults", label)
        return merged
    for key, value in data.items():
        text = str(key)
        if text.startswith(prefix):
            text = text[len(prefix):]
        try:
            merged[int(text)] = cast(value)
        except (TypeError, ValueError):
            logger.warning("Config %s entry %r=%r is invalid; ignoring", label, key, value)
    return merged


def _parse_grid(data: Mapping[str, Any]) -> GridConfig:
    return GridConfig(
        rows=_number(data, "rows", GRID_ROWS, int, minimum=1),
        cols=_number(data, "cols", GRID_COLS, int, minimum=1),
    )


def _parse_cascade(data: Mapping[str, Any]) -> CascadeConfig:
    return CascadeConfig(
        min_match_length=_number(data, "min_match_length", MIN_MATCH_LENGTH, int, minimum=2),
        max_depth=_number(data, "max_depth", MAX_CASCADE_DEPTH, int, minimum=1),
        explosion_radius=_number(data, "explosion_radius", EXPLOSION_RADIUS, int, minimum=0),
    )


def _parse_scoring(data: Mapping[str, Any]) -> ScoringConfig:
    return ScoringConfig(
        base_points_per_ball=_number(data, "base_points_per_ball", 1, int, minimum=0),
        cascade_base_bonus=_number(data, "cascade_base_bonus", 3, int, minimum=0),
        difficulty_multipliers=_int_keyed(
            data.get("difficulty_multipliers"),
            "difficulty",
            DEFAULT_DIFFICULTY_MULTIPLIERS,
            float,
            "scoring.difficulty_multipliers",
        ),
    )


def _parse_special_balls(data: Mapping[str, Any]) -> SpecialBallConfig:
    defaults = SpecialBallConfig()
    blocking = _section(data, "blocking")
    color = blocking.get("color", defaults.blocking_color)
    if not isinstance(color, str) or not color:
        logger.warning("Config blocking color %r is invalid; using default", color)
        color = defaults.blocking_color
    return SpecialBallConfig(
        exploding_rate=_number(data, "exploding_rate", defaults.exploding_rate, float, minimum=0.0),
        painter_horizontal_rate=_number(
            data, "painter_horizontal_rate", defaults.painter_horizontal_rate, float, minimum=0.0
        ),
        painter_vertical_rate=_number(
            data, "painter_vertical_rate", defaults.painter_vertical_rate, float, minimum=0.0
        ),
        painter_diagonal_rate=_number(
            data, "painter_diagonal_rate", defaults.painter_diagonal_rate, float, minimum=0.0
        ),
        blocking_base_rate=_number(blocking, "base_rate", defaults.blocking_base_rate, float, minimum=0.0),
        blocking_rate_increment=_number(
            blocking, "rate_increment", defaults.blocking_rate_increment, float, minimum=0.0
        ),
        blocking_min_pieces=_int_keyed(
            blocking.get("min_pieces"),
            "difficulty",
            DEFAULT_BLOCKING_MIN_PIECES,
            int,
            "special_balls.blocking.min_pieces",
        ),
        blocking_color=color,
    )


def _parse_palette(data: Mapping[str, Any]) -> PaletteConfig:
    colors = dict(DEFAULT_BALL_COLORS)
    raw_colors = data.get("colors")
    if isinstance(raw_colors, Mapping):
        for name, token in raw_colors.items():
            if isinstance(token, str) and token:
                colors[str(name)] = token
            else:
                logger.warning("Config color %r=%r is invalid; ignoring", name, token)
    elif raw_colors is not None:
        logger.warning("Config palette.colors is not a mapping; using defaults")

    unlocks: Dict[int, Tuple[str, ...]] = dict(DEFAULT_COLOR_UNLOCKS)
    raw_unlocks = data.get("unlocks")
    if isinstance(raw_unlocks, Mapping):
        parsed = _int_keyed(raw_unlocks, "level", {}, lambda v: tuple(str(n) for n in v), "palette.unlocks")
        for level, names in parsed.items():
            known = tuple(name for name in names if name in colors)
            if known:
                unlocks[level] = known
            else:
                logger.warning("Config palette tier level%d has no known colors; using default", level)
    elif raw_unlocks is not None:
        logger.warning("Config palette.unlocks is not a mapping; using defaults")
    return PaletteConfig(colors=colors, unlocks=unlocks)


def _parse_piece_shapes(data: Any) -> Dict[str, Tuple[Tuple[int, ...], ...]]:
    shapes = dict(DEFAULT_PIECE_SHAPES)
    if data is None:
        return shapes
    if not isinstance(data, Mapping):
        logger.warning("Config piece_shapes is not a mapping; using defaults")
        return shapes
    for name, matrix in data.items():
        # Raises InvalidShapeConfiguration: a broken shape is a loading defect.
        validated = validate_shape(matrix)
        shapes[str(name)] = tuple(tuple(row) for row in validated)
    return shapes


def parse_config(raw: Optional[Mapping[str, Any]]) -> GameConfig:
    """Build a GameConfig from an already-parsed mapping, defaulting what is missing."""
    if raw is None:
        return default_config()
    if not isinstance(raw, Mapping):
        logger.warning("Config root is not a mapping; using defaults")
        return default_config()
    return GameConfig(
        grid=_parse_grid(_section(raw, "grid")),
        cascade=_parse_cascade(_section(raw, "cascade")),
        scoring=_parse_scoring(_section(raw, "scoring")),
        special_balls=_parse_special_balls(_section(raw, "special_balls")),
        palette=_parse_palette(_section(raw, "palette")),
        piece_shapes=_parse_piece_shapes(raw.get("piece_shapes")),
    )


def load_config(config_path: Optional[str | Path] = None) -> GameConfig:
    """
    Load game configuration from YAML.

    Args:
        config_path: Path to a YAML file. If None, uses the packaged game_config.yaml.

    Returns:
        GameConfig with defaults filled in for anything missing. A missing or
        unreadable file yields the pure defaults.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        logger.warning("Config file not found: %s; using defaults", path)
        return default_config()
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        logger.warning("Config file %s is not valid YAML (%s); using defaults", path, exc)
        return default_config()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Config file %s could not be read (%s); using defaults", path, exc)
        return default_config()
    return parse_config(raw)
