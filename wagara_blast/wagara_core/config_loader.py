"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml


@dataclass(frozen=True)
class GridConfig:
    """Board dimensions."""
    default_size: int            # Side length of a classic-mode grid


@dataclass(frozen=True)
class PiecesConfig:
    """Piece tray settings."""
    tray_size: int               # Pieces dealt per refill


@dataclass(frozen=True)
class ShapeConfig:
    """A single polyomino shape from the catalog."""
    id: str
    name: str
    cells: Tuple[Tuple[int, int], ...]   # (row, col) offsets from the anchor

    @property
    def width(self) -> int:
        return max(c for _, c in self.cells) + 1

    @property
    def height(self) -> int:
        return max(r for r, _ in self.cells) + 1


@dataclass(frozen=True)
class PatternConfig:
    """A decorative pattern type and its draw frequency."""
    id: str
    name: str
    frequency: int


@dataclass(frozen=True)
class ObstacleDefinitionConfig:
    """Static metadata for one obstacle kind."""
    type: str
    name: str
    destructible: bool
    hits_required: int
    blocks_placement: bool


@dataclass(frozen=True)
class ObstacleDefaults:
    """Fallback payloads when a level omits them."""
    frozen_turns: int
    chain_hp: int
    fog_reveal_radius: int


@dataclass(frozen=True)
class ScoringConfig:
    """Score formula constants."""
    points_per_cell: int
    single_line: int
    double_line: int
    multi_line_factor: int
    combo_step: float
    kintsugi_multiplier: int
    super_combo_threshold: int


@dataclass(frozen=True)
class BoosterConfig:
    """Booster inventory defaults and guide weighting."""
    default_inventory: Tuple[Tuple[str, int], ...]
    guide_lines_weight: int

    def inventory_dict(self) -> Dict[str, int]:
        return dict(self.default_inventory)


@dataclass(frozen=True)
class DailyConfig:
    """Daily challenge synthesis parameters."""
    grid_size: int
    base_target: int
    difficulty_step: int
    random_bonus_max: int
    star_multipliers: Tuple[float, float, float]
    max_position_attempts: int


@dataclass(frozen=True)
class FeedbackConfig:
    """Intensities attached to emitted feedback events (0-1)."""
    invalid_drop: float
    place: float
    line_clear_base: float
    line_clear_step: float
    combo_base: float
    combo_step: float
    chain: float
    level_clear: float
    game_over: float
    stone_breaker: float
    shuffle: float
    guide: float
    line_booster: float


@dataclass(frozen=True)
class GameConfig:
    """Complete engine configuration."""
    grid: GridConfig
    pieces: PiecesConfig
    shapes: Tuple[ShapeConfig, ...]
    patterns: Tuple[PatternConfig, ...]
    obstacles: Tuple[ObstacleDefinitionConfig, ...]
    obstacle_defaults: ObstacleDefaults
    scoring: ScoringConfig
    boosters: BoosterConfig
    daily: DailyConfig
    feedback: FeedbackConfig

    @property
    def num_shapes(self) -> int:
        return len(self.shapes)

    @property
    def num_patterns(self) -> int:
        return len(self.patterns)

    def get_shape(self, shape_id: str) -> ShapeConfig:
        for shape in self.shapes:
            if shape.id == shape_id:
                return shape
        raise KeyError(f"Unknown shape id: {shape_id}")


BOOSTER_TYPES = ("stone_breaker", "shuffle", "guide", "lightning", "wave")


def _parse_cells(cells_data: List) -> Tuple[Tuple[int, int], ...]:
    """Parse a list of [row, col] pairs."""
    return tuple((int(r), int(c)) for r, c in cells_data)


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    if config.grid.default_size <= 0:
        raise ValueError(f"grid.default_size must be positive, got {config.grid.default_size}")

    if config.pieces.tray_size <= 0:
        raise ValueError(f"pieces.tray_size must be positive, got {config.pieces.tray_size}")

    # Shapes: unique ids, non-empty, anchored at the origin
    shape_ids = [s.id for s in config.shapes]
    if len(set(shape_ids)) != len(shape_ids):
        raise ValueError(f"Duplicate shape ids: {shape_ids}")
    for shape in config.shapes:
        if not shape.cells:
            raise ValueError(f"Shape '{shape.id}' has no cells")
        if min(r for r, _ in shape.cells) != 0 or min(c for _, c in shape.cells) != 0:
            raise ValueError(f"Shape '{shape.id}' must be anchored at row 0 and col 0")

    pattern_ids = [p.id for p in config.patterns]
    if not pattern_ids:
        raise ValueError("At least one pattern is required")
    if len(set(pattern_ids)) != len(pattern_ids):
        raise ValueError(f"Duplicate pattern ids: {pattern_ids}")
    for pattern in config.patterns:
        if pattern.frequency <= 0:
            raise ValueError(
                f"Pattern '{pattern.id}' frequency must be positive, got {pattern.frequency}"
            )

    obstacle_types = [o.type for o in config.obstacles]
    if len(set(obstacle_types)) != len(obstacle_types):
        raise ValueError(f"Duplicate obstacle types: {obstacle_types}")

    # Boosters
    inventory = config.boosters.inventory_dict()
    for booster in BOOSTER_TYPES:
        if booster not in inventory:
            raise ValueError(f"Missing default inventory for booster '{booster}'")
        if inventory[booster] < 0:
            raise ValueError(f"Default inventory for '{booster}' must be >= 0")

    multipliers = config.daily.star_multipliers
    if len(multipliers) != 3 or list(multipliers) != sorted(multipliers):
        raise ValueError(f"daily.star_multipliers must be 3 ascending values, got {multipliers}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    grid = GridConfig(default_size=int(raw["grid"]["default_size"]))
    pieces = PiecesConfig(tray_size=int(raw.get("pieces", {}).get("tray_size", 3)))

    shapes = tuple(
        ShapeConfig(id=str(s["id"]), name=str(s["name"]), cells=_parse_cells(s["cells"]))
        for s in raw["shapes"]
    )

    patterns = tuple(
        PatternConfig(id=str(p["id"]), name=str(p["name"]), frequency=int(p["frequency"]))
        for p in raw["patterns"]
    )

    obstacles_data = raw["obstacles"]
    obstacles = tuple(
        ObstacleDefinitionConfig(
            type=str(o["type"]),
            name=str(o["name"]),
            destructible=bool(o["destructible"]),
            hits_required=int(o["hits_required"]),
            blocks_placement=bool(o["blocks_placement"])
        )
        for o in obstacles_data["definitions"]
    )
    defaults_data = obstacles_data.get("defaults", {})
    obstacle_defaults = ObstacleDefaults(
        frozen_turns=int(defaults_data.get("frozen_turns", 3)),
        chain_hp=int(defaults_data.get("chain_hp", 2)),
        fog_reveal_radius=int(defaults_data.get("fog_reveal_radius", 2))
    )

    scoring_data = raw["scoring"]
    scoring = ScoringConfig(
        points_per_cell=int(scoring_data["points_per_cell"]),
        single_line=int(scoring_data["single_line"]),
        double_line=int(scoring_data["double_line"]),
        multi_line_factor=int(scoring_data["multi_line_factor"]),
        combo_step=float(scoring_data["combo_step"]),
        kintsugi_multiplier=int(scoring_data.get("kintsugi_multiplier", 2)),
        super_combo_threshold=int(scoring_data.get("super_combo_threshold", 4))
    )

    boosters_data = raw["boosters"]
    boosters = BoosterConfig(
        default_inventory=tuple(
            (str(k), int(v)) for k, v in boosters_data["default_inventory"].items()
        ),
        guide_lines_weight=int(boosters_data.get("guide_lines_weight", 1000))
    )

    daily_data = raw["daily"]
    daily = DailyConfig(
        grid_size=int(daily_data.get("grid_size", 8)),
        base_target=int(daily_data["base_target"]),
        difficulty_step=int(daily_data["difficulty_step"]),
        random_bonus_max=int(daily_data["random_bonus_max"]),
        star_multipliers=tuple(float(m) for m in daily_data["star_multipliers"]),
        max_position_attempts=int(daily_data.get("max_position_attempts", 200))
    )

    fb = raw.get("feedback", {})
    feedback = FeedbackConfig(
        invalid_drop=float(fb.get("invalid_drop", 0.3)),
        place=float(fb.get("place", 0.5)),
        line_clear_base=float(fb.get("line_clear_base", 0.3)),
        line_clear_step=float(fb.get("line_clear_step", 0.2)),
        combo_base=float(fb.get("combo_base", 0.4)),
        combo_step=float(fb.get("combo_step", 0.15)),
        chain=float(fb.get("chain", 0.7)),
        level_clear=float(fb.get("level_clear", 1.0)),
        game_over=float(fb.get("game_over", 0.8)),
        stone_breaker=float(fb.get("stone_breaker", 0.8)),
        shuffle=float(fb.get("shuffle", 0.4)),
        guide=float(fb.get("guide", 0.3)),
        line_booster=float(fb.get("line_booster", 0.9))
    )

    config = GameConfig(
        grid=grid,
        pieces=pieces,
        shapes=shapes,
        patterns=patterns,
        obstacles=obstacles,
        obstacle_defaults=obstacle_defaults,
        scoring=scoring,
        boosters=boosters,
        daily=daily,
        feedback=feedback
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
