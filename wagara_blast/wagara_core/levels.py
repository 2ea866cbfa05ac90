"""
Level Loader
============

Loads the static level table from levels.yaml and exposes lookup helpers.
Level configs are frozen, so callers can never corrupt the shared table.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Tuple, TYPE_CHECKING

import yaml

from wagara_blast.wagara_core.cells import Position
from wagara_blast.wagara_core.obstacle_catalog import ObstacleType

if TYPE_CHECKING:
    from wagara_blast.wagara_core.grid import Grid

logger = logging.getLogger(__name__)


class ClearConditionType(str, Enum):
    SCORE = "score"
    LINES = "lines"
    MOVES = "moves"


@dataclass(frozen=True)
class ClearCondition:
    type: ClearConditionType
    target: int


@dataclass(frozen=True)
class ObstacleConfig:
    """One obstacle kind stamped at a set of positions."""
    type: ObstacleType
    positions: Tuple[Position, ...]
    frozen_turns: Optional[int] = None   # frozen only
    chain_hp: Optional[int] = None       # chain only


@dataclass(frozen=True)
class LevelConfig:
    """A playable level or a synthesized daily challenge."""
    id: int
    grid_size: int
    clear_condition: ClearCondition
    star_thresholds: Tuple[int, int, int]
    obstacles: Tuple[ObstacleConfig, ...] = ()
    max_moves: Optional[int] = None
    grid: Optional["Grid"] = field(default=None, compare=False)
    description: str = ""
    new_pattern: Optional[str] = None
    new_obstacle: Optional[ObstacleType] = None


def _parse_obstacle(data: dict) -> ObstacleConfig:
    turns = data.get("turns")
    hp = data.get("hp")
    return ObstacleConfig(
        type=ObstacleType(data["type"]),
        positions=tuple(Position(int(r), int(c)) for r, c in data["positions"]),
        frozen_turns=int(turns) if turns is not None else None,
        chain_hp=int(hp) if hp is not None else None
    )


def _parse_level(data: dict) -> LevelConfig:
    condition = data["clear_condition"]
    thresholds = tuple(int(t) for t in data["star_thresholds"])
    if len(thresholds) != 3 or list(thresholds) != sorted(thresholds):
        raise ValueError(f"Level {data['id']}: star_thresholds must be 3 ascending values")
    new_obstacle = data.get("new_obstacle")
    max_moves = data.get("max_moves")
    return LevelConfig(
        id=int(data["id"]),
        grid_size=int(data.get("grid_size", 8)),
        clear_condition=ClearCondition(
            type=ClearConditionType(condition["type"]),
            target=int(condition["target"])
        ),
        star_thresholds=thresholds,
        obstacles=tuple(_parse_obstacle(o) for o in data.get("obstacles") or ()),
        max_moves=int(max_moves) if max_moves is not None else None,
        description=str(data.get("description", "")),
        new_pattern=data.get("new_pattern"),
        new_obstacle=ObstacleType(new_obstacle) if new_obstacle else None
    )


def load_levels(levels_path: Optional[str] = None) -> Tuple[LevelConfig, ...]:
    """
    Load the level table from YAML.

    Args:
        levels_path: Path to levels.yaml. If None, uses default location.

    Returns:
        Levels ordered by id.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If ids are not 1..N in order or a level is malformed.
    """
    if levels_path is None:
        levels_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "levels.yaml"
        )

    levels_path = Path(levels_path)
    if not levels_path.exists():
        raise FileNotFoundError(f"Levels file not found: {levels_path}")

    with open(levels_path, "r") as f:
        raw = yaml.safe_load(f)

    levels = tuple(_parse_level(entry) for entry in raw["levels"])
    for expected, level in enumerate(levels, start=1):
        if level.id != expected:
            raise ValueError(f"Level ID mismatch: expected {expected}, got {level.id}")

    logger.debug("Loaded %d levels from %s", len(levels), levels_path)
    return levels


_cached_levels: Optional[Tuple[LevelConfig, ...]] = None


def get_all_levels() -> Tuple[LevelConfig, ...]:
    """All static levels, loading on first use."""
    global _cached_levels
    if _cached_levels is None:
        _cached_levels = load_levels()
    return _cached_levels


def get_max_level_id() -> int:
    return len(get_all_levels())


def load_level(level_id: int) -> LevelConfig:
    """
    Get one static level.

    Raises:
        ValueError: If level_id is outside 1..get_max_level_id().
    """
    levels = get_all_levels()
    if not 1 <= level_id <= len(levels):
        raise ValueError(f"Level {level_id} not found. Valid range: 1-{len(levels)}.")
    return levels[level_id - 1]


def calculate_stars(score: int, thresholds: Sequence[int]) -> int:
    """Stars earned (0-3) for a score against ascending thresholds."""
    if score >= thresholds[2]:
        return 3
    if score >= thresholds[1]:
        return 2
    if score >= thresholds[0]:
        return 1
    return 0
