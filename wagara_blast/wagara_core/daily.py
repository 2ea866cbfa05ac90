"""
Daily Challenge
===============

Synthesizes a reproducible level for a calendar date. The date string seeds
a Mulberry32 generator, the weekday picks the obstacle profile, and the
score target grows with the weekday's difficulty rank.
"""

from __future__ import annotations

import datetime
import logging
from typing import Iterable, List, Optional

from wagara_blast.wagara_core.cells import Position
from wagara_blast.wagara_core.config_loader import GameConfig, get_config
from wagara_blast.wagara_core.levels import ClearCondition, ClearConditionType, LevelConfig, ObstacleConfig
from wagara_blast.wagara_core.obstacle_catalog import ObstacleType
from wagara_blast.wagara_core.rng import SeededRandom, date_seed, today_string

logger = logging.getLogger(__name__)

DAILY_LEVEL_ID = -1


def get_seed_for_date(date_str: str) -> int:
    return date_seed(date_str)


def get_daily_seed() -> int:
    """Seed for today's local date."""
    return date_seed(today_string())


def difficulty_rank(date_str: str) -> int:
    """Weekday difficulty: Monday 1 through Saturday 6, Sunday 7."""
    return datetime.date.fromisoformat(date_str).isoweekday()


def generate_random_positions(
    rng: SeededRandom,
    grid_size: int,
    count: int,
    max_attempts: int = 200
) -> List[Position]:
    """
    Draw up to ``count`` distinct positions outside the central 2x2 block.

    Each attempt draws a row then a column. Gives up after max_attempts,
    so fewer positions may be returned.
    """
    center = grid_size // 2
    reserved = {(r, c) for r in (center - 1, center) for c in (center - 1, center)}

    positions: List[Position] = []
    used = set()
    attempts = 0
    while len(positions) < count and attempts < max_attempts:
        attempts += 1
        r = rng.next_int(0, grid_size - 1)
        c = rng.next_int(0, grid_size - 1)
        if (r, c) in used or (r, c) in reserved:
            continue
        used.add((r, c))
        positions.append(Position(r, c))
    return positions


def _kintsugi_row(rng: SeededRandom, grid_size: int) -> ObstacleConfig:
    row = rng.next_int(2, 5)
    return ObstacleConfig(
        type=ObstacleType.KINTSUGI,
        positions=tuple(Position(row, c) for c in range(grid_size))
    )


def generate_daily_obstacles(
    rng: SeededRandom,
    grid_size: int,
    rank: int,
    max_attempts: int = 200
) -> List[ObstacleConfig]:
    """
    Obstacle profile for a weekday rank.

    Counts are drawn before positions, and payloads after them.
    """
    def scatter(count: int) -> tuple:
        return tuple(generate_random_positions(rng, grid_size, count, max_attempts))

    obstacles: List[ObstacleConfig] = []

    if rank == 2:
        # Tuesday: stones
        obstacles.append(ObstacleConfig(ObstacleType.STONE, scatter(rng.next_int(2, 5))))
    elif rank == 3:
        # Wednesday: one golden row
        obstacles.append(_kintsugi_row(rng, grid_size))
    elif rank == 4:
        # Thursday: ice
        positions = scatter(rng.next_int(3, 6))
        obstacles.append(ObstacleConfig(ObstacleType.FROZEN, positions, frozen_turns=rng.next_int(2, 4)))
    elif rank == 5:
        # Friday: chains
        positions = scatter(rng.next_int(3, 6))
        obstacles.append(ObstacleConfig(ObstacleType.CHAIN, positions, chain_hp=rng.next_int(2, 3)))
    elif rank == 6:
        # Saturday: fog then stones
        obstacles.append(ObstacleConfig(ObstacleType.FOG, scatter(rng.next_int(8, 14))))
        obstacles.append(ObstacleConfig(ObstacleType.STONE, scatter(rng.next_int(1, 3))))
    elif rank == 7:
        # Sunday: everything
        obstacles.append(ObstacleConfig(ObstacleType.STONE, scatter(rng.next_int(2, 3))))
        obstacles.append(_kintsugi_row(rng, grid_size))
        positions = scatter(rng.next_int(2, 4))
        obstacles.append(ObstacleConfig(ObstacleType.FROZEN, positions, frozen_turns=rng.next_int(2, 3)))
        obstacles.append(ObstacleConfig(ObstacleType.CHAIN, scatter(rng.next_int(2, 4)), chain_hp=2))

    return obstacles


def generate_daily_challenge(
    date_str: Optional[str] = None,
    config: Optional[GameConfig] = None
) -> LevelConfig:
    """
    Build the daily challenge level for a date.

    Args:
        date_str: Date as YYYY-MM-DD. Today if None.
        config: Game configuration. Uses default if None.

    Returns:
        LevelConfig with id -1 and a score clear condition.

    Raises:
        ValueError: If date_str is not an ISO date.
    """
    if config is None:
        config = get_config()
    daily = config.daily

    if date_str is None:
        date_str = today_string()
    rank = difficulty_rank(date_str)
    rng = SeededRandom(date_seed(date_str))

    obstacles = generate_daily_obstacles(rng, daily.grid_size, rank, daily.max_position_attempts)

    target = daily.base_target + rank * daily.difficulty_step + rng.next_int(0, daily.random_bonus_max)
    stars = tuple(int(target * m) for m in daily.star_multipliers)

    logger.debug("Daily challenge %s: rank=%d target=%d obstacles=%d",
                 date_str, rank, target, len(obstacles))

    return LevelConfig(
        id=DAILY_LEVEL_ID,
        grid_size=daily.grid_size,
        clear_condition=ClearCondition(ClearConditionType.SCORE, target),
        star_thresholds=stars,
        obstacles=tuple(obstacles),
        description=f"Daily Challenge - {date_str}"
    )


def is_daily_challenge_completed(date_str: str, completed_dates: Iterable[str]) -> bool:
    return date_str in set(completed_dates)


def calculate_streak(completed_dates: Iterable[str], today: Optional[str] = None) -> int:
    """
    Consecutive completed days counting back from today.

    The streak is zero when today itself is not completed. Capped at 365.
    """
    completed = set(completed_dates)
    if not completed:
        return 0

    current = datetime.date.fromisoformat(today if today is not None else today_string())
    streak = 0
    for _ in range(365):
        if current.isoformat() not in completed:
            break
        streak += 1
        current -= datetime.timedelta(days=1)
    return streak
