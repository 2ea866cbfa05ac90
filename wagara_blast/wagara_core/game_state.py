"""
Game State
==========

The immutable aggregate root for a session. Engine operations never modify
a GameState; they return a new one built with ``evolve``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from wagara_blast.wagara_core.boosters import BoosterInventory
from wagara_blast.wagara_core.grid import Grid
from wagara_blast.wagara_core.levels import LevelConfig
from wagara_blast.wagara_core.piece_catalog import BlockPiece


class GameMode(str, Enum):
    CLASSIC = "classic"
    LEVEL = "level"
    DAILY = "daily"


class GameStatus(str, Enum):
    ACTIVE = "active"
    GAME_OVER = "game_over"
    LEVEL_CLEARED = "level_cleared"


@dataclass(frozen=True)
class GameState:
    """Complete session state."""
    grid: Grid
    grid_size: int
    mode: GameMode
    current_pieces: Tuple[Optional[BlockPiece], ...]
    boosters: BoosterInventory
    score: int = 0
    combo: int = 0
    move_count: int = 0
    lines_cleared: int = 0
    best_combo: int = 0
    stars_earned: int = 0
    status: GameStatus = GameStatus.ACTIVE
    level_config: Optional[LevelConfig] = None
    discovered_patterns: FrozenSet[str] = frozenset()
    started_at: float = field(default=0.0, compare=False)

    @property
    def is_game_over(self) -> bool:
        return self.status == GameStatus.GAME_OVER

    @property
    def is_level_cleared(self) -> bool:
        return self.status == GameStatus.LEVEL_CLEARED

    @property
    def is_terminal(self) -> bool:
        return self.status != GameStatus.ACTIVE

    @property
    def active_pieces(self) -> Tuple[BlockPiece, ...]:
        """Non-empty tray slots."""
        return tuple(p for p in self.current_pieces if p is not None)

    def evolve(self, **changes) -> "GameState":
        """Copy with the given fields replaced."""
        return replace(self, **changes)
