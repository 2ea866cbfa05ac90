"""
State Snapshot
==============

Packs a GameState into fixed-size numpy arrays for Gymnasium observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from wagara_blast.wagara_core.boosters import BoosterType
from wagara_blast.wagara_core.cells import CellState
from wagara_blast.wagara_core.config_loader import GameConfig, get_config
from wagara_blast.wagara_core.game_state import GameState
from wagara_blast.wagara_core.obstacle_catalog import ObstacleType
from wagara_blast.wagara_core.piece_catalog import get_catalog

CELL_STATE_CODES = {CellState.EMPTY: 0, CellState.FILLED: 1, CellState.OBSTACLE: 2}
OBSTACLE_CODES = {t: i for i, t in enumerate(ObstacleType)}
BOOSTER_ORDER = tuple(BoosterType)


@dataclass
class GameSnapshot:
    """
    Observation arrays for one state.

    Grid planes are (N, N). Tray arrays have one entry per slot with -1 and
    a zero mask for empty slots.
    """
    # Grid planes
    cell_state: np.ndarray        # int8: 0 empty, 1 filled, 2 obstacle
    pattern_id: np.ndarray        # int8: pattern index, -1 if not filled
    obstacle_id: np.ndarray       # int8: ObstacleType index, -1 if none
    fog: np.ndarray               # int8 0/1
    kintsugi: np.ndarray          # int8 0/1
    frozen_turns: np.ndarray      # int16, 0 if not frozen
    chain_hp: np.ndarray          # int16, 0 if not chain

    # Tray
    piece_shape_id: np.ndarray    # int16
    piece_pattern_id: np.ndarray  # int16
    piece_mask: np.ndarray        # int8

    # Scalars
    score: int
    combo: int
    move_count: int
    lines_cleared: int
    moves_remaining: int          # -1 when uncapped
    boosters: np.ndarray          # int32, BOOSTER_ORDER

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        return {
            "cell_state": self.cell_state,
            "pattern_id": self.pattern_id,
            "obstacle_id": self.obstacle_id,
            "fog": self.fog,
            "kintsugi": self.kintsugi,
            "frozen_turns": self.frozen_turns,
            "chain_hp": self.chain_hp,
            "piece_shape_id": self.piece_shape_id,
            "piece_pattern_id": self.piece_pattern_id,
            "piece_mask": self.piece_mask,
            "score": np.array(self.score, dtype=np.int64),
            "combo": np.array(self.combo, dtype=np.int32),
            "move_count": np.array(self.move_count, dtype=np.int32),
            "lines_cleared": np.array(self.lines_cleared, dtype=np.int32),
            "moves_remaining": np.array(self.moves_remaining, dtype=np.int32),
            "boosters": self.boosters,
        }


class SnapshotBuilder:
    """Builds snapshots for a fixed grid size and tray size."""

    def __init__(self, config: Optional[GameConfig] = None, grid_size: Optional[int] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._catalog = get_catalog(config)
        self._size = grid_size if grid_size is not None else config.grid.default_size
        self._tray = config.pieces.tray_size

    @property
    def grid_size(self) -> int:
        return self._size

    @property
    def tray_size(self) -> int:
        return self._tray

    def build(self, state: GameState) -> GameSnapshot:
        """
        Snapshot a state.

        Raises:
            ValueError: If the state's grid size differs from the builder's.
        """
        n = self._size
        if state.grid_size != n:
            raise ValueError(f"Snapshot built for {n}x{n} grids, got {state.grid_size}x{state.grid_size}")

        cell_state = np.zeros((n, n), dtype=np.int8)
        pattern_id = np.full((n, n), -1, dtype=np.int8)
        obstacle_id = np.full((n, n), -1, dtype=np.int8)
        fog = np.zeros((n, n), dtype=np.int8)
        kintsugi = np.zeros((n, n), dtype=np.int8)
        frozen_turns = np.zeros((n, n), dtype=np.int16)
        chain_hp = np.zeros((n, n), dtype=np.int16)

        for (r, c), cell in state.grid.cells():
            cell_state[r, c] = CELL_STATE_CODES[cell.state]
            if cell.pattern is not None:
                pattern_id[r, c] = self._catalog.pattern_index(cell.pattern)
            if cell.obstacle is not None:
                obstacle_id[r, c] = OBSTACLE_CODES[cell.obstacle]
            fog[r, c] = cell.has_fog
            kintsugi[r, c] = cell.kintsugi
            if cell.frozen_turns is not None:
                frozen_turns[r, c] = cell.frozen_turns
            if cell.chain_hp is not None:
                chain_hp[r, c] = cell.chain_hp

        piece_shape_id = np.full((self._tray,), -1, dtype=np.int16)
        piece_pattern_id = np.full((self._tray,), -1, dtype=np.int16)
        piece_mask = np.zeros((self._tray,), dtype=np.int8)
        for i, piece in enumerate(state.current_pieces[:self._tray]):
            if piece is None:
                continue
            piece_shape_id[i] = self._catalog.shape_index(piece.shape.id)
            piece_pattern_id[i] = self._catalog.pattern_index(piece.pattern)
            piece_mask[i] = 1

        moves_remaining = -1
        level = state.level_config
        if level is not None and level.max_moves:
            moves_remaining = max(level.max_moves - state.move_count, 0)

        boosters = np.array([state.boosters[b] for b in BOOSTER_ORDER], dtype=np.int32)

        return GameSnapshot(
            cell_state=cell_state,
            pattern_id=pattern_id,
            obstacle_id=obstacle_id,
            fog=fog,
            kintsugi=kintsugi,
            frozen_turns=frozen_turns,
            chain_hp=chain_hp,
            piece_shape_id=piece_shape_id,
            piece_pattern_id=piece_pattern_id,
            piece_mask=piece_mask,
            score=state.score,
            combo=state.combo,
            move_count=state.move_count,
            lines_cleared=state.lines_cleared,
            moves_remaining=moves_remaining,
            boosters=boosters
        )
