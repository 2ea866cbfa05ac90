"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the Wagara Blast engine.
One step places one tray piece. Reward is the score gained by the move.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

import gymnasium as gym
from gymnasium import spaces

from wagara_blast.wagara_core.boosters import BoosterType
from wagara_blast.wagara_core.cells import CellState
from wagara_blast.wagara_core.config_loader import GameConfig, load_config
from wagara_blast.wagara_core.daily import generate_daily_challenge
from wagara_blast.wagara_core.game import GameEngine
from wagara_blast.wagara_core.game_state import GameMode, GameState
from wagara_blast.wagara_core.grid import can_place_block
from wagara_blast.wagara_core.levels import LevelConfig, load_level
from wagara_blast.wagara_core.obstacle_catalog import ObstacleType
from wagara_blast.wagara_core.state_snapshot import SnapshotBuilder

logger = logging.getLogger(__name__)

_OBSTACLE_GLYPHS = {
    ObstacleType.STONE: "S",
    ObstacleType.FROZEN: "F",
    ObstacleType.CHAIN: "C",
    ObstacleType.ROTATE: "R",
}


def render_text(state: GameState) -> str:
    """Plain-text board: '.' empty, '#' filled, '~' fog, '*' kintsugi, letters for obstacles."""
    lines = []
    for row in state.grid:
        chars = []
        for cell in row:
            if cell.state == CellState.OBSTACLE:
                chars.append(_OBSTACLE_GLYPHS.get(cell.obstacle, "?"))
            elif cell.state == CellState.FILLED:
                chars.append("#")
            elif cell.has_fog:
                chars.append("~")
            elif cell.kintsugi:
                chars.append("*")
            else:
                chars.append(".")
        lines.append(" ".join(chars))
    lines.append(f"score={state.score} combo={state.combo} moves={state.move_count} "
                 f"status={state.status.value}")
    return "\n".join(lines)


class WagaraEnv(gym.Env):
    """
    Wagara Blast as a Gymnasium environment.

    Action Space:
        MultiDiscrete([tray_size, N, N]): (piece slot, anchor row, anchor col).

    Observation Space:
        Dict of grid planes, tray arrays and counters from SnapshotBuilder.

    Reward:
        Score gained by the move. Illegal actions leave the state unchanged
        and give ``invalid_action_penalty``.

    Info:
        Contains score, delta_score, events, status and action_mask.
    """

    metadata = {
        "render_modes": ["ansi"],
        "render_fps": 4,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        mode: Union[GameMode, str] = GameMode.CLASSIC,
        level_id: Optional[int] = None,
        daily_date: Optional[str] = None,
        render_mode: Optional[str] = None,
        invalid_action_penalty: float = 0.0,
        max_steps: Optional[int] = None,
        debug: bool = False,
    ):
        """
        Initialize environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            mode: classic, level or daily.
            level_id: Level to play in level mode. Defaults to 1.
            daily_date: YYYY-MM-DD for daily mode. Today if None.
            render_mode: "ansi" for text, None for headless.
            invalid_action_penalty: Reward for an illegal placement.
            max_steps: Truncate episodes after this many steps.
            debug: If True, sets this package's loggers to DEBUG.
        """
        super().__init__()

        self._config: GameConfig = load_config(config_path)
        self._mode = GameMode(mode)
        self._level_id = level_id
        self._daily_date = daily_date
        self.render_mode = render_mode
        self._invalid_action_penalty = float(invalid_action_penalty)
        self._max_steps = max_steps
        self._debug = debug

        if self._debug:
            logging.getLogger("wagara_blast").setLevel(logging.DEBUG)

        self._engine = GameEngine(config=self._config)
        self._snapshots = SnapshotBuilder(self._config)
        self._state: Optional[GameState] = None
        self._steps = 0

        size = self._config.grid.default_size
        tray = self._config.pieces.tray_size
        self.action_space = spaces.MultiDiscrete([tray, size, size])
        self.observation_space = self._build_observation_space()

        logger.debug("WagaraEnv initialized: %dx%d grid, tray=%d, mode=%s",
                     size, size, tray, self._mode.value)

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        n = self._config.grid.default_size
        tray = self._config.pieces.tray_size
        big = np.iinfo(np.int32).max

        return spaces.Dict({
            # Grid planes
            "cell_state": spaces.Box(low=0, high=2, shape=(n, n), dtype=np.int8),
            "pattern_id": spaces.Box(low=-1, high=self._config.num_patterns - 1, shape=(n, n), dtype=np.int8),
            "obstacle_id": spaces.Box(low=-1, high=len(ObstacleType) - 1, shape=(n, n), dtype=np.int8),
            "fog": spaces.Box(low=0, high=1, shape=(n, n), dtype=np.int8),
            "kintsugi": spaces.Box(low=0, high=1, shape=(n, n), dtype=np.int8),
            "frozen_turns": spaces.Box(low=0, high=np.iinfo(np.int16).max, shape=(n, n), dtype=np.int16),
            "chain_hp": spaces.Box(low=0, high=np.iinfo(np.int16).max, shape=(n, n), dtype=np.int16),

            # Tray
            "piece_shape_id": spaces.Box(low=-1, high=self._config.num_shapes - 1, shape=(tray,), dtype=np.int16),
            "piece_pattern_id": spaces.Box(low=-1, high=self._config.num_patterns - 1, shape=(tray,), dtype=np.int16),
            "piece_mask": spaces.Box(low=0, high=1, shape=(tray,), dtype=np.int8),

            # Counters
            "score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "combo": spaces.Box(low=0, high=big, shape=(), dtype=np.int32),
            "move_count": spaces.Box(low=0, high=big, shape=(), dtype=np.int32),
            "lines_cleared": spaces.Box(low=0, high=big, shape=(), dtype=np.int32),
            "moves_remaining": spaces.Box(low=-1, high=big, shape=(), dtype=np.int32),
            "boosters": spaces.Box(low=0, high=big, shape=(len(BoosterType),), dtype=np.int32),
        })

    def _level_for(self, mode: GameMode, options: Dict[str, Any]) -> Optional[LevelConfig]:
        if mode == GameMode.LEVEL:
            return load_level(int(options.get("level_id", self._level_id or 1)))
        if mode == GameMode.DAILY:
            return generate_daily_challenge(options.get("daily_date", self._daily_date), self._config)
        return None

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Random seed for reproducibility.
            options: May override "mode", "level_id" or "daily_date".

        Returns:
            (observation, info) tuple.

        Raises:
            ValueError: If the selected level's grid size doesn't match the
                observation space.
        """
        super().reset(seed=seed)
        options = options or {}

        mode = GameMode(options.get("mode", self._mode))
        level = self._level_for(mode, options)
        if level is not None and level.grid_size != self._config.grid.default_size:
            raise ValueError(
                f"Level grid {level.grid_size} doesn't match env grid {self._config.grid.default_size}"
            )

        # Derive the engine seed from the env RNG so seeded resets replay exactly
        self._engine.reset(int(self.np_random.integers(0, 2**31 - 1)))
        self._state = self._engine.init_game(mode, level)
        self._steps = 0

        obs = self._snapshots.build(self._state).to_obs_dict()
        info = self._info(delta_score=0, events=[])
        return obs, info

    def step(
        self,
        action: Union[np.ndarray, Tuple[int, int, int]]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Place one piece.

        Args:
            action: (slot, row, col).

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
        """
        if self._state is None:
            raise RuntimeError("Call reset() before step()")

        slot, row, col = (int(a) for a in action)
        before = self._state.score

        result = self._engine.place_piece(self._state, slot, (row, col))
        self._state = result.state
        self._steps += 1

        delta = self._state.score - before
        reward = self._invalid_action_penalty if result.rejected else float(delta)
        terminated = self._state.is_terminal
        truncated = bool(self._max_steps is not None and self._steps >= self._max_steps and not terminated)

        obs = self._snapshots.build(self._state).to_obs_dict()
        info = self._info(delta_score=delta, events=[e.type.value for e in result.events])
        info["invalid_action"] = result.rejected

        logger.debug("Step: action=(%d, %d, %d) delta=%d events=%s",
                     slot, row, col, delta, info["events"])
        if terminated:
            logger.debug("TERMINATED: %s", self._state.status.value)

        return obs, reward, terminated, truncated, info

    def action_mask(self) -> np.ndarray:
        """Boolean (tray, N, N) array of legal actions."""
        n = self._config.grid.default_size
        tray = self._config.pieces.tray_size
        mask = np.zeros((tray, n, n), dtype=np.bool_)
        if self._state is None:
            return mask
        grid = self._state.grid
        for slot, piece in enumerate(self._state.current_pieces[:tray]):
            if piece is None:
                continue
            for pos in grid.positions():
                if can_place_block(grid, piece, pos):
                    mask[slot, pos.row, pos.col] = True
        return mask

    def _info(self, delta_score: int, events: List[str]) -> Dict[str, Any]:
        state = self._state
        return {
            "score": state.score,
            "delta_score": delta_score,
            "events": events,
            "status": state.status.value,
            "combo": state.combo,
            "move_count": state.move_count,
            "lines_cleared": state.lines_cleared,
            "action_mask": self.action_mask(),
        }

    def render(self) -> Optional[str]:
        """Text rendering when render_mode is "ansi"."""
        if self.render_mode == "ansi" and self._state is not None:
            return render_text(self._state)
        return None

    def close(self) -> None:
        self._state = None

    @property
    def engine(self) -> GameEngine:
        """Access to underlying engine (for debugging/tools)."""
        return self._engine

    @property
    def state(self) -> Optional[GameState]:
        return self._state

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
