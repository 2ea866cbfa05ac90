"""
Wagara Core - The rules engine and its Gymnasium wrapper.

This module provides the deterministic game-state engine (grid, obstacles,
scoring, boosters, piece generation, levels and daily challenges) and a
Gymnasium environment built on top of it.

Main exports:
- GameEngine: Turn-level orchestrator (init_game, place_piece, use_booster)
- GameState: Immutable session state returned by every engine call
- WagaraEnv: Gymnasium environment for single-agent training
- GameConfig: Configuration loaded from game_config.yaml
"""

from gymnasium.envs.registration import register

from wagara_blast.wagara_core.config_loader import GameConfig, load_config
from wagara_blast.wagara_core.boosters import BoosterInventory, BoosterType
from wagara_blast.wagara_core.cells import Cell, CellState, Position
from wagara_blast.wagara_core.daily import generate_daily_challenge
from wagara_blast.wagara_core.events import FeedbackEvent, FeedbackType
from wagara_blast.wagara_core.game import GameEngine, TurnResult
from wagara_blast.wagara_core.game_state import GameMode, GameState, GameStatus
from wagara_blast.wagara_core.grid import Grid
from wagara_blast.wagara_core.levels import LevelConfig, get_all_levels, load_level
from wagara_blast.wagara_core.env_gym import WagaraEnv

register(
    id="WagaraBlast-8x8-v0",
    entry_point="wagara_blast.wagara_core.env_gym:WagaraEnv",
)

__all__ = [
    "GameConfig",
    "load_config",
    "BoosterInventory",
    "BoosterType",
    "Cell",
    "CellState",
    "Position",
    "generate_daily_challenge",
    "FeedbackEvent",
    "FeedbackType",
    "GameEngine",
    "TurnResult",
    "GameMode",
    "GameState",
    "GameStatus",
    "Grid",
    "LevelConfig",
    "get_all_levels",
    "load_level",
    "WagaraEnv",
]
