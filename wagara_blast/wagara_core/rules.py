"""
Game Rules
==========

Handles level-clear and game-over conditions.
"""

from __future__ import annotations

from dataclasses import dataclass

from wagara_blast.wagara_core.game_state import GameMode, GameState, GameStatus
from wagara_blast.wagara_core.grid import has_valid_placement
from wagara_blast.wagara_core.levels import ClearConditionType


@dataclass
class TerminationResult:
    """Result of termination check."""
    status: GameStatus
    reason: str

    @property
    def terminated(self) -> bool:
        return self.status != GameStatus.ACTIVE

    @staticmethod
    def none() -> "TerminationResult":
        return TerminationResult(GameStatus.ACTIVE, "")

    @staticmethod
    def level_cleared(reason: str) -> "TerminationResult":
        return TerminationResult(GameStatus.LEVEL_CLEARED, reason)

    @staticmethod
    def game_over(reason: str) -> "TerminationResult":
        return TerminationResult(GameStatus.GAME_OVER, reason)


class TerminationRules:
    """
    Terminal condition checks.

    Level clear is checked before game over, so a move that both meets the
    target and exhausts the move cap clears the level.
    """

    @staticmethod
    def is_level_cleared(state: GameState) -> bool:
        """
        Check the level's clear condition.

        Always False in classic mode. The ``moves`` condition compares the
        score with the first star threshold; its target is not used.
        """
        if state.status == GameStatus.LEVEL_CLEARED:
            return True
        if state.mode == GameMode.CLASSIC:
            return False
        config = state.level_config
        if config is None:
            return False

        condition = config.clear_condition
        if condition.type == ClearConditionType.SCORE:
            return state.score >= condition.target
        if condition.type == ClearConditionType.LINES:
            return state.lines_cleared >= condition.target
        if condition.type == ClearConditionType.MOVES:
            return state.score >= config.star_thresholds[0]
        return False

    @staticmethod
    def move_cap_reached(state: GameState) -> bool:
        config = state.level_config
        return bool(config is not None and config.max_moves and state.move_count >= config.max_moves)

    @classmethod
    def is_game_over(cls, state: GameState) -> bool:
        """
        True when the move cap is used up or no tray piece fits anywhere.

        An empty tray on its own is not game over.
        """
        if state.status == GameStatus.GAME_OVER:
            return True
        if state.status == GameStatus.LEVEL_CLEARED:
            return False
        if cls.move_cap_reached(state):
            return True
        pieces = state.active_pieces
        if not pieces:
            return False
        return not has_valid_placement(state.grid, pieces)

    @classmethod
    def check(cls, state: GameState) -> TerminationResult:
        """Evaluate level clear, then game over."""
        if cls.is_level_cleared(state):
            return TerminationResult.level_cleared("target_reached")
        if cls.is_game_over(state):
            if cls.move_cap_reached(state):
                return TerminationResult.game_over("move_cap")
            return TerminationResult.game_over("no_valid_placement")
        return TerminationResult.none()
