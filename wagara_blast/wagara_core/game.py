"""
Core Game
=========

Main game orchestrator combining the grid, obstacles, scoring, boosters and
piece generation into single-call state transitions.

Every operation takes a GameState and returns a TurnResult holding the new
state and the ordered feedback events. The input state is never modified.
"""

from __future__ import annotations

import logging
import numbers
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from wagara_blast.wagara_core.boosters import (
    BoosterInventory,
    BoosterType,
    GuideSuggestion,
    apply_guide,
    apply_lightning,
    apply_shuffle,
    apply_stone_breaker,
    apply_wave,
    consume_booster
)
from wagara_blast.wagara_core.cells import Position
from wagara_blast.wagara_core.config_loader import GameConfig, get_config
from wagara_blast.wagara_core.events import FeedbackEvent, FeedbackType
from wagara_blast.wagara_core.game_state import GameMode, GameState, GameStatus
from wagara_blast.wagara_core.grid import (
    can_place_block,
    clear_lines,
    create_empty_grid,
    create_grid_from_config,
    find_completed_lines,
    piece_positions,
    place_block,
    valid_positions
)
from wagara_blast.wagara_core.levels import LevelConfig, calculate_stars
from wagara_blast.wagara_core.obstacles import process_all_obstacles
from wagara_blast.wagara_core.piece_catalog import BlockPiece
from wagara_blast.wagara_core.pieces import PieceGenerator
from wagara_blast.wagara_core.rules import TerminationRules
from wagara_blast.wagara_core.scoring import MoveScore, ScoreCalculator

logger = logging.getLogger(__name__)

BoosterTarget = Union[Tuple[int, int], int, None]


@dataclass(frozen=True)
class TurnResult:
    """Result of one engine call."""
    state: GameState
    events: Tuple[FeedbackEvent, ...]
    suggestion: Optional[GuideSuggestion] = None
    move_score: Optional[MoveScore] = None

    @property
    def event_types(self) -> Tuple[FeedbackType, ...]:
        return tuple(e.type for e in self.events)

    @property
    def rejected(self) -> bool:
        return FeedbackType.INVALID_DROP in self.event_types


def _as_position(target) -> Optional[Position]:
    if isinstance(target, (tuple, list)) and len(target) == 2:
        row, col = target
        if isinstance(row, numbers.Integral) and isinstance(col, numbers.Integral):
            return Position(int(row), int(col))
    return None


def _as_index(target) -> Optional[int]:
    if isinstance(target, numbers.Integral) and not isinstance(target, bool):
        return int(target)
    return None


class GameEngine:
    """
    Turn-level state machine.

    States move from active to either game over or level cleared. Nothing
    leaves a terminal state except a fresh init_game.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize engine.

        Args:
            config: Game configuration. Uses default if None.
            seed: Seed for dealing pieces. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._generator = PieceGenerator(config, seed=seed)
        self._scorer = ScoreCalculator(config)
        self._rules = TerminationRules()
        self._feedback = config.feedback

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def generator(self) -> PieceGenerator:
        return self._generator

    @property
    def scorer(self) -> ScoreCalculator:
        return self._scorer

    @property
    def rules(self) -> TerminationRules:
        return self._rules

    def reset(self, seed: Optional[int] = None) -> None:
        """Reseed piece dealing and restart piece ids."""
        self._generator.reset(seed)

    def _deal(self) -> Tuple[Optional[BlockPiece], ...]:
        return tuple(self._generator.generate(self._config.pieces.tray_size))

    # ------------------------------------------------------------------
    # Session setup
    # ------------------------------------------------------------------

    def init_game(
        self,
        mode: Union[GameMode, str],
        level_config: Optional[LevelConfig] = None,
        booster_inventory: Optional[BoosterInventory] = None
    ) -> GameState:
        """
        Start a session.

        Args:
            mode: classic, level or daily.
            level_config: Level to build the grid from. Classic uses an
                empty default-size grid when None.
            booster_inventory: Counts supplied by the caller. Defaults from
                config when None.

        Returns:
            Fresh GameState with three dealt pieces.

        Raises:
            ValueError: If mode is not a known game mode.
        """
        mode = GameMode(mode)

        if level_config is not None:
            grid = create_grid_from_config(level_config, self._config)
        else:
            grid = create_empty_grid(self._config.grid.default_size)

        if booster_inventory is None:
            booster_inventory = BoosterInventory.default(self._config)
        elif not isinstance(booster_inventory, BoosterInventory):
            booster_inventory = BoosterInventory(booster_inventory)

        state = GameState(
            grid=grid,
            grid_size=grid.size,
            mode=mode,
            current_pieces=self._deal(),
            boosters=booster_inventory,
            level_config=level_config,
            started_at=time.time()
        )
        logger.debug("New %s game: grid=%d level=%s", mode.value, grid.size,
                     level_config.id if level_config else None)
        return state

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def _invalid(self, state: GameState) -> TurnResult:
        return TurnResult(state, (FeedbackEvent(FeedbackType.INVALID_DROP, self._feedback.invalid_drop),))

    def place_piece(
        self,
        state: GameState,
        piece_index: int,
        position: Tuple[int, int]
    ) -> TurnResult:
        """
        Place a tray piece at an anchor position.

        Args:
            state: Current state.
            piece_index: Tray slot.
            position: (row, col) of the piece's top-left anchor.

        Returns:
            TurnResult. Terminal states give no events; an empty slot or an
            illegal position gives the unchanged state and invalid_drop.
        """
        if state.is_terminal:
            return TurnResult(state, ())

        if not 0 <= piece_index < len(state.current_pieces):
            return self._invalid(state)
        piece = state.current_pieces[piece_index]
        if piece is None:
            return self._invalid(state)

        position = Position(int(position[0]), int(position[1]))
        if not can_place_block(state.grid, piece, position):
            return self._invalid(state)

        fb = self._feedback
        events: List[FeedbackEvent] = []

        placed_grid = place_block(state.grid, piece, position)
        placed = piece_positions(piece, position)
        events.append(FeedbackEvent(
            FeedbackType.PLACE, fb.place, score=self._scorer.placement_score(piece.shape.size)
        ))

        lines = find_completed_lines(placed_grid)
        combo = state.combo + 1 if lines else 0

        obstacle_result = process_all_obstacles(placed_grid, lines, placed, self._config)
        if lines:
            grid = clear_lines(obstacle_result.grid, lines.rows, lines.cols)
        else:
            grid = obstacle_result.grid

        move = self._scorer.move_score(
            piece.shape.size,
            lines.total,
            self._scorer.combo_index(combo),
            obstacle_result.has_kintsugi
        )

        if lines:
            events.append(FeedbackEvent(
                FeedbackType.LINE_CLEAR,
                min(1.0, fb.line_clear_base + lines.total * fb.line_clear_step),
                rows=lines.rows,
                cols=lines.cols,
                score=move.line_clear
            ))
            if combo >= 2:
                combo_type = FeedbackType.SUPER_COMBO if self._scorer.is_super_combo(combo) else FeedbackType.COMBO
                events.append(FeedbackEvent(
                    combo_type,
                    min(1.0, fb.combo_base + combo * fb.combo_step),
                    combo_count=combo,
                    score=move.total
                ))

        if obstacle_result.chains_broken > 0:
            events.append(FeedbackEvent(FeedbackType.CHAIN, fb.chain))

        pieces = list(state.current_pieces)
        pieces[piece_index] = None
        if all(p is None for p in pieces):
            pieces = list(self._deal())

        new_state = state.evolve(
            grid=grid,
            score=state.score + move.total,
            current_pieces=tuple(pieces),
            combo=combo,
            move_count=state.move_count + 1,
            lines_cleared=state.lines_cleared + lines.total,
            best_combo=max(state.best_combo, combo),
            discovered_patterns=state.discovered_patterns | {piece.pattern}
        )

        termination = self._rules.check(new_state)
        if termination.status == GameStatus.LEVEL_CLEARED:
            stars = 0
            if new_state.level_config is not None:
                stars = calculate_stars(new_state.score, new_state.level_config.star_thresholds)
            new_state = new_state.evolve(status=GameStatus.LEVEL_CLEARED, stars_earned=stars)
            events.append(FeedbackEvent(FeedbackType.LEVEL_CLEAR, fb.level_clear, score=new_state.score))
        elif termination.status == GameStatus.GAME_OVER:
            new_state = new_state.evolve(status=GameStatus.GAME_OVER)
            events.append(FeedbackEvent(FeedbackType.GAME_OVER, fb.game_over, score=new_state.score))

        logger.debug(
            "Placed %s at %s: +%d (lines=%d combo=%d) status=%s %s",
            piece.shape.id, tuple(position), move.total, lines.total, combo,
            new_state.status.value, termination.reason
        )
        return TurnResult(new_state, tuple(events), move_score=move)

    # ------------------------------------------------------------------
    # Boosters
    # ------------------------------------------------------------------

    def use_booster(
        self,
        state: GameState,
        booster_type: Union[BoosterType, str],
        target: BoosterTarget = None
    ) -> TurnResult:
        """
        Use one booster from the inventory.

        Args:
            state: Current state.
            booster_type: Booster to use.
            target: (row, col) for stone_breaker, a row index for lightning,
                a column index for wave. Ignored otherwise.

        Returns:
            TurnResult. An empty inventory slot or a missing target gives
            invalid_drop without consuming. Guide with no legal placement
            gives no events and consumes nothing.

        Raises:
            ValueError: If booster_type is not a known booster.
        """
        booster = BoosterType(booster_type)

        if state.is_terminal:
            return TurnResult(state, ())
        if state.boosters[booster] <= 0:
            return self._invalid(state)

        fb = self._feedback
        grid = state.grid
        pieces = state.current_pieces
        suggestion = None
        events: List[FeedbackEvent] = []

        if booster == BoosterType.STONE_BREAKER:
            pos = _as_position(target)
            if pos is None:
                return self._invalid(state)
            grid = apply_stone_breaker(grid, pos)
            events.append(FeedbackEvent(FeedbackType.PLACE, fb.stone_breaker))

        elif booster == BoosterType.SHUFFLE:
            pieces = tuple(apply_shuffle(pieces, self._generator, self._config.pieces.tray_size))
            events.append(FeedbackEvent(FeedbackType.PLACE, fb.shuffle))

        elif booster == BoosterType.GUIDE:
            suggestion = apply_guide(grid, pieces, self._config.boosters.guide_lines_weight)
            if suggestion is None:
                return TurnResult(state, ())
            events.append(FeedbackEvent(FeedbackType.HOVER, fb.guide))

        elif booster == BoosterType.LIGHTNING:
            row = _as_index(target)
            if row is None:
                return self._invalid(state)
            grid = apply_lightning(grid, row)
            events.append(FeedbackEvent(FeedbackType.LINE_CLEAR, fb.line_booster, rows=(row,)))

        elif booster == BoosterType.WAVE:
            col = _as_index(target)
            if col is None:
                return self._invalid(state)
            grid = apply_wave(grid, col)
            events.append(FeedbackEvent(FeedbackType.LINE_CLEAR, fb.line_booster, cols=(col,)))

        new_state = state.evolve(
            grid=grid,
            current_pieces=pieces,
            boosters=consume_booster(state.boosters, booster)
        )

        if self._rules.is_game_over(new_state):
            new_state = new_state.evolve(status=GameStatus.GAME_OVER)
            events.append(FeedbackEvent(FeedbackType.GAME_OVER, fb.game_over, score=new_state.score))

        logger.debug("Booster %s used (target=%s), %d left",
                     booster.value, target, new_state.boosters[booster])
        return TurnResult(new_state, tuple(events), suggestion=suggestion)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_available_placements(self, state: GameState) -> Dict[int, List[Position]]:
        """Legal anchors for every non-empty tray slot, keyed by slot index."""
        return {
            i: valid_positions(state.grid, piece)
            for i, piece in enumerate(state.current_pieces)
            if piece is not None
        }

    def is_level_cleared(self, state: GameState) -> bool:
        return self._rules.is_level_cleared(state)

    def is_game_over(self, state: GameState) -> bool:
        return self._rules.is_game_over(state)
