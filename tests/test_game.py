"""
Tests for the game engine: placement turns, boosters and terminal states.
"""

import pytest

from wagara_blast.wagara_core.boosters import BoosterInventory, BoosterType
from wagara_blast.wagara_core.cells import Cell, Position
from wagara_blast.wagara_core.config_loader import load_config
from wagara_blast.wagara_core.events import FeedbackType
from wagara_blast.wagara_core.game import GameEngine
from wagara_blast.wagara_core.game_state import GameMode, GameStatus
from wagara_blast.wagara_core.grid import create_empty_grid
from wagara_blast.wagara_core.levels import ClearCondition, ClearConditionType, LevelConfig, load_level
from wagara_blast.wagara_core.obstacle_catalog import ObstacleType
from wagara_blast.wagara_core.piece_catalog import BlockPiece, PieceCatalog
from wagara_blast.wagara_core.rules import TerminationRules


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def catalog(config):
    return PieceCatalog(config)


@pytest.fixture
def engine(config):
    return GameEngine(config, seed=42)


def make_piece(catalog, shape_id, index=0, pattern="asanoha"):
    return BlockPiece(id=f"test_{index}_{shape_id}", shape=catalog.get_shape(shape_id), pattern=pattern)


def singles(catalog, count=3):
    return tuple(make_piece(catalog, "single", i) for i in range(count))


def fill(grid, positions, pattern="ichimatsu", kintsugi=False):
    return grid.replace({pos: Cell.filled(pattern, kintsugi=kintsugi) for pos in positions})


def setup(engine, grid, pieces, mode=GameMode.CLASSIC, level=None, **fields):
    """A fresh session with the board and tray replaced."""
    state = engine.init_game(mode, level)
    return state.evolve(grid=grid, grid_size=grid.size, current_pieces=tuple(pieces), **fields)


def checkerboard():
    """Even cells empty, odd cells filled: no line is complete and only singles fit."""
    grid = create_empty_grid(8)
    return fill(grid, [pos for pos in grid.positions() if (pos.row + pos.col) % 2 == 1])


def score_level(target, thresholds, max_moves=None, kind=ClearConditionType.SCORE):
    return LevelConfig(
        id=99,
        grid_size=8,
        clear_condition=ClearCondition(kind, target),
        star_thresholds=thresholds,
        max_moves=max_moves
    )


class TestInitGame:
    """Test session creation."""

    def test_classic(self, engine):
        state = engine.init_game(GameMode.CLASSIC)
        assert state.grid_size == 8
        assert len(state.current_pieces) == 3
        assert all(p is not None for p in state.current_pieces)
        assert state.score == 0
        assert state.status == GameStatus.ACTIVE
        assert state.boosters[BoosterType.SHUFFLE] == 3
        assert state.level_config is None

    def test_level_grid(self, engine):
        state = engine.init_game("level", load_level(4))
        assert state.mode == GameMode.LEVEL
        assert state.grid[3, 3].obstacle == ObstacleType.STONE

    def test_custom_inventory(self, engine):
        state = engine.init_game(GameMode.CLASSIC, booster_inventory={"wave": 5})
        assert state.boosters[BoosterType.WAVE] == 5
        assert state.boosters[BoosterType.GUIDE] == 0

    def test_unknown_mode(self, engine):
        with pytest.raises(ValueError):
            engine.init_game("arcade")

    def test_seeded_engines_deal_alike(self, config):
        a = GameEngine(config, seed=7).init_game(GameMode.CLASSIC)
        b = GameEngine(config, seed=7).init_game(GameMode.CLASSIC)
        assert a.current_pieces == b.current_pieces


class TestPlacement:
    """Worked placement scenarios."""

    def test_vertical_four_no_line(self, engine, catalog):
        pieces = (make_piece(catalog, "i_shape_4"),) + singles(catalog, 2)
        state = setup(engine, create_empty_grid(8), pieces, combo=2)

        result = engine.place_piece(state, 0, (0, 0))
        new = result.state
        assert new.score == 40
        assert new.combo == 0
        assert new.move_count == 1
        assert new.current_pieces[0] is None
        assert result.event_types == (FeedbackType.PLACE,)
        assert all(new.grid[r, 0].is_filled for r in range(4))

    def test_single_completes_row(self, engine, catalog):
        grid = fill(create_empty_grid(8), [(3, c) for c in range(7)])
        state = setup(engine, grid, singles(catalog))

        result = engine.place_piece(state, 0, (3, 7))
        new = result.state
        assert new.score == 110
        assert new.combo == 1
        assert new.lines_cleared == 1
        assert all(cell.is_empty for cell in new.grid.row(3))
        assert result.event_types == (FeedbackType.PLACE, FeedbackType.LINE_CLEAR)
        assert result.events[1].rows == (3,)
        assert result.move_score.total == 110

    def test_kintsugi_row_doubles(self, engine, catalog):
        grid = fill(create_empty_grid(8), [(3, c) for c in range(7)], kintsugi=True)
        grid = grid.replace({(3, 7): Cell.empty(kintsugi=True)})
        state = setup(engine, grid, singles(catalog))

        new = engine.place_piece(state, 0, (3, 7)).state
        assert new.score == 210
        assert all(cell.is_empty and cell.kintsugi for cell in new.grid.row(3))

    def test_stone_rejects_placement(self, engine, catalog):
        grid = create_empty_grid(8).replace({(0, 0): Cell.obstacle_cell(ObstacleType.STONE)})
        state = setup(engine, grid, (make_piece(catalog, "square_2x2"),) + singles(catalog, 2))

        result = engine.place_piece(state, 0, (0, 0))
        assert result.state is state
        assert result.event_types == (FeedbackType.INVALID_DROP,)
        assert result.rejected

    def test_chain_breaks_over_two_turns(self, engine, catalog):
        """An HP 2 chain loses one point per adjacent clear."""
        grid = fill(create_empty_grid(8), [(2, c) for c in range(7)] + [(4, c) for c in range(1, 7)])
        grid = grid.replace({(3, 0): Cell.obstacle_cell(ObstacleType.CHAIN, chain_hp=2), (4, 0): Cell.filled("uroko")})
        state = setup(engine, grid, singles(catalog))

        first = engine.place_piece(state, 0, (2, 7))
        assert first.state.grid[3, 0].is_obstacle
        assert first.state.grid[3, 0].chain_hp == 1
        assert FeedbackType.CHAIN not in first.event_types

        second = engine.place_piece(first.state, 1, (4, 7))
        assert second.state.grid[3, 0].is_empty
        assert second.event_types == (
            FeedbackType.PLACE, FeedbackType.LINE_CLEAR, FeedbackType.COMBO, FeedbackType.CHAIN
        )
        assert second.state.combo == 2
        assert second.state.score == 110 + 160

    def test_double_line_cross(self, engine, catalog):
        grid = fill(create_empty_grid(8), [(5, c) for c in range(8) if c != 2] + [(r, 2) for r in range(8) if r != 5])
        state = setup(engine, grid, singles(catalog))

        result = engine.place_piece(state, 0, (5, 2))
        assert result.state.score == 10 + 300
        assert result.state.lines_cleared == 2
        assert result.state.grid[5, 2].is_empty

    def test_obstacle_line_keeps_obstacle(self, engine, catalog):
        grid = fill(create_empty_grid(8), [(0, c) for c in range(1, 7)])
        grid = grid.replace({(0, 0): Cell.obstacle_cell(ObstacleType.STONE)})
        state = setup(engine, grid, singles(catalog))

        new = engine.place_piece(state, 0, (0, 7)).state
        assert new.lines_cleared == 1
        assert new.grid[0, 0].obstacle == ObstacleType.STONE
        assert new.grid[0, 7].is_empty

    def test_super_combo(self, engine, catalog):
        grid = fill(create_empty_grid(8), [(3, c) for c in range(7)])
        state = setup(engine, grid, singles(catalog), combo=3, best_combo=3)

        result = engine.place_piece(state, 0, (3, 7))
        assert result.state.combo == 4
        assert result.state.best_combo == 4
        assert FeedbackType.SUPER_COMBO in result.event_types
        assert FeedbackType.COMBO not in result.event_types
        combo_event = result.events[2]
        assert combo_event.combo_count == 4

    def test_frozen_thaws_each_turn(self, engine, catalog):
        grid = create_empty_grid(8).replace({
            (7, 7): Cell.obstacle_cell(ObstacleType.FROZEN, frozen_turns=2),
        })
        state = setup(engine, grid, singles(catalog))

        state = engine.place_piece(state, 0, (0, 0)).state
        assert state.grid[7, 7].frozen_turns == 1
        state = engine.place_piece(state, 1, (0, 2)).state
        assert state.grid[7, 7].is_empty

    def test_fog_lifts_near_placement(self, engine, catalog):
        grid = create_empty_grid(8)
        grid = grid.replace({pos: Cell.empty(has_fog=True) for pos in grid.positions()})
        state = setup(engine, grid, singles(catalog))

        new = engine.place_piece(state, 0, (0, 0)).state
        assert not new.grid[2, 2].has_fog
        assert new.grid[3, 3].has_fog

    def test_input_state_unchanged(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog))
        engine.place_piece(state, 0, (0, 0))
        assert state.score == 0
        assert state.grid[0, 0].is_empty
        assert state.current_pieces[0] is not None

    def test_pattern_discovered(self, engine, catalog):
        pieces = (make_piece(catalog, "single", pattern="kikkou"),) + singles(catalog, 2)
        state = setup(engine, create_empty_grid(8), pieces)
        new = engine.place_piece(state, 0, (0, 0)).state
        assert "kikkou" in new.discovered_patterns


class TestInvalidPlacement:
    """Rejected placements leave the state alone."""

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_bad_slot(self, engine, catalog, index):
        state = setup(engine, create_empty_grid(8), singles(catalog))
        result = engine.place_piece(state, index, (0, 0))
        assert result.state is state
        assert result.rejected

    def test_empty_slot(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), (None,) + singles(catalog, 2))
        result = engine.place_piece(state, 0, (0, 0))
        assert result.event_types == (FeedbackType.INVALID_DROP,)

    def test_out_of_bounds(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), (make_piece(catalog, "i_shape_4"),) + singles(catalog, 2))
        assert engine.place_piece(state, 0, (6, 0)).rejected

    def test_occupied_target(self, engine, catalog):
        state = setup(engine, fill(create_empty_grid(8), [(1, 1)]), singles(catalog))
        assert engine.place_piece(state, 0, (1, 1)).rejected


class TestTray:
    """Test tray refills."""

    def test_no_refill_while_pieces_remain(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog))
        new = engine.place_piece(state, 0, (0, 0)).state
        assert new.current_pieces[0] is None
        assert new.current_pieces[1:] == state.current_pieces[1:]

    def test_refill_after_last_piece(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), (None, make_piece(catalog, "single"), None))
        new = engine.place_piece(state, 1, (0, 0)).state
        assert len(new.current_pieces) == 3
        assert all(p is not None for p in new.current_pieces)

    def test_available_placements(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), (make_piece(catalog, "square_3x3"), None, make_piece(catalog, "single")))
        placements = engine.get_available_placements(state)
        assert set(placements) == {0, 2}
        assert len(placements[0]) == 36
        assert len(placements[2]) == 64


class TestTermination:
    """Test game over and level clear."""

    def test_game_over_when_nothing_fits(self, engine, catalog):
        pieces = (make_piece(catalog, "single"), make_piece(catalog, "square_2x2", 1), make_piece(catalog, "domino_h", 2))
        state = setup(engine, checkerboard(), pieces)

        result = engine.place_piece(state, 0, (0, 0))
        assert result.state.status == GameStatus.GAME_OVER
        assert result.event_types == (FeedbackType.PLACE, FeedbackType.GAME_OVER)
        assert engine.is_game_over(result.state)

    def test_terminal_state_ignores_moves(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog), status=GameStatus.GAME_OVER)
        result = engine.place_piece(state, 0, (0, 0))
        assert result.state is state
        assert result.events == ()

    def test_empty_tray_is_not_game_over(self, engine):
        state = setup(engine, create_empty_grid(8), (None, None, None))
        assert not engine.is_game_over(state)

    def test_classic_never_clears(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog), score=10**6)
        assert not engine.is_level_cleared(state)

    def test_score_level_cleared_with_stars(self, engine, catalog):
        level = score_level(100, (100, 110, 300))
        grid = fill(create_empty_grid(8), [(3, c) for c in range(7)])
        state = setup(engine, grid, singles(catalog), mode=GameMode.LEVEL, level=level)

        result = engine.place_piece(state, 0, (3, 7))
        assert result.state.status == GameStatus.LEVEL_CLEARED
        assert result.state.stars_earned == 2
        assert result.event_types[-1] == FeedbackType.LEVEL_CLEAR

    def test_lines_condition(self, engine, catalog):
        level = score_level(1, (100, 200, 300), kind=ClearConditionType.LINES)
        grid = fill(create_empty_grid(8), [(3, c) for c in range(7)])
        state = setup(engine, grid, singles(catalog), mode=GameMode.LEVEL, level=level)
        assert engine.place_piece(state, 0, (3, 7)).state.is_level_cleared

    def test_moves_condition_uses_first_threshold(self, engine, catalog):
        level = score_level(999, (20, 200, 300), kind=ClearConditionType.MOVES)
        state = setup(engine, create_empty_grid(8), singles(catalog), mode=GameMode.LEVEL, level=level)

        state = engine.place_piece(state, 0, (0, 0)).state
        assert not state.is_level_cleared
        state = engine.place_piece(state, 1, (0, 2)).state
        assert state.is_level_cleared

    def test_move_cap(self, engine, catalog):
        level = score_level(10000, (10000, 20000, 30000), max_moves=2)
        state = setup(engine, create_empty_grid(8), singles(catalog), mode=GameMode.LEVEL, level=level)

        state = engine.place_piece(state, 0, (0, 0)).state
        assert state.status == GameStatus.ACTIVE
        result = engine.place_piece(state, 1, (0, 2))
        assert result.state.status == GameStatus.GAME_OVER
        assert result.event_types[-1] == FeedbackType.GAME_OVER

    def test_clear_wins_over_cap(self, engine, catalog):
        level = score_level(100, (100, 200, 300), max_moves=1)
        grid = fill(create_empty_grid(8), [(3, c) for c in range(7)])
        state = setup(engine, grid, singles(catalog), mode=GameMode.LEVEL, level=level)

        result = engine.place_piece(state, 0, (3, 7))
        assert result.state.status == GameStatus.LEVEL_CLEARED
        assert FeedbackType.GAME_OVER not in result.event_types


class TestBoosters:
    """Test booster dispatch through the engine."""

    def test_stone_breaker(self, engine, catalog):
        grid = create_empty_grid(8).replace({(0, 0): Cell.obstacle_cell(ObstacleType.STONE)})
        state = setup(engine, grid, singles(catalog))

        result = engine.use_booster(state, BoosterType.STONE_BREAKER, (0, 0))
        assert result.state.grid[0, 0].is_empty
        assert result.state.boosters[BoosterType.STONE_BREAKER] == 2
        assert result.event_types == (FeedbackType.PLACE,)

    def test_missing_target_not_consumed(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog))
        for booster, target in [
            (BoosterType.STONE_BREAKER, None),
            (BoosterType.STONE_BREAKER, 3),
            (BoosterType.LIGHTNING, None),
            (BoosterType.WAVE, (1, 2)),
        ]:
            result = engine.use_booster(state, booster, target)
            assert result.rejected
            assert result.state is state

    def test_empty_inventory(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog), boosters=BoosterInventory())
        result = engine.use_booster(state, "lightning", 0)
        assert result.event_types == (FeedbackType.INVALID_DROP,)
        assert result.state is state

    def test_shuffle(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), (None, make_piece(catalog, "single"), None))
        result = engine.use_booster(state, BoosterType.SHUFFLE)
        assert all(p is not None for p in result.state.current_pieces)
        assert len(result.state.current_pieces) == 3
        assert result.state.boosters[BoosterType.SHUFFLE] == 2

    def test_guide(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog))
        result = engine.use_booster(state, BoosterType.GUIDE)
        assert result.suggestion is not None
        assert result.suggestion.position == Position(3, 3)
        assert result.state.grid == state.grid
        assert result.state.boosters[BoosterType.GUIDE] == 2
        assert result.event_types == (FeedbackType.HOVER,)

    def test_guide_without_fit_not_consumed(self, engine, catalog):
        pieces = tuple(make_piece(catalog, "square_2x2", i) for i in range(3))
        state = setup(engine, checkerboard(), pieces)
        result = engine.use_booster(state, BoosterType.GUIDE)
        assert result.suggestion is None
        assert result.events == ()
        assert result.state.boosters[BoosterType.GUIDE] == 3

    def test_lightning_and_wave(self, engine, catalog):
        grid = fill(create_empty_grid(8), [(2, 0), (5, 6)])
        grid = grid.replace({(2, 4): Cell.obstacle_cell(ObstacleType.STONE)})
        state = setup(engine, grid, singles(catalog))

        row = engine.use_booster(state, BoosterType.LIGHTNING, 2)
        assert all(cell.is_empty for cell in row.state.grid.row(2))
        assert row.events[0].rows == (2,)
        assert row.state.boosters[BoosterType.LIGHTNING] == 0

        col = engine.use_booster(row.state, BoosterType.WAVE, 6)
        assert all(cell.is_empty for cell in col.state.grid.column(6))
        assert col.events[0].cols == (6,)

    def test_boosters_leave_score_alone(self, engine, catalog):
        state = setup(engine, fill(create_empty_grid(8), [(1, c) for c in range(8)]), singles(catalog), score=50, combo=2)
        new = engine.use_booster(state, BoosterType.LIGHTNING, 1).state
        assert new.score == 50
        assert new.combo == 2
        assert new.move_count == 0
        assert new.lines_cleared == 0

    def test_terminal_state(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog), status=GameStatus.LEVEL_CLEARED)
        result = engine.use_booster(state, BoosterType.SHUFFLE)
        assert result.state is state
        assert result.events == ()

    def test_unknown_booster(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog))
        with pytest.raises(ValueError):
            engine.use_booster(state, "hammer")


class TestTerminationRules:
    """Test the rule checks on hand-built states."""

    def test_check_active(self, engine, catalog):
        state = setup(engine, create_empty_grid(8), singles(catalog))
        result = TerminationRules.check(state)
        assert not result.terminated
        assert result.status == GameStatus.ACTIVE

    def test_check_no_placement(self, engine, catalog):
        pieces = tuple(make_piece(catalog, "square_2x2", i) for i in range(3))
        result = TerminationRules.check(setup(engine, checkerboard(), pieces))
        assert result.status == GameStatus.GAME_OVER
        assert result.reason == "no_valid_placement"

    def test_check_move_cap(self, engine, catalog):
        level = score_level(10000, (10000, 20000, 30000), max_moves=5)
        state = setup(engine, create_empty_grid(8), singles(catalog), mode=GameMode.LEVEL, level=level, move_count=5)
        result = TerminationRules.check(state)
        assert result.status == GameStatus.GAME_OVER
        assert result.reason == "move_cap"

    def test_check_level_cleared(self, engine, catalog):
        level = score_level(100, (100, 200, 300))
        state = setup(engine, create_empty_grid(8), singles(catalog), mode=GameMode.LEVEL, level=level, score=100)
        assert TerminationRules.check(state).status == GameStatus.LEVEL_CLEARED
