"""
Grid Engine
===========

Immutable N x N grid plus the placement, line detection and line clearing
rules. Every mutation returns a new Grid; unchanged rows are shared between
the old and new value.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, TYPE_CHECKING

from wagara_blast.wagara_core.cells import EMPTY_CELL, Cell, CellState, Position
from wagara_blast.wagara_core.config_loader import GameConfig, get_config
from wagara_blast.wagara_core.obstacle_catalog import ObstacleType
from wagara_blast.wagara_core.piece_catalog import BlockPiece

if TYPE_CHECKING:
    from wagara_blast.wagara_core.levels import LevelConfig


class CompletedLines(NamedTuple):
    """Row and column indices that are fully occupied."""
    rows: Tuple[int, ...]
    cols: Tuple[int, ...]

    @property
    def total(self) -> int:
        return len(self.rows) + len(self.cols)

    def __bool__(self) -> bool:
        return self.total > 0


NO_LINES = CompletedLines((), ())


class Grid:
    """
    Square matrix of cells.

    Instances never change after construction. Use ``replace`` to derive a
    grid with some cells swapped out.
    """

    __slots__ = ("_rows",)

    def __init__(self, rows: Iterable[Iterable[Cell]]):
        self._rows: Tuple[Tuple[Cell, ...], ...] = tuple(tuple(row) for row in rows)
        size = len(self._rows)
        for row in self._rows:
            if len(row) != size:
                raise ValueError(f"Grid must be square, got a row of {len(row)} in a {size}-row grid")

    @property
    def size(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> Tuple[Tuple[Cell, ...], ...]:
        return self._rows

    def row(self, index: int) -> Tuple[Cell, ...]:
        return self._rows[index]

    def column(self, index: int) -> Tuple[Cell, ...]:
        return tuple(row[index] for row in self._rows)

    def __getitem__(self, pos: Tuple[int, int]) -> Cell:
        row, col = pos
        return self._rows[row][col]

    def __iter__(self) -> Iterator[Tuple[Cell, ...]]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._rows == other._rows

    def __hash__(self) -> int:
        return hash(self._rows)

    def __repr__(self) -> str:
        return f"Grid({self.size}x{self.size}, filled={count_filled_cells(self)})"

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def get(self, pos: Tuple[int, int]) -> Optional[Cell]:
        """Cell at pos, or None when out of bounds."""
        row, col = pos
        if not self.in_bounds(row, col):
            return None
        return self._rows[row][col]

    def positions(self) -> Iterator[Position]:
        """All positions in row-major order."""
        for r in range(self.size):
            for c in range(self.size):
                yield Position(r, c)

    def cells(self) -> Iterator[Tuple[Position, Cell]]:
        for r, row in enumerate(self._rows):
            for c, cell in enumerate(row):
                yield Position(r, c), cell

    def replace(self, updates: Dict[Tuple[int, int], Cell]) -> "Grid":
        """
        Return a new grid with the given cells replaced.

        Args:
            updates: Mapping of (row, col) to the new cell value.

        Returns:
            A new Grid. Rows without updates are shared with this grid.
        """
        if not updates:
            return self
        by_row: Dict[int, Dict[int, Cell]] = {}
        for (r, c), cell in updates.items():
            by_row.setdefault(r, {})[c] = cell
        new_rows = list(self._rows)
        for r, row_updates in by_row.items():
            row = list(new_rows[r])
            for c, cell in row_updates.items():
                row[c] = cell
            new_rows[r] = tuple(row)
        grid = Grid.__new__(Grid)
        grid._rows = tuple(new_rows)
        return grid


def create_empty_grid(size: int) -> Grid:
    """Grid of all-empty cells."""
    row = (EMPTY_CELL,) * size
    return Grid(row for _ in range(size))


def create_grid_from_config(
    level_config: "LevelConfig",
    config: Optional[GameConfig] = None
) -> Grid:
    """
    Build the starting grid for a level.

    A pre-baked grid on the level is returned as is. Otherwise obstacles are
    stamped onto an empty grid in list order; positions outside the grid are
    skipped. Fog becomes an empty cell with the fog overlay and kintsugi an
    empty cell with the kintsugi marker.

    Args:
        level_config: Level definition.
        config: Game configuration for payload defaults. Uses default if None.
    """
    if level_config.grid is not None:
        return level_config.grid

    if config is None:
        config = get_config()
    defaults = config.obstacle_defaults

    size = level_config.grid_size
    updates: Dict[Tuple[int, int], Cell] = {}
    for obstacle in level_config.obstacles:
        for row, col in obstacle.positions:
            if not (0 <= row < size and 0 <= col < size):
                continue
            if obstacle.type == ObstacleType.FOG:
                cell = Cell.empty(has_fog=True)
            elif obstacle.type == ObstacleType.KINTSUGI:
                cell = Cell.empty(kintsugi=True)
            elif obstacle.type == ObstacleType.FROZEN:
                turns = obstacle.frozen_turns if obstacle.frozen_turns is not None else defaults.frozen_turns
                cell = Cell.obstacle_cell(ObstacleType.FROZEN, frozen_turns=turns)
            elif obstacle.type == ObstacleType.CHAIN:
                hp = obstacle.chain_hp if obstacle.chain_hp is not None else defaults.chain_hp
                cell = Cell.obstacle_cell(ObstacleType.CHAIN, chain_hp=hp)
            else:
                cell = Cell.obstacle_cell(obstacle.type)
            updates[(row, col)] = cell

    return create_empty_grid(size).replace(updates)


def piece_positions(piece: BlockPiece, position: Tuple[int, int]) -> List[Position]:
    """Absolute positions covered by a piece anchored at position."""
    row, col = position
    return [Position(row + dr, col + dc) for dr, dc in piece.cells]


def can_place_block(grid: Grid, piece: BlockPiece, position: Tuple[int, int]) -> bool:
    """
    Check whether a piece fits at the given anchor.

    Every covered cell must be in bounds and empty. Fog does not block.
    """
    size = grid.size
    row, col = position
    rows = grid.rows
    for dr, dc in piece.cells:
        r = row + dr
        c = col + dc
        if r < 0 or r >= size or c < 0 or c >= size:
            return False
        if rows[r][c].state != CellState.EMPTY:
            return False
    return True


def place_block(grid: Grid, piece: BlockPiece, position: Tuple[int, int]) -> Grid:
    """
    Fill the covered cells with the piece's pattern.

    Performs no validation; call can_place_block first. Fog and kintsugi
    marks on the target cells are kept.
    """
    updates = {}
    for pos in piece_positions(piece, position):
        target = grid[pos]
        updates[pos] = Cell.filled(piece.pattern, has_fog=target.has_fog, kintsugi=target.kintsugi)
    return grid.replace(updates)


def find_completed_lines(grid: Grid) -> CompletedLines:
    """
    Find all complete rows and columns.

    A line is complete when each of its cells is filled or an obstacle.
    Empty cells, including fogged or kintsugi ones, break a line.
    """
    size = grid.size
    rows = tuple(r for r in range(size) if all(cell.occupied for cell in grid.row(r)))
    cols = tuple(c for c in range(size) if all(grid.rows[r][c].occupied for r in range(size)))
    return CompletedLines(rows, cols)


def clear_lines(grid: Grid, rows: Sequence[int], cols: Sequence[int]) -> Grid:
    """
    Reset every cell in the given rows and columns to empty.

    Obstacle cells are left untouched. Cleared cells lose fog and keep their
    kintsugi marker.
    """
    row_set = set(rows)
    col_set = set(cols)
    if not row_set and not col_set:
        return grid

    updates = {}
    for pos, cell in grid.cells():
        if pos.row not in row_set and pos.col not in col_set:
            continue
        if cell.is_obstacle:
            continue
        cleared = Cell.empty(kintsugi=cell.kintsugi)
        if cleared != cell:
            updates[pos] = cleared
    return grid.replace(updates)


def valid_positions(grid: Grid, piece: BlockPiece) -> List[Position]:
    """Every legal anchor for a piece, row-major."""
    return [pos for pos in grid.positions() if can_place_block(grid, piece, pos)]


def has_valid_placement(grid: Grid, pieces: Sequence[Optional[BlockPiece]]) -> bool:
    """True if any non-empty slot has at least one legal anchor."""
    for piece in pieces:
        if piece is None:
            continue
        for pos in grid.positions():
            if can_place_block(grid, piece, pos):
                return True
    return False


def count_filled_cells(grid: Grid) -> int:
    return sum(1 for _, cell in grid.cells() if cell.is_filled)


def fill_percentage(grid: Grid) -> float:
    """Filled cells over non-obstacle cells, in [0, 1]."""
    placeable = 0
    filled = 0
    for _, cell in grid.cells():
        if cell.is_obstacle:
            continue
        placeable += 1
        if cell.is_filled:
            filled += 1
    if placeable == 0:
        return 0.0
    return filled / placeable
