"""
Obstacle Processor
==================

Per-turn obstacle transitions, applied once per resolved placement in a
fixed order: fog reveal, kintsugi detection, chain damage, frozen thaw.
Stone and rotate cells are never changed by this pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from wagara_blast.wagara_core.cells import Cell, Position
from wagara_blast.wagara_core.config_loader import GameConfig, get_config
from wagara_blast.wagara_core.grid import CompletedLines, Grid
from wagara_blast.wagara_core.obstacle_catalog import ObstacleType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KintsugiResult:
    has_kintsugi: bool
    positions: Tuple[Position, ...]


@dataclass(frozen=True)
class ObstacleResult:
    """Outcome of one obstacle pass."""
    grid: Grid
    has_kintsugi: bool
    kintsugi_positions: Tuple[Position, ...]
    chains_broken: int


def reveal_fog(grid: Grid, placed_positions: Sequence[Tuple[int, int]], radius: int = 2) -> Grid:
    """
    Lift fog within Chebyshev distance ``radius`` of each placed cell.

    Args:
        grid: Current grid.
        placed_positions: Absolute cells covered by the placed piece.
        radius: Reveal radius (2 gives a 5x5 window, clipped to the grid).
    """
    size = grid.size
    updates: Dict[Tuple[int, int], Cell] = {}
    for row, col in placed_positions:
        for r in range(max(0, row - radius), min(size - 1, row + radius) + 1):
            for c in range(max(0, col - radius), min(size - 1, col + radius) + 1):
                cell = grid.rows[r][c]
                if cell.has_fog:
                    updates[(r, c)] = cell.with_fog(False)
    return grid.replace(updates)


def detect_kintsugi(grid: Grid, lines: CompletedLines) -> KintsugiResult:
    """
    Find kintsugi-marked cells on the completed lines.

    Read-only; run against the grid before the lines are cleared. A cell at a
    row/column intersection is reported once.
    """
    size = grid.size
    found: List[Position] = []
    seen = set()
    for row in lines.rows:
        for c in range(size):
            if grid.rows[row][c].kintsugi and (row, c) not in seen:
                seen.add((row, c))
                found.append(Position(row, c))
    for col in lines.cols:
        for r in range(size):
            if grid.rows[r][col].kintsugi and (r, col) not in seen:
                seen.add((r, col))
                found.append(Position(r, col))
    return KintsugiResult(bool(found), tuple(found))


def reduce_chains(grid: Grid, lines: CompletedLines) -> Tuple[Grid, int]:
    """
    Damage chains next to cleared lines.

    A chain takes one hit if any cleared row is within one of its row and one
    more if any cleared column is within one of its column. Chains at zero
    HP become empty.

    Returns:
        (new grid, number of chains destroyed)
    """
    if not lines:
        return grid, 0

    updates: Dict[Tuple[int, int], Cell] = {}
    broken = 0
    for pos, cell in grid.cells():
        if not cell.is_obstacle or cell.obstacle != ObstacleType.CHAIN:
            continue
        hits = 0
        if any(abs(r - pos.row) <= 1 for r in lines.rows):
            hits += 1
        if any(abs(c - pos.col) <= 1 for c in lines.cols):
            hits += 1
        if hits == 0:
            continue
        remaining = (cell.chain_hp if cell.chain_hp is not None else 1) - hits
        if remaining <= 0:
            updates[pos] = Cell.empty()
            broken += 1
        else:
            updates[pos] = Cell.obstacle_cell(ObstacleType.CHAIN, chain_hp=remaining, has_fog=cell.has_fog)
    return grid.replace(updates), broken


def thaw_frozen(grid: Grid) -> Grid:
    """Count every frozen cell down by one turn; melt those that reach zero."""
    updates: Dict[Tuple[int, int], Cell] = {}
    for pos, cell in grid.cells():
        if not cell.is_obstacle or cell.obstacle != ObstacleType.FROZEN:
            continue
        remaining = (cell.frozen_turns if cell.frozen_turns is not None else 1) - 1
        if remaining <= 0:
            updates[pos] = Cell.empty()
        else:
            updates[pos] = Cell.obstacle_cell(ObstacleType.FROZEN, frozen_turns=remaining, has_fog=cell.has_fog)
    return grid.replace(updates)


def process_all_obstacles(
    grid: Grid,
    lines: CompletedLines,
    placed_positions: Sequence[Tuple[int, int]],
    config: Optional[GameConfig] = None
) -> ObstacleResult:
    """
    Run the full obstacle pass for one turn.

    Args:
        grid: Grid after placement, before line clearing.
        lines: Lines completed by the placement.
        placed_positions: Absolute cells covered by the placed piece.
        config: Game configuration. Uses default if None.

    Returns:
        ObstacleResult with the processed grid and kintsugi/chain metadata.
    """
    if config is None:
        config = get_config()

    current = reveal_fog(grid, placed_positions, config.obstacle_defaults.fog_reveal_radius)
    kintsugi = detect_kintsugi(grid, lines)
    current, chains_broken = reduce_chains(current, lines)
    current = thaw_frozen(current)

    if chains_broken or kintsugi.has_kintsugi:
        logger.debug(
            "Obstacle pass: chains_broken=%d kintsugi=%d",
            chains_broken, len(kintsugi.positions)
        )

    return ObstacleResult(
        grid=current,
        has_kintsugi=kintsugi.has_kintsugi,
        kintsugi_positions=kintsugi.positions,
        chains_broken=chains_broken
    )
