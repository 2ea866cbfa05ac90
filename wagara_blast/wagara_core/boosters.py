"""
Booster Engine
==============

The five special actions and the booster inventory. These functions never
touch the inventory themselves; the game engine consumes a unit only after
a successful dispatch.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from wagara_blast.wagara_core.cells import EMPTY_CELL, Position
from wagara_blast.wagara_core.config_loader import GameConfig, get_config
from wagara_blast.wagara_core.grid import Grid, can_place_block, find_completed_lines, place_block
from wagara_blast.wagara_core.piece_catalog import BlockPiece
from wagara_blast.wagara_core.pieces import PieceGenerator


class BoosterType(str, Enum):
    STONE_BREAKER = "stone_breaker"
    SHUFFLE = "shuffle"
    GUIDE = "guide"
    LIGHTNING = "lightning"
    WAVE = "wave"


@dataclass(frozen=True)
class GuideSuggestion:
    """Best placement found by the guide booster."""
    piece_index: int
    position: Position
    score: float
    lines: int


class BoosterInventory(Mapping):
    """
    Immutable booster counts keyed by BoosterType.

    Missing types count as zero. Counts are never negative.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Optional[Mapping] = None):
        parsed: Dict[BoosterType, int] = {b: 0 for b in BoosterType}
        for key, value in (counts or {}).items():
            count = int(value)
            if count < 0:
                raise ValueError(f"Booster count for {key} must be >= 0, got {count}")
            parsed[BoosterType(key)] = count
        self._counts = parsed

    @classmethod
    def default(cls, config: Optional[GameConfig] = None) -> "BoosterInventory":
        if config is None:
            config = get_config()
        return cls(config.boosters.inventory_dict())

    def __getitem__(self, key) -> int:
        return self._counts[BoosterType(key)]

    def __iter__(self) -> Iterator[BoosterType]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __hash__(self) -> int:
        return hash(tuple(self._counts.items()))

    def __repr__(self) -> str:
        body = ", ".join(f"{k.value}={v}" for k, v in self._counts.items())
        return f"BoosterInventory({body})"

    def to_dict(self) -> Dict[str, int]:
        return {k.value: v for k, v in self._counts.items()}

    def with_count(self, booster: BoosterType, count: int) -> "BoosterInventory":
        counts = dict(self._counts)
        counts[BoosterType(booster)] = count
        return BoosterInventory(counts)


def consume_booster(inventory: BoosterInventory, booster: BoosterType) -> BoosterInventory:
    """
    Take one unit of a booster.

    Raises:
        ValueError: If the booster count is already zero.
    """
    booster = BoosterType(booster)
    count = inventory[booster]
    if count <= 0:
        raise ValueError(f"No {booster.value} boosters left to consume")
    return inventory.with_count(booster, count - 1)


def apply_stone_breaker(grid: Grid, position: Tuple[int, int]) -> Grid:
    """Reset one cell to empty, whatever it holds. Out of bounds is a no-op."""
    row, col = position
    if not grid.in_bounds(row, col):
        return grid
    return grid.replace({(row, col): EMPTY_CELL})


def apply_shuffle(
    current_pieces: Sequence[Optional[BlockPiece]],
    generator: PieceGenerator,
    count: int = 3
) -> List[BlockPiece]:
    """Discard the current tray and deal fresh unseeded pieces."""
    return generator.generate(count)


def apply_guide(
    grid: Grid,
    pieces: Sequence[Optional[BlockPiece]],
    lines_weight: int = 1000
) -> Optional[GuideSuggestion]:
    """
    Suggest the best placement without changing the grid.

    Each legal (piece, anchor) is scored as
    ``lines * lines_weight + (size - distance)``, where distance is the
    Manhattan distance from the piece's bounding-box centre to the grid
    centre. Ties keep the earliest candidate in piece-major, row-major order.

    Returns:
        The best suggestion, or None when no piece fits anywhere.
    """
    size = grid.size
    center = (size - 1) / 2
    best: Optional[GuideSuggestion] = None

    for index, piece in enumerate(pieces):
        if piece is None:
            continue
        for pos in grid.positions():
            if not can_place_block(grid, piece, pos):
                continue
            simulated = place_block(grid, piece, pos)
            lines = find_completed_lines(simulated).total
            distance = (abs(pos.row + piece.shape.height / 2 - center)
                        + abs(pos.col + piece.shape.width / 2 - center))
            score = lines * lines_weight + (size - distance)
            if best is None or score > best.score:
                best = GuideSuggestion(index, pos, score, lines)

    return best


def apply_lightning(grid: Grid, row: int) -> Grid:
    """Empty an entire row, obstacles included."""
    if row < 0 or row >= grid.size:
        return grid
    return grid.replace({(row, c): EMPTY_CELL for c in range(grid.size)})


def apply_wave(grid: Grid, col: int) -> Grid:
    """Empty an entire column, obstacles included."""
    if col < 0 or col >= grid.size:
        return grid
    return grid.replace({(r, col): EMPTY_CELL for r in range(grid.size)})
