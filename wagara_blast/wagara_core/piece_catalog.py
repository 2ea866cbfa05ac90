"""
Piece Catalog
=============

Provides convenient access to block shapes and pattern types loaded from config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from wagara_blast.wagara_core.config_loader import (
    GameConfig,
    PatternConfig,
    ShapeConfig,
    get_config
)


@dataclass(frozen=True)
class BlockShape:
    """
    Immutable polyomino shape.

    Cells are (row, col) offsets from the top-left anchor of the bounding box.
    """
    id: str
    name: str
    cells: Tuple[Tuple[int, int], ...]
    width: int
    height: int

    @classmethod
    def from_config(cls, shape_config: ShapeConfig) -> "BlockShape":
        return cls(
            id=shape_config.id,
            name=shape_config.name,
            cells=shape_config.cells,
            width=shape_config.width,
            height=shape_config.height
        )

    @property
    def size(self) -> int:
        """Number of cells."""
        return len(self.cells)

    def __repr__(self) -> str:
        return f"BlockShape({self.id}: {self.width}x{self.height})"


@dataclass(frozen=True)
class PatternType:
    """A decorative wagara motif with its draw frequency."""
    id: str
    name: str
    frequency: int

    @classmethod
    def from_config(cls, pattern_config: PatternConfig) -> "PatternType":
        return cls(pattern_config.id, pattern_config.name, pattern_config.frequency)


@dataclass(frozen=True)
class BlockPiece:
    """A shape bound to a pattern type, dealt into the tray."""
    id: str
    shape: BlockShape
    pattern: str

    @property
    def cells(self) -> Tuple[Tuple[int, int], ...]:
        return self.shape.cells


class PieceCatalog:
    """
    Collection of all block shapes and pattern types.

    Also owns the weighted pattern pool: each pattern id repeated
    `frequency` times, drawn from uniformly.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize catalog from game config.

        Args:
            config: GameConfig instance. If None, loads from default location.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._shapes: Tuple[BlockShape, ...] = tuple(
            BlockShape.from_config(s) for s in config.shapes
        )
        self._patterns: Tuple[PatternType, ...] = tuple(
            PatternType.from_config(p) for p in config.patterns
        )

        pool: List[str] = []
        for pattern in self._patterns:
            pool.extend([pattern.id] * pattern.frequency)
        self._pattern_pool: Tuple[str, ...] = tuple(pool)

    def __len__(self) -> int:
        """Number of shapes."""
        return len(self._shapes)

    def __getitem__(self, index: int) -> BlockShape:
        """Get shape by catalog index."""
        if 0 <= index < len(self._shapes):
            return self._shapes[index]
        raise IndexError(f"Shape index {index} out of range [0, {len(self._shapes)})")

    def __iter__(self):
        return iter(self._shapes)

    @property
    def shapes(self) -> Tuple[BlockShape, ...]:
        return self._shapes

    @property
    def patterns(self) -> Tuple[PatternType, ...]:
        return self._patterns

    @property
    def pattern_ids(self) -> Tuple[str, ...]:
        return tuple(p.id for p in self._patterns)

    @property
    def pattern_pool(self) -> Tuple[str, ...]:
        """Flat weighted pool of pattern ids."""
        return self._pattern_pool

    def get_shape(self, shape_id: str) -> BlockShape:
        """
        Look up a shape by id.

        Raises:
            KeyError: If no shape has this id.
        """
        for shape in self._shapes:
            if shape.id == shape_id:
                return shape
        raise KeyError(f"Unknown shape id: {shape_id}")

    def shape_index(self, shape_id: str) -> int:
        """Catalog index of a shape id."""
        for i, shape in enumerate(self._shapes):
            if shape.id == shape_id:
                return i
        raise KeyError(f"Unknown shape id: {shape_id}")

    def pattern_index(self, pattern_id: str) -> int:
        """Catalog index of a pattern id."""
        for i, pattern in enumerate(self._patterns):
            if pattern.id == pattern_id:
                return i
        raise KeyError(f"Unknown pattern id: {pattern_id}")


_cached_catalog: Optional[PieceCatalog] = None


def get_catalog(config: Optional[GameConfig] = None) -> PieceCatalog:
    """
    Get a piece catalog.

    Args:
        config: If provided, creates a new catalog. Otherwise returns cached.
    """
    global _cached_catalog
    if config is not None:
        return PieceCatalog(config)
    if _cached_catalog is None:
        _cached_catalog = PieceCatalog()
    return _cached_catalog
