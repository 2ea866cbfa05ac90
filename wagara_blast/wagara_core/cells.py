"""
Grid Cells
==========

Immutable cell values. A cell is EMPTY, FILLED or OBSTACLE; payload fields are
only legal for the matching state. Fog is an orthogonal overlay and the
kintsugi marker is a persistent line attribute carried by non-obstacle cells.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple, Optional

from wagara_blast.wagara_core.obstacle_catalog import ObstacleType


class CellState(str, Enum):
    EMPTY = "empty"
    FILLED = "filled"
    OBSTACLE = "obstacle"


class Position(NamedTuple):
    """Grid coordinate."""
    row: int
    col: int


@dataclass(frozen=True)
class Cell:
    """
    One grid cell.

    Use the ``empty``/``filled``/``obstacle`` constructors rather than
    building instances directly.

    Raises:
        ValueError: If payload fields don't match the state tag.
    """
    state: CellState = CellState.EMPTY
    pattern: Optional[str] = None
    obstacle: Optional[ObstacleType] = None
    frozen_turns: Optional[int] = None
    chain_hp: Optional[int] = None
    has_fog: bool = False
    kintsugi: bool = False

    def __post_init__(self):
        if self.state == CellState.FILLED:
            if self.pattern is None:
                raise ValueError("Filled cell requires a pattern")
            if self.obstacle is not None:
                raise ValueError("Filled cell cannot carry an obstacle type")
        elif self.state == CellState.OBSTACLE:
            if self.obstacle is None:
                raise ValueError("Obstacle cell requires an obstacle type")
            if self.pattern is not None:
                raise ValueError("Obstacle cell cannot carry a pattern")
            if self.kintsugi:
                raise ValueError("Obstacle cell cannot carry a kintsugi marker")
        else:
            if self.pattern is not None or self.obstacle is not None:
                raise ValueError("Empty cell cannot carry a pattern or obstacle type")

        if self.frozen_turns is not None and self.obstacle != ObstacleType.FROZEN:
            raise ValueError("frozen_turns is only valid on frozen obstacles")
        if self.chain_hp is not None and self.obstacle != ObstacleType.CHAIN:
            raise ValueError("chain_hp is only valid on chain obstacles")

    @classmethod
    def empty(cls, has_fog: bool = False, kintsugi: bool = False) -> "Cell":
        return cls(CellState.EMPTY, has_fog=has_fog, kintsugi=kintsugi)

    @classmethod
    def filled(cls, pattern: str, has_fog: bool = False, kintsugi: bool = False) -> "Cell":
        return cls(CellState.FILLED, pattern=pattern, has_fog=has_fog, kintsugi=kintsugi)

    @classmethod
    def obstacle_cell(
        cls,
        obstacle: ObstacleType,
        frozen_turns: Optional[int] = None,
        chain_hp: Optional[int] = None,
        has_fog: bool = False
    ) -> "Cell":
        return cls(
            CellState.OBSTACLE,
            obstacle=ObstacleType(obstacle),
            frozen_turns=frozen_turns,
            chain_hp=chain_hp,
            has_fog=has_fog
        )

    @property
    def is_empty(self) -> bool:
        return self.state == CellState.EMPTY

    @property
    def is_filled(self) -> bool:
        return self.state == CellState.FILLED

    @property
    def is_obstacle(self) -> bool:
        return self.state == CellState.OBSTACLE

    @property
    def occupied(self) -> bool:
        """Counts toward line completion."""
        return self.state != CellState.EMPTY

    def with_fog(self, has_fog: bool) -> "Cell":
        if self.has_fog == has_fog:
            return self
        return replace(self, has_fog=has_fog)

    def __repr__(self) -> str:
        parts = [self.state.value]
        if self.pattern:
            parts.append(self.pattern)
        if self.obstacle is not None:
            parts.append(self.obstacle.value)
        if self.frozen_turns is not None:
            parts.append(f"turns={self.frozen_turns}")
        if self.chain_hp is not None:
            parts.append(f"hp={self.chain_hp}")
        if self.has_fog:
            parts.append("fog")
        if self.kintsugi:
            parts.append("kintsugi")
        return f"Cell({', '.join(parts)})"


EMPTY_CELL = Cell.empty()
