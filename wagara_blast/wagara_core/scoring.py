"""
Scoring System
==============

Placement points, tiered line-clear points with a combo multiplier, and the
kintsugi bonus.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from wagara_blast.wagara_core.config_loader import GameConfig, get_config


@dataclass(frozen=True)
class MoveScore:
    """Breakdown of the points awarded for one placement."""
    placement: int
    line_clear: int
    lines: int
    combo_index: int
    kintsugi: bool

    @property
    def total(self) -> int:
        return self.placement + self.line_clear

    def __repr__(self) -> str:
        return (f"MoveScore(total={self.total}, placement={self.placement}, "
                f"lines={self.lines}x{self.combo_index}, kintsugi={self.kintsugi})")


class ScoreCalculator:
    """
    Score formulas.

    Line clears by simultaneous line count L:
    - L = 1: 100
    - L = 2: 300
    - L >= 3: 100 * L * 2

    The result is scaled by (1 + combo_index * 0.5) and floored. Kintsugi
    doubles the scaled line-clear points. Placement points are never scaled.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize calculator.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()
        self._scoring = config.scoring

    @staticmethod
    def combo_index(combo: int) -> int:
        """Multiplier index for a combo streak: the first clear in a streak is 0."""
        return max(combo - 1, 0)

    def placement_score(self, cell_count: int) -> int:
        return cell_count * self._scoring.points_per_cell

    def line_clear_score(self, total_lines: int, combo_index: int) -> int:
        """
        Points for clearing total_lines at once.

        Args:
            total_lines: Rows plus columns cleared.
            combo_index: Output of combo_index() for the current streak.
        """
        if total_lines <= 0:
            return 0
        s = self._scoring
        if total_lines == 1:
            base = s.single_line
        elif total_lines == 2:
            base = s.double_line
        else:
            base = s.single_line * total_lines * s.multi_line_factor
        return int(math.floor(base * (1 + combo_index * s.combo_step)))

    def kintsugi_bonus(self, line_score: int) -> int:
        return line_score * self._scoring.kintsugi_multiplier

    def move_score(
        self,
        cell_count: int,
        total_lines: int,
        combo_index: int,
        has_kintsugi: bool
    ) -> MoveScore:
        """Combine placement, line-clear and kintsugi points for one move."""
        line_score = self.line_clear_score(total_lines, combo_index)
        kintsugi = has_kintsugi and total_lines > 0
        if kintsugi:
            line_score = self.kintsugi_bonus(line_score)
        return MoveScore(
            placement=self.placement_score(cell_count),
            line_clear=line_score,
            lines=total_lines,
            combo_index=combo_index,
            kintsugi=kintsugi
        )

    def is_super_combo(self, combo: int) -> bool:
        return combo >= self._scoring.super_combo_threshold
