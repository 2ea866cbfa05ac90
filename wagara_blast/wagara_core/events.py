"""
Feedback Events
===============

Records emitted by the engine for audio, haptic and animation consumers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class FeedbackType(str, Enum):
    PICKUP = "pickup"
    HOVER = "hover"
    PLACE = "place"
    INVALID_DROP = "invalid_drop"
    LINE_CLEAR = "line_clear"
    COMBO = "combo"
    SUPER_COMBO = "super_combo"
    CHAIN = "chain"
    LEVEL_CLEAR = "level_clear"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class FeedbackEvent:
    """One feedback cue. Optional fields are set only where meaningful."""
    type: FeedbackType
    intensity: Optional[float] = None
    combo_count: Optional[int] = None
    rows: Tuple[int, ...] = ()
    cols: Tuple[int, ...] = ()
    score: Optional[int] = None

    def __repr__(self) -> str:
        extras = []
        if self.intensity is not None:
            extras.append(f"intensity={self.intensity:.2f}")
        if self.combo_count is not None:
            extras.append(f"combo={self.combo_count}")
        if self.rows or self.cols:
            extras.append(f"rows={list(self.rows)} cols={list(self.cols)}")
        if self.score is not None:
            extras.append(f"score={self.score}")
        return f"FeedbackEvent({self.type.value}{', ' if extras else ''}{', '.join(extras)})"
