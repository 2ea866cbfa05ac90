"""
RNG - Seeded Generators
=======================

Deterministic Mulberry32 generator used for reproducible daily challenges,
the date-to-seed hash that feeds it, and the id counter used when pieces
are dealt from an unseeded source.
"""

from __future__ import annotations

import datetime
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & _MASK32


class SeededRandom:
    """
    Mulberry32 pseudo-random generator.

    Produces the same sequence for the same integer seed on every platform,
    which makes a daily challenge identical for every player on a date.
    """

    def __init__(self, seed: int):
        """
        Initialize generator.

        Args:
            seed: Integer seed. Only the low 32 bits are used.
        """
        self._state = seed & _MASK32

    def next(self) -> float:
        """Return a float in [0, 1)."""
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        s = self._state
        t = _imul(s ^ (s >> 15), s | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296.0

    def next_int(self, low: int, high: int) -> int:
        """Return an integer in [low, high] inclusive."""
        return low + int(self.next() * (high - low + 1))

    def pick(self, items: Sequence[T]) -> T:
        """Pick one element uniformly."""
        return items[self.next_int(0, len(items) - 1)]

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Return a Fisher-Yates shuffled copy of items."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(0, i)
            result[i], result[j] = result[j], result[i]
        return result


def date_seed(date_str: str) -> int:
    """
    Hash a date string (YYYY-MM-DD) into a non-negative integer seed.

    Uses the h = h * 31 + code string hash wrapped to a signed 32-bit
    integer after each character.
    """
    h = 0
    for ch in date_str:
        h = (h * 31 + ord(ch)) & _MASK32
        if h >= 0x80000000:
            h -= 0x100000000
    return abs(h)


def today_string(today: Optional[datetime.date] = None) -> str:
    """Local calendar date as YYYY-MM-DD."""
    if today is None:
        today = datetime.date.today()
    return today.isoformat()


class PieceIdCounter:
    """Monotonic id source for pieces dealt without a seed."""

    def __init__(self, start: int = 0):
        self._start = start
        self._value = start

    def next_id(self) -> str:
        self._value += 1
        return f"piece_{self._value}"

    @property
    def value(self) -> int:
        return self._value

    def reset(self) -> None:
        """Restart numbering (used by tests)."""
        self._value = self._start
