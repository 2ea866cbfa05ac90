"""
Piece Generator
===============

Deals block pieces: a uniformly random shape paired with a
frequency-weighted pattern type.
"""

from __future__ import annotations

import random
from typing import List, Optional

from wagara_blast.wagara_core.config_loader import GameConfig, get_config
from wagara_blast.wagara_core.piece_catalog import BlockPiece, BlockShape, PieceCatalog, get_catalog
from wagara_blast.wagara_core.rng import PieceIdCounter, SeededRandom


class PieceGenerator:
    """
    Produces sets of pieces in two modes.

    Unseeded draws come from the generator's own ``random.Random`` and take
    ids from its PieceIdCounter. Seeded draws take an explicit SeededRandom
    and derive ids from the index, shape and pattern, so the same seed
    always yields the same pieces.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        id_counter: Optional[PieceIdCounter] = None
    ):
        """
        Initialize generator.

        Args:
            config: Game configuration. Uses default if None.
            seed: Seed for the unseeded-mode source. Random if None.
            id_counter: Id source for unseeded pieces. A fresh one if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._catalog: PieceCatalog = get_catalog(config)
        self._rng = random.Random(seed)
        self._ids = id_counter if id_counter is not None else PieceIdCounter()

    @property
    def catalog(self) -> PieceCatalog:
        return self._catalog

    @property
    def id_counter(self) -> PieceIdCounter:
        return self._ids

    def reset(self, seed: Optional[int] = None) -> None:
        """Reseed the unseeded source and restart id numbering."""
        self._rng = random.Random(seed)
        self._ids.reset()

    def pick_shape(self, rng: Optional[SeededRandom] = None) -> BlockShape:
        if rng is not None:
            return rng.pick(self._catalog.shapes)
        return self._rng.choice(self._catalog.shapes)

    def pick_pattern(self, rng: Optional[SeededRandom] = None) -> str:
        """Draw a pattern id from the weighted pool."""
        pool = self._catalog.pattern_pool
        if rng is not None:
            return rng.pick(pool)
        return self._rng.choice(pool)

    def generate(self, count: Optional[int] = None, rng: Optional[SeededRandom] = None) -> List[BlockPiece]:
        """
        Generate pieces.

        Args:
            count: Number of pieces. Defaults to the configured tray size.
            rng: Deterministic source. When given, ids are derived from
                index, shape and pattern instead of the counter.

        Returns:
            List of new pieces.
        """
        if count is None:
            count = self._config.pieces.tray_size

        pieces = []
        for i in range(count):
            shape = self.pick_shape(rng)
            pattern = self.pick_pattern(rng)
            if rng is not None:
                piece_id = f"piece_seeded_{i}_{shape.id}_{pattern}"
            else:
                piece_id = self._ids.next_id()
            pieces.append(BlockPiece(id=piece_id, shape=shape, pattern=pattern))
        return pieces
