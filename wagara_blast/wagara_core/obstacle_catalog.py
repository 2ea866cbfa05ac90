"""
Obstacle Catalog
================

Static metadata for the six obstacle kinds. Live obstacle state is stored on
grid cells; these definitions are reference data only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from wagara_blast.wagara_core.config_loader import GameConfig, get_config


class ObstacleType(str, Enum):
    STONE = "stone"
    KINTSUGI = "kintsugi"
    FROZEN = "frozen"
    CHAIN = "chain"
    FOG = "fog"
    ROTATE = "rotate"


@dataclass(frozen=True)
class ObstacleDefinition:
    """Destructibility and placement rules for one obstacle kind."""
    type: ObstacleType
    name: str
    destructible: bool
    hits_required: int
    blocks_placement: bool


class ObstacleCatalog:
    """Indexed access to obstacle definitions."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._definitions: Dict[ObstacleType, ObstacleDefinition] = {}
        for entry in config.obstacles:
            obstacle_type = ObstacleType(entry.type)
            self._definitions[obstacle_type] = ObstacleDefinition(
                type=obstacle_type,
                name=entry.name,
                destructible=entry.destructible,
                hits_required=entry.hits_required,
                blocks_placement=entry.blocks_placement
            )

    def __len__(self) -> int:
        return len(self._definitions)

    def __getitem__(self, obstacle_type: ObstacleType) -> ObstacleDefinition:
        return self._definitions[ObstacleType(obstacle_type)]

    def __contains__(self, obstacle_type) -> bool:
        return obstacle_type in self._definitions

    @property
    def all_definitions(self) -> Tuple[ObstacleDefinition, ...]:
        return tuple(self._definitions.values())

    def is_destructible(self, obstacle_type: ObstacleType) -> bool:
        return self[obstacle_type].destructible

    def blocks_placement(self, obstacle_type: ObstacleType) -> bool:
        return self[obstacle_type].blocks_placement
