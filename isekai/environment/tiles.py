"""Tile kinds and the passability/spawn tables shared by every grid."""

from __future__ import annotations

from enum import IntEnum
from typing import FrozenSet


class TileKind(IntEnum):
    """Terrain type of a single grid cell.

    Integer values are stable because saved overworld grids store them directly.
    """

    GRASS = 0
    TREE = 1
    MOUNTAIN = 2
    TOWN_ENTRANCE = 3
    DUNGEON_FLOOR = 4
    BOSS_FLOOR = 5
    WATER = 6
    SAND = 7
    FOREST = 8

    # Town grid
    TOWN_FLOOR = 9
    TOWN_WALL = 10
    SHOP = 11
    GUILD = 12
    TOWN_EXIT = 13
    FOUNTAIN = 14

    SNOW = 15
    ICE = 16
    LAVA = 17
    BRIDGE = 18
    DIRT_PATH = 19


# Ice is passable; no friction is modelled.
BLOCKING_TILES: FrozenSet[TileKind] = frozenset(
    {
        TileKind.TREE,
        TileKind.MOUNTAIN,
        TileKind.WATER,
        TileKind.TOWN_WALL,
        TileKind.LAVA,
    }
)

# Cells the spawner never populates.
SPAWN_EXCLUDED_TILES: FrozenSet[TileKind] = frozenset(
    {
        TileKind.TOWN_ENTRANCE,
        TileKind.WATER,
        TileKind.TREE,
        TileKind.MOUNTAIN,
        TileKind.LAVA,
        TileKind.ICE,
    }
)

# Path carving refuses to overwrite these.
RIVER_TILES: FrozenSet[TileKind] = frozenset(
    {TileKind.WATER, TileKind.BRIDGE, TileKind.ICE}
)


def is_blocking(kind: TileKind) -> bool:
    return kind in BLOCKING_TILES
