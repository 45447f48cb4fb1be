"""Terrain grids, tile kinds and map generation."""

from .tiles import (
    BLOCKING_TILES,
    RIVER_TILES,
    SPAWN_EXCLUDED_TILES,
    TileKind,
    is_blocking,
)
from .schemas import TerrainGridState
from .grid import TerrainGrid
from .generation import (
    BOSS_TILE,
    PLAYER_START_TILE,
    OVERWORLD_HEIGHT,
    OVERWORLD_WIDTH,
    TOWN_ENTRANCE,
    TOWN_HEIGHT,
    TOWN_WIDTH,
    generate_overworld,
    generate_town,
    tile_variation,
)
from .helpers import grid_shortest_path, render_ascii_window

__all__ = [
    "TileKind",
    "BLOCKING_TILES",
    "RIVER_TILES",
    "SPAWN_EXCLUDED_TILES",
    "is_blocking",
    "TerrainGrid",
    "TerrainGridState",
    "generate_overworld",
    "generate_town",
    "tile_variation",
    "OVERWORLD_WIDTH",
    "OVERWORLD_HEIGHT",
    "TOWN_WIDTH",
    "TOWN_HEIGHT",
    "TOWN_ENTRANCE",
    "BOSS_TILE",
    "PLAYER_START_TILE",
    "grid_shortest_path",
    "render_ascii_window",
]
