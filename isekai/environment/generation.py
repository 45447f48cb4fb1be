"""Procedural overworld and fixed town layouts.

Zone rules run first and carving runs after. The dirt paths link the town entrance
to the bridge and the bridge to the southern ford; nothing checks reachability of
the boss room, which lava may wall off.
"""

from __future__ import annotations

import math
import random
from typing import Optional, Tuple

from .grid import TerrainGrid
from .tiles import RIVER_TILES, TileKind

OVERWORLD_WIDTH = 60
OVERWORLD_HEIGHT = 40
TOWN_WIDTH = 15
TOWN_HEIGHT = 11

TOWN_ENTRANCE: Tuple[int, int] = (3, 3)
# Tile under the player's first overworld position, just south of the entrance
PLAYER_START_TILE: Tuple[int, int] = (3, 4)
BOSS_TILE: Tuple[int, int] = (OVERWORLD_WIDTH - 3, OVERWORLD_HEIGHT - 3)

RIVER_COLUMNS: Tuple[int, int] = (25, 26)
FROZEN_ROWS = 15  # river is ice above this row
BRIDGE_ROW = 10
FORD_ROW = 30
LAVA_RADIUS = 2
LAVA_CHANCE = 0.4

TOWN_FOUNTAIN: Tuple[int, int] = (7, 5)
TOWN_EXIT: Tuple[int, int] = (7, TOWN_HEIGHT - 1)


def _zone_tile(x: int, y: int, rng: random.Random) -> TileKind:
    """Roll the base tile for an interior cell from its quadrant."""

    if x < 25 and y < 15:
        return TileKind.TREE if rng.random() < 0.05 else TileKind.SNOW
    if x > 25 and y < 20:
        return TileKind.TREE if rng.random() < 0.15 else TileKind.FOREST
    if x < 30 and y >= 20:
        return TileKind.MOUNTAIN if rng.random() < 0.05 else TileKind.SAND
    if x >= 30 and y >= 20:
        return TileKind.MOUNTAIN if rng.random() < 0.1 else TileKind.DUNGEON_FLOOR

    # Open grassland: scattered trees, then the occasional pond on top
    kind = TileKind.GRASS
    if rng.random() < 0.05:
        kind = TileKind.TREE
    if rng.random() < 0.02:
        kind = TileKind.WATER
    return kind


def _carve(grid: TerrainGrid, x: int, y: int) -> None:
    if grid.get(x, y) not in RIVER_TILES:
        grid.set(x, y, TileKind.DIRT_PATH)


def _carve_river(grid: TerrainGrid) -> None:
    # Interior rows only; the border ring stays water.
    for y in range(1, grid.height - 1):
        kind = TileKind.ICE if y < FROZEN_ROWS else TileKind.WATER
        for x in RIVER_COLUMNS:
            grid.set(x, y, kind)

    left, right = RIVER_COLUMNS
    grid.set(left, BRIDGE_ROW, TileKind.BRIDGE)
    grid.set(right, BRIDGE_ROW, TileKind.BRIDGE)
    # Southern ford continues the banks on either side
    grid.set(left, FORD_ROW, TileKind.SAND)
    grid.set(right, FORD_ROW, TileKind.DUNGEON_FLOOR)


def _carve_paths(grid: TerrainGrid, rng: random.Random) -> None:
    # Entrance to the bridge: one column per step, drifting down every third column
    cx, cy = TOWN_ENTRANCE
    while cx < RIVER_COLUMNS[0]:
        cx += 1
        if cy < BRIDGE_ROW and cx % 3 == 0:
            cy += 1
        _carve(grid, cx, cy)

    # Far bank of the bridge into the dungeon: biased random walk
    cx, cy = RIVER_COLUMNS[1], BRIDGE_ROW
    while cy < FORD_ROW:
        if rng.random() > 0.3:
            cy += 1
        if rng.random() > 0.3:
            cx += 1
        cx = min(cx, grid.width - 2)
        cy = min(cy, grid.height - 2)
        _carve(grid, cx, cy)


def _scatter_lava(grid: TerrainGrid, rng: random.Random) -> None:
    bx, by = BOSS_TILE
    for y in range(by - LAVA_RADIUS, by + LAVA_RADIUS + 1):
        for x in range(bx - LAVA_RADIUS, bx + LAVA_RADIUS + 1):
            if grid.in_bounds(x, y) and rng.random() < LAVA_CHANCE:
                grid.set(x, y, TileKind.LAVA)


def generate_overworld(rng: Optional[random.Random] = None) -> TerrainGrid:
    """Build a fresh, independently randomized overworld grid."""

    rng = rng or random.Random()
    grid = TerrainGrid.filled(OVERWORLD_WIDTH, OVERWORLD_HEIGHT, TileKind.GRASS)

    for y in range(grid.height):
        for x in range(grid.width):
            if x in (0, grid.width - 1) or y in (0, grid.height - 1):
                grid.set(x, y, TileKind.WATER)
            else:
                grid.set(x, y, _zone_tile(x, y, rng))

    _carve_river(grid)
    _carve_paths(grid, rng)
    _scatter_lava(grid, rng)

    # Landmarks are stamped last so nothing above can overwrite them
    grid.set(*PLAYER_START_TILE, TileKind.DIRT_PATH)
    grid.set(*TOWN_ENTRANCE, TileKind.TOWN_ENTRANCE)
    grid.set(*BOSS_TILE, TileKind.BOSS_FLOOR)
    return grid


def generate_town() -> TerrainGrid:
    """Build the fixed town layout."""

    grid = TerrainGrid.filled(TOWN_WIDTH, TOWN_HEIGHT, TileKind.TOWN_FLOOR)
    for x, y, _ in list(grid.cells()):
        if x in (0, grid.width - 1) or y in (0, grid.height - 1):
            grid.set(x, y, TileKind.TOWN_WALL)

    for x in (2, 3):
        grid.set(x, 2, TileKind.SHOP)
    for x in (grid.width - 4, grid.width - 3):
        grid.set(x, 2, TileKind.GUILD)

    fx, fy = TOWN_FOUNTAIN
    ex, ey = TOWN_EXIT
    grid.set(fx, fy, TileKind.FOUNTAIN)
    grid.set(ex, ey, TileKind.TOWN_EXIT)

    # Exit north to the fountain
    for y in range(ey - 1, fy, -1):
        grid.set(ex, y, TileKind.DIRT_PATH)
    for dx, dy in ((-1, 0), (1, 0), (0, -1), (0, 1)):
        grid.set(fx + dx, fy + dy, TileKind.DIRT_PATH)

    # Fountain west, then north to the shop door
    for x in range(fx - 1, 2, -1):
        grid.set(x, fy, TileKind.DIRT_PATH)
    for y in range(fy - 1, 2, -1):
        grid.set(3, y, TileKind.DIRT_PATH)

    # Fountain east, then north to the guild door
    for x in range(fx + 1, 12):
        grid.set(x, fy, TileKind.DIRT_PATH)
    for y in range(fy - 1, 2, -1):
        grid.set(11, y, TileKind.DIRT_PATH)

    return grid


def tile_variation(x: int, y: int) -> float:
    """Stable cosmetic noise in [0, 1) for decorating tiles; no gameplay effect."""

    return abs(math.sin(x * 12.9898 + y * 78.233) * 43758.5453) % 1
