"""Utilities for terrain grids: pathfinding and debug rendering."""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Optional, Tuple

from .grid import TerrainGrid
from .tiles import TileKind, is_blocking


def grid_shortest_path(
    grid: TerrainGrid,
    start: Tuple[int, int],
    goal: Tuple[int, int],
    avoid: Optional[Iterable[Tuple[int, int]]] = None,
) -> Optional[List[Tuple[int, int]]]:
    """Return a path of (x, y) tiles from start to goal avoiding blocking tiles.

    Breadth-first search with four-directional steps, so the first path reaching the
    goal is a shortest one. Tiles in ``avoid`` are treated as blocking unless they are
    the goal. Returns None when the goal is unreachable.
    """

    if start == goal:
        return [start]

    directions = [(1, 0), (-1, 0), (0, 1), (0, -1)]
    blocked_extra = set(avoid or ()) - {goal}
    visited = {start}
    queue: deque[Tuple[Tuple[int, int], List[Tuple[int, int]]]] = deque([(start, [start])])

    def neighbors(coord: Tuple[int, int]) -> Iterable[Tuple[int, int]]:
        x, y = coord
        for dx, dy in directions:
            nx, ny = x + dx, y + dy
            kind = grid.get(nx, ny)
            if kind is not None and not is_blocking(kind) and (nx, ny) not in blocked_extra:
                yield nx, ny

    while queue:
        coord, path = queue.popleft()
        for nb in neighbors(coord):
            if nb in visited:
                continue
            visited.add(nb)
            new_path = path + [nb]
            if nb == goal:
                return new_path
            queue.append((nb, new_path))
    return None


_DEFAULT_TILE_SYMBOLS: Dict[TileKind, str] = {
    TileKind.GRASS: "..",
    TileKind.TREE: "♣ ",
    TileKind.MOUNTAIN: "▲ ",
    TileKind.TOWN_ENTRANCE: "⌂ ",
    TileKind.DUNGEON_FLOOR: "::",
    TileKind.BOSS_FLOOR: "☠ ",
    TileKind.WATER: "≈≈",
    TileKind.SAND: "░░",
    TileKind.FOREST: ",,",
    TileKind.TOWN_FLOOR: "  ",
    TileKind.TOWN_WALL: "██",
    TileKind.SHOP: "$ ",
    TileKind.GUILD: "G ",
    TileKind.TOWN_EXIT: "⇩ ",
    TileKind.FOUNTAIN: "◎ ",
    TileKind.SNOW: "**",
    TileKind.ICE: "--",
    TileKind.LAVA: "^^",
    TileKind.BRIDGE: "==",
    TileKind.DIRT_PATH: "░ ",
}


def render_ascii_window(
    grid: TerrainGrid,
    center: Tuple[int, int],
    *,
    radius: int,
    markers: Optional[Dict[Tuple[int, int], str]] = None,
    symbols: Optional[Dict[TileKind, str]] = None,
) -> str:
    """Render the tiles within ``radius`` of ``center`` as two-character cells.

    ``markers`` maps (x, y) to a glyph drawn over the terrain (player, monsters).
    Rows are printed top to bottom in grid order.
    """

    radius = max(int(radius), 0)
    mapping = {**_DEFAULT_TILE_SYMBOLS}
    if symbols:
        mapping.update(symbols)
    markers = markers or {}

    cx, cy = center
    min_x = max(0, cx - radius)
    max_x = min(grid.width - 1, cx + radius)
    min_y = max(0, cy - radius)
    max_y = min(grid.height - 1, cy + radius)

    lines: List[str] = []
    for y in range(min_y, max_y + 1):
        row_chars: List[str] = []
        for x in range(min_x, max_x + 1):
            if (x, y) in markers:
                row_chars.append(markers[(x, y)].ljust(2)[:2])
                continue
            kind = grid.get(x, y)
            row_chars.append(mapping.get(kind, "??") if kind is not None else "  ")
        lines.append("".join(row_chars))

    return "\n".join(lines)
