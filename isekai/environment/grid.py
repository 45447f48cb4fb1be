"""Fixed-size terrain grid used by the overworld and the town."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from .schemas import TerrainGridState
from .tiles import TileKind, is_blocking


@dataclass
class TerrainGrid:
    """2D array of tile kinds indexed ``tiles[y][x]``.

    Tile kinds never change after generation. Entities and the player live on top of
    the grid in the game context, not inside it.
    """

    width: int
    height: int
    tiles: List[List[TileKind]] = field(default_factory=list)

    @classmethod
    def filled(cls, width: int, height: int, kind: TileKind) -> "TerrainGrid":
        return cls(
            width=width,
            height=height,
            tiles=[[kind for _ in range(width)] for _ in range(height)],
        )

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Optional[TileKind]:
        if not self.in_bounds(x, y):
            return None
        return self.tiles[y][x]

    def set(self, x: int, y: int, kind: TileKind) -> None:
        self.tiles[y][x] = kind

    def is_blocked_at(self, x: float, y: float) -> bool:
        """Return True when the point lies outside the grid or on a blocking tile."""
        tile_x = math.floor(x)
        tile_y = math.floor(y)
        kind = self.get(tile_x, tile_y)
        if kind is None:
            return True
        return is_blocking(kind)

    def cells(self) -> Iterator[Tuple[int, int, TileKind]]:
        for y, row in enumerate(self.tiles):
            for x, kind in enumerate(row):
                yield x, y, kind

    def find(self, kind: TileKind) -> List[Tuple[int, int]]:
        return [(x, y) for x, y, tile in self.cells() if tile == kind]

    def count(self, kind: TileKind) -> int:
        return sum(1 for _, _, tile in self.cells() if tile == kind)

    def to_state(self) -> TerrainGridState:
        return TerrainGridState(
            width=self.width,
            height=self.height,
            rows=[[int(kind) for kind in row] for row in self.tiles],
        )

    @classmethod
    def from_state(cls, state: TerrainGridState) -> "TerrainGrid":
        return cls(
            width=state.width,
            height=state.height,
            tiles=[[TileKind(value) for value in row] for row in state.rows],
        )
