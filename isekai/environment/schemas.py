"""Pydantic schema for terrain grids.

Mirrors the ``TerrainGrid`` dataclass in ``grid.py`` so that an overworld can be
written into a save record and validated on the way back in.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, model_validator

from .tiles import TileKind

_VALID_KINDS = {int(kind) for kind in TileKind}


class TerrainGridState(BaseModel):
    """Dense row-major representation of a terrain grid."""

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    rows: List[List[int]] = Field(
        default_factory=list,
        description="rows[y][x] → TileKind value",
    )

    @model_validator(mode="after")
    def _check_shape(self) -> "TerrainGridState":
        if len(self.rows) != self.height:
            raise ValueError(
                f"expected {self.height} rows, found {len(self.rows)}"
            )
        for y, row in enumerate(self.rows):
            if len(row) != self.width:
                raise ValueError(
                    f"row {y} has {len(row)} cells, expected {self.width}"
                )
            unknown = [value for value in row if value not in _VALID_KINDS]
            if unknown:
                raise ValueError(f"row {y} contains unknown tile kinds {unknown}")
        return self
