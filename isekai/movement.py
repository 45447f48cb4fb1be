"""
Movement models for the player on the active grid.

A movement model owns two questions: where does the player end up after an input,
and which entity is the current encounter candidate. ``ContinuousMovement`` is the
per-frame integrator used by the game driver.

Collision design: X is resolved first against the two leading corners of the
player's box at the old Y, then Y against the two leading corners at the resolved X.
Pushing diagonally into a wall therefore slides along it instead of stopping.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, Optional, Tuple

from .context import GameContext
from .encounters import nearest_entity
from .schemas import MapEntity, Position

Vector = Tuple[float, float]

PLAYER_SPEED = 8.0  # tiles per second
PLAYER_BOX_SIZE = 0.6  # fraction of a tile
MAX_FRAME_DT = 0.1

# Arrow keys and WASD
KEY_DIRECTIONS = {
    "ArrowUp": (0, -1),
    "w": (0, -1),
    "ArrowDown": (0, 1),
    "s": (0, 1),
    "ArrowLeft": (-1, 0),
    "a": (-1, 0),
    "ArrowRight": (1, 0),
    "d": (1, 0),
}


class MoveOutcome(str, Enum):
    SKIPPED = "skipped"  # frame delta rejected
    IDLE = "idle"
    MOVED = "moved"
    BLOCKED = "blocked"


def input_vector_from_keys(keys: Iterable[str]) -> Vector:
    """Sum the unit vectors of the held keys. Opposite keys cancel out."""

    dx = dy = 0
    for key in set(keys):
        direction = KEY_DIRECTIONS.get(key)
        if direction is None:
            continue
        dx += direction[0]
        dy += direction[1]
    return float(dx), float(dy)


class MovementModel(ABC):
    """Strategy interface for player movement and encounter candidacy."""

    @abstractmethod
    def attempt_move(self, context: GameContext, input_vector: Vector, dt: float) -> MoveOutcome:
        """Apply one movement input to ``context.player.position``.

        Must never leave the player outside the grid or on a blocking tile.
        """

    @abstractmethod
    def nearest_encounter_candidate(
        self, context: GameContext
    ) -> Tuple[Optional[MapEntity], float]:
        """Return the entity that an interact command would target, with its distance."""


class ContinuousMovement(MovementModel):
    """Velocity integrator with an axis-separated box sweep.

    Args:
        speed: Tiles per second at full input.
        box_size: Side of the player's collision box in tiles.
        max_frame_dt: Frames with ``dt`` outside ``[0, max_frame_dt)`` are discarded.
    """

    def __init__(
        self,
        speed: float = PLAYER_SPEED,
        box_size: float = PLAYER_BOX_SIZE,
        max_frame_dt: float = MAX_FRAME_DT,
    ) -> None:
        self.speed = speed
        self.box_size = box_size
        self.max_frame_dt = max_frame_dt

    def attempt_move(self, context: GameContext, input_vector: Vector, dt: float) -> MoveOutcome:
        if not 0 <= dt < self.max_frame_dt:
            return MoveOutcome.SKIPPED

        dx, dy = input_vector
        length = math.hypot(dx, dy)
        if length == 0 or dt == 0:
            return MoveOutcome.IDLE

        step = self.speed * dt
        dx = dx / length * step
        dy = dy / length * step

        grid = context.active_grid
        half = self.box_size / 2
        current = context.player.position

        next_x = current.x + dx
        if dx != 0:
            edge_x = next_x + half if dx > 0 else next_x - half
            if grid.is_blocked_at(edge_x, current.y - half) or grid.is_blocked_at(
                edge_x, current.y + half
            ):
                next_x = current.x

        next_y = current.y + dy
        if dy != 0:
            edge_y = next_y + half if dy > 0 else next_y - half
            if grid.is_blocked_at(next_x - half, edge_y) or grid.is_blocked_at(
                next_x + half, edge_y
            ):
                next_y = current.y

        if next_x == current.x and next_y == current.y:
            return MoveOutcome.BLOCKED

        context.player.position = Position(x=next_x, y=next_y)
        # Any committed step makes a fled monster a valid target again
        context.fled_entity_id = None
        return MoveOutcome.MOVED

    def nearest_encounter_candidate(
        self, context: GameContext
    ) -> Tuple[Optional[MapEntity], float]:
        if context.in_town:
            return None, math.inf
        candidates = [e for e in context.entities if e.id != context.fled_entity_id]
        return nearest_entity(context.player.position, candidates)
