"""
Pydantic schemas for the Isekai Chronicles simulation core.

Design Philosophy:
- Runtime state (player, entities, enemy, quest) is plain mutable pydantic models so
  the game driver can mutate one authoritative context in place each tick
- The same models serialize straight into save records
- Generation responses have their own models so malformed payloads fail validation
  before they reach combat
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, Field


# ============================================================================
# Enumerations
# ============================================================================


class GamePhase(str, Enum):
    LOGIN = "LOGIN"
    INTRO = "INTRO"
    MAP = "MAP"  # walking, overworld or town
    COMBAT = "COMBAT"
    ENDING = "ENDING"
    GAME_OVER = "GAME_OVER"


class Zone(str, Enum):
    GRASS = "GRASS"
    FOREST = "FOREST"
    SAND = "SAND"
    DUNGEON = "DUNGEON"
    SNOW = "SNOW"


class MonsterCategory(str, Enum):
    SLIME = "SLIME"
    GOBLIN = "GOBLIN"
    WOLF = "WOLF"
    SKELETON = "SKELETON"
    BOSS = "BOSS"
    UNKNOWN = "UNKNOWN"


class LogKind(str, Enum):
    INFO = "info"
    COMBAT = "combat"
    DANGER = "danger"
    SUCCESS = "success"
    QUEST = "quest"


# ============================================================================
# World Schemas
# ============================================================================


class Position(BaseModel):
    """Fractional map coordinate; the integer part is the tile."""

    x: float
    y: float

    def tile(self) -> Tuple[int, int]:
        return math.floor(self.x), math.floor(self.y)

    def distance_to(self, other: "Position") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    @classmethod
    def tile_center(cls, x: int, y: int) -> "Position":
        return cls(x=x + 0.5, y=y + 0.5)


class MapEntity(BaseModel):
    """A visible monster marker placed by the spawner.

    Entities never move. One is removed when the enemy created from it is defeated.
    """

    id: str = Field(..., description="Stable session identifier (enemy-<n>)")
    category: MonsterCategory
    name: str = Field(..., description="Localized display name")
    emoji: str
    position: Position = Field(..., description="Centre of the spawn tile")
    zone: Zone
    is_boss: bool = False


class Quest(BaseModel):
    """Guild-issued kill-count objective."""

    target_name: str
    target_zone: Zone
    required_count: int = Field(..., ge=1)
    current_count: int = Field(0, ge=0)
    reward_gold: int = Field(..., ge=0)
    description: str

    @property
    def complete(self) -> bool:
        return self.current_count >= self.required_count


class Player(BaseModel):
    """The hero. ``0 <= hp <= max_hp`` holds after every operation that touches hp."""

    name: str = ""
    level: int = 1
    hp: int = 100
    max_hp: int = 100
    attack: int = 10
    exp: int = 0
    max_exp: int = 100
    gold: int = 10
    potions: int = 0
    position: Position = Field(default_factory=lambda: Position(x=3.5, y=4.5))
    active_quest: Optional[Quest] = None

    @property
    def dead(self) -> bool:
        return self.hp <= 0

    def take_damage(self, amount: int) -> int:
        """Apply damage floored at zero hp and return the hp actually lost."""
        before = self.hp
        self.hp = max(0, self.hp - amount)
        return before - self.hp


class Enemy(BaseModel):
    """Active combat instance derived from a MapEntity plus generated stats."""

    entity_id: Optional[str] = Field(None, description="Originating MapEntity id")
    name: str
    description: str = ""
    hp: int
    max_hp: int
    attack: int
    exp_reward: int
    gold_reward: int
    emoji: str = "👾"
    is_boss: bool = False

    def take_damage(self, amount: int) -> int:
        before = self.hp
        self.hp = max(0, self.hp - amount)
        return before - self.hp


class LogEntry(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex[:8])
    text: str
    kind: LogKind = LogKind.INFO


# ============================================================================
# Generation Response Schemas
# ============================================================================


class GeneratedMonster(BaseModel):
    """Structured monster payload requested from the narrative model."""

    name: str = Field(..., min_length=1)
    description: str
    hp: int = Field(..., gt=0)
    attack: int = Field(..., ge=0)
    exp_reward: int = Field(..., ge=0)
    gold_reward: int = Field(..., ge=0)


class GeneratedStory(BaseModel):
    """Free-text passage (intro or ending)."""

    text: str = Field(..., min_length=1)
