"""Shared fixtures: scripted randomness, tiny grids and a stub generator."""

from __future__ import annotations

import random
from typing import Iterable, List, Optional

import pytest

from isekai.context import GameContext
from isekai.environment import TerrainGrid, TileKind, generate_town
from isekai.generation import emoji_for
from isekai.i18n import Locale
from isekai.schemas import Enemy, MapEntity, MonsterCategory, Position, Zone

TILE_CODES = {
    ".": TileKind.GRASS,
    "#": TileKind.TREE,
    "~": TileKind.WATER,
    "^": TileKind.LAVA,
    "f": TileKind.FOREST,
    "T": TileKind.TOWN_ENTRANCE,
    "_": TileKind.ICE,
}


class ScriptedRandom(random.Random):
    """Random source that replays fixed values and fails loudly when it runs dry."""

    def __init__(self, values: Iterable[float] = ()) -> None:
        super().__init__(0)
        self.values: List[float] = list(values)
        self.calls = 0

    def random(self) -> float:
        if not self.values:
            raise AssertionError("unexpected random() draw")
        self.calls += 1
        return self.values.pop(0)

    def push(self, *values: float) -> None:
        self.values.extend(values)


class StubGenerator:
    """Stands in for NarrativeGenerator; records monster requests."""

    def __init__(self, enemy: Optional[Enemy] = None, error: Optional[Exception] = None) -> None:
        self.enemy = enemy
        self.error = error
        self.requests: list[tuple] = []

    async def generate_monster(self, level, zone, is_boss, name_hint=None, locale=Locale.EN):
        self.requests.append((level, zone, is_boss, name_hint, locale))
        if self.error is not None:
            raise self.error
        enemy = self.enemy or Enemy(
            name=name_hint or "Slime",
            hp=15,
            max_hp=15,
            attack=5,
            exp_reward=10,
            gold_reward=5,
        )
        return enemy.model_copy(update={"is_boss": is_boss})

    async def generate_intro(self, player_name, locale=Locale.EN):
        return f"intro for {player_name}"

    async def generate_ending(self, player_name, victory, locale=Locale.EN):
        return "won" if victory else "lost"


def grid_from_rows(rows: List[str]) -> TerrainGrid:
    return TerrainGrid(
        width=len(rows[0]),
        height=len(rows),
        tiles=[[TILE_CODES[ch] for ch in row] for row in rows],
    )


def make_entity(
    entity_id: str = "enemy-0",
    *,
    tile=(5, 5),
    name: str = "Slime",
    category: MonsterCategory = MonsterCategory.SLIME,
    zone: Zone = Zone.GRASS,
    is_boss: bool = False,
) -> MapEntity:
    return MapEntity(
        id=entity_id,
        category=category,
        name=name,
        emoji=emoji_for(name, is_boss),
        position=Position.tile_center(*tile),
        zone=zone,
        is_boss=is_boss,
    )


def make_context(rows: Optional[List[str]] = None, **overrides) -> GameContext:
    rows = rows or [
        "~~~~~~~~~~",
        "~........~",
        "~........~",
        "~........~",
        "~........~",
        "~........~",
        "~........~",
        "~........~",
        "~........~",
        "~~~~~~~~~~",
    ]
    context = GameContext(overworld=grid_from_rows(rows), town=generate_town(), **overrides)
    context.player.position = Position(x=2.5, y=2.5)
    context.last_tile = (2, 2)
    return context


@pytest.fixture
def scripted_rng():
    return ScriptedRandom()


@pytest.fixture
def context():
    return make_context()
