"""Place monster and boss markers on a finished overworld grid."""

from __future__ import annotations

import itertools
import random
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .environment import SPAWN_EXCLUDED_TILES, TerrainGrid, TileKind
from .generation import emoji_for
from .i18n import Locale, MonsterNames, messages
from .schemas import MapEntity, MonsterCategory, Position, Zone

# Player start area; nothing spawns with x < 8 and y < 8.
SAFE_AREA: Tuple[int, int] = (8, 8)


@dataclass(frozen=True)
class SpawnRule:
    """Spawn chance and species for one biome."""

    zone: Zone
    chance: float
    species: Tuple[MonsterCategory, ...]


# A biome with two species rolls a second draw to pick between them.
SPAWN_RULES: Dict[TileKind, SpawnRule] = {
    TileKind.GRASS: SpawnRule(Zone.GRASS, 0.02, (MonsterCategory.SLIME,)),
    TileKind.FOREST: SpawnRule(
        Zone.FOREST, 0.04, (MonsterCategory.WOLF, MonsterCategory.GOBLIN)
    ),
    TileKind.SAND: SpawnRule(Zone.SAND, 0.03, (MonsterCategory.UNKNOWN,)),
    TileKind.DUNGEON_FLOOR: SpawnRule(Zone.DUNGEON, 0.05, (MonsterCategory.SKELETON,)),
    TileKind.SNOW: SpawnRule(Zone.SNOW, 0.03, (MonsterCategory.WOLF,)),
}

_NAME_LOOKUP: Dict[MonsterCategory, Callable[[MonsterNames], str]] = {
    MonsterCategory.SLIME: lambda names: names.slime,
    MonsterCategory.GOBLIN: lambda names: names.goblin,
    MonsterCategory.WOLF: lambda names: names.wolf,
    MonsterCategory.SKELETON: lambda names: names.skeleton,
    MonsterCategory.UNKNOWN: lambda names: names.worm,
    MonsterCategory.BOSS: lambda names: names.boss,
}


def monster_name(category: MonsterCategory, locale: Locale) -> str:
    return _NAME_LOOKUP[category](messages(locale).monsters)


def _in_safe_area(x: int, y: int) -> bool:
    return x < SAFE_AREA[0] and y < SAFE_AREA[1]


def spawn_entities(
    grid: TerrainGrid,
    locale: Locale = Locale.EN,
    rng: Optional[random.Random] = None,
) -> List[MapEntity]:
    """Scan every cell and place at most one entity per eligible tile.

    Each biome cell with a spawn rule consumes exactly one draw (two for mixed-species
    biomes on a hit), whatever the locale, so the same generator state yields the
    same spawn tiles in any language.
    """

    rng = rng or random.Random()
    counter = itertools.count()
    entities: List[MapEntity] = []

    def add(x: int, y: int, category: MonsterCategory, zone: Zone, is_boss: bool = False) -> None:
        name = monster_name(category, locale)
        entities.append(
            MapEntity(
                id=f"enemy-{next(counter)}",
                category=category,
                name=name,
                emoji=emoji_for(name, is_boss),
                position=Position.tile_center(x, y),
                zone=zone,
                is_boss=is_boss,
            )
        )

    for x, y, kind in grid.cells():
        if kind in SPAWN_EXCLUDED_TILES or _in_safe_area(x, y):
            continue

        if kind == TileKind.BOSS_FLOOR:
            add(x, y, MonsterCategory.BOSS, Zone.DUNGEON, is_boss=True)
            continue

        rule = SPAWN_RULES.get(kind)
        if rule is None:
            continue
        if rng.random() >= rule.chance:
            continue
        category = rule.species[0]
        if len(rule.species) > 1:
            category = rule.species[int(rng.random() * len(rule.species))]
        add(x, y, category, rule.zone)

    return entities


def relocalize_entities(entities: Iterable[MapEntity], locale: Locale) -> None:
    """Rename existing entities for a new display locale without re-rolling spawns."""

    for entity in entities:
        entity.name = monster_name(entity.category, locale)
        entity.emoji = emoji_for(entity.name, entity.is_boss)
