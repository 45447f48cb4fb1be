"""Proximity encounters, tile effects and guild quest offers."""

from __future__ import annotations

import math
import random
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from .context import Cue, GameContext, Modal
from .environment import TileKind
from .i18n import Locale, messages, quest_description
from .logging_utils import log_world
from .schemas import LogKind, MapEntity, Position, Quest, Zone

if TYPE_CHECKING:
    from .movement import MovementModel

INTERACT_RADIUS = 1.5
LAVA_DAMAGE = 10
TOWN_SPAWN = (7.5, 9.5)
BUILDING_NUDGE = 1.0

QUEST_REWARD_PER_KILL = 20
QUEST_MIN_COUNT = 2
QUEST_MAX_COUNT = 4


class TileEffect(str, Enum):
    ENTER_TOWN = "enter_town"
    EXIT_TOWN = "exit_town"
    LAVA = "lava"
    OPEN_SHOP = "open_shop"
    OPEN_GUILD = "open_guild"


def nearest_entity(
    position: Position, entities: Iterable[MapEntity]
) -> Tuple[Optional[MapEntity], float]:
    """Return the closest entity by Euclidean distance, or ``(None, inf)``."""

    closest: Optional[MapEntity] = None
    best = math.inf
    for entity in entities:
        distance = position.distance_to(entity.position)
        if distance < best:
            best = distance
            closest = entity
    return closest, best


def generate_quest(locale: Locale, rng: random.Random) -> Quest:
    """Roll a guild quest: uniform target, 2-4 kills, 20 gold per kill."""

    names = messages(locale).monsters
    targets = [
        (names.slime, Zone.GRASS),
        (names.goblin, Zone.FOREST),
        (names.wolf, Zone.FOREST),
        (names.skeleton, Zone.DUNGEON),
    ]
    name, zone = targets[int(rng.random() * len(targets))]
    count = int(rng.random() * (QUEST_MAX_COUNT - QUEST_MIN_COUNT + 1)) + QUEST_MIN_COUNT
    return Quest(
        target_name=name,
        target_zone=zone,
        required_count=count,
        current_count=0,
        reward_gold=count * QUEST_REWARD_PER_KILL,
        description=quest_description(locale, name, count),
    )


class EncounterTrigger:
    """Proximity + explicit interact policy.

    Walking near a monster only marks it as nearby. Combat starts when the player
    interacts, and the target is re-resolved at that moment.
    """

    def __init__(
        self,
        movement: "MovementModel",
        rng: Optional[random.Random] = None,
        radius: float = INTERACT_RADIUS,
    ) -> None:
        self.movement = movement
        self.rng = rng or random.Random()
        self.radius = radius

    def _candidate_in_range(self, context: GameContext) -> Optional[MapEntity]:
        entity, distance = self.movement.nearest_encounter_candidate(context)
        if entity is not None and distance < self.radius:
            return entity
        return None

    def refresh_nearby(self, context: GameContext) -> Optional[MapEntity]:
        entity = None if context.in_town else self._candidate_in_range(context)
        if entity is not None and entity.id != context.nearby_entity_id:
            context.add_log(context.text.enemy_near, LogKind.INFO)
        context.nearby_entity_id = entity.id if entity else None
        return entity

    def resolve_interact(self, context: GameContext) -> Optional[MapEntity]:
        if context.in_town:
            return None
        entity = self._candidate_in_range(context)
        if entity is None:
            context.add_log(context.text.no_enemy, LogKind.INFO)
        return entity

    def apply_tile_effects(self, context: GameContext) -> Optional[TileEffect]:
        """Fire the effect of the tile under the player, once per tile change."""

        tile = context.player.position.tile()
        if tile == context.last_tile:
            return None
        context.last_tile = tile
        kind = context.active_grid.get(*tile)

        if context.in_town:
            return self._town_effect(context, kind)

        if kind == TileKind.TOWN_ENTRANCE:
            context.world_position = context.player.position.model_copy()
            context.in_town = True
            context.player.position = Position(x=TOWN_SPAWN[0], y=TOWN_SPAWN[1])
            context.last_tile = context.player.position.tile()
            context.nearby_entity_id = None
            context.add_log(context.text.town_entered, LogKind.INFO)
            log_world(f"Entered town from {tile}")
            return TileEffect.ENTER_TOWN

        if kind == TileKind.LAVA:
            context.player.take_damage(LAVA_DAMAGE)
            context.add_log(context.text.lava_burn, LogKind.DANGER)
            context.emit(Cue.DAMAGE)
            return TileEffect.LAVA

        return None

    def _town_effect(self, context: GameContext, kind: Optional[TileKind]) -> Optional[TileEffect]:
        if kind == TileKind.TOWN_EXIT:
            context.in_town = False
            context.player.position = context.world_position.model_copy()
            context.last_tile = context.player.position.tile()
            context.add_log(context.text.town_left, LogKind.INFO)
            log_world(f"Left town to {context.last_tile}")
            return TileEffect.EXIT_TOWN

        if kind == TileKind.SHOP:
            context.modal = Modal.SHOP
            self._nudge_back(context)
            return TileEffect.OPEN_SHOP

        if kind == TileKind.GUILD:
            context.potential_quest = generate_quest(context.locale, self.rng)
            context.modal = Modal.GUILD
            self._nudge_back(context)
            return TileEffect.OPEN_GUILD

        return None

    @staticmethod
    def _nudge_back(context: GameContext) -> None:
        # Step off the door so closing the modal does not reopen it
        position = context.player.position
        context.player.position = Position(x=position.x, y=position.y + BUILDING_NUDGE)
