"""Tests for proximity encounters, tile effects and guild quests."""

import math
import random

import pytest
from conftest import ScriptedRandom, make_context, make_entity

from isekai.context import Cue, GameContext, Modal
from isekai.encounters import (
    LAVA_DAMAGE,
    TOWN_SPAWN,
    EncounterTrigger,
    TileEffect,
    generate_quest,
    nearest_entity,
)
from isekai.environment import TOWN_ENTRANCE, generate_overworld, generate_town
from isekai.i18n import Locale
from isekai.movement import ContinuousMovement
from isekai.schemas import LogKind, Position, Zone


def make_trigger(rng=None) -> EncounterTrigger:
    return EncounterTrigger(ContinuousMovement(), rng or ScriptedRandom())


def test_nearest_entity_picks_closest():
    a = make_entity("enemy-0", tile=(1, 1))
    b = make_entity("enemy-1", tile=(4, 4))

    entity, distance = nearest_entity(Position(x=4.0, y=4.0), [a, b])

    assert entity is b
    assert distance == pytest.approx(math.hypot(0.5, 0.5))
    assert nearest_entity(Position(x=0, y=0), []) == (None, math.inf)


def test_refresh_nearby_uses_strict_radius(context):
    trigger = make_trigger()
    entity = make_entity("enemy-0", tile=(2, 3))
    context.entities = [entity]

    context.player.position = Position(x=2.5, y=2.1)  # 1.4 away
    assert trigger.refresh_nearby(context) is entity
    assert context.nearby_entity_id == "enemy-0"

    context.player.position = Position(x=2.5, y=2.0)  # exactly 1.5 away
    assert trigger.refresh_nearby(context) is None
    assert context.nearby_entity_id is None


def test_resolve_interact_logs_when_nothing_in_range(context):
    trigger = make_trigger()
    context.entities = [make_entity("enemy-0", tile=(7, 7))]

    assert trigger.resolve_interact(context) is None
    assert context.logs[-1].text == "There is nothing nearby to attack."


def test_resolve_interact_skips_recently_fled(context):
    trigger = make_trigger()
    entity = make_entity("enemy-0", tile=(2, 3))
    context.entities = [entity]

    assert trigger.resolve_interact(context) is entity
    context.fled_entity_id = "enemy-0"
    assert trigger.resolve_interact(context) is None


def test_enter_and_leave_town():
    context = GameContext(overworld=generate_overworld(random.Random(1)), town=generate_town())
    trigger = make_trigger()
    context.player.position = Position(x=3.5, y=3.9)
    context.last_tile = (3, 4)

    effect = trigger.apply_tile_effects(context)

    assert effect is TileEffect.ENTER_TOWN
    assert context.in_town is True
    assert context.player.position == Position(x=TOWN_SPAWN[0], y=TOWN_SPAWN[1])
    assert context.world_position == Position(x=3.5, y=3.9)
    assert context.logs[-1].text == "Entered Town."

    # Walk onto the exit
    context.player.position = Position(x=7.5, y=10.2)
    effect = trigger.apply_tile_effects(context)

    assert effect is TileEffect.EXIT_TOWN
    assert context.in_town is False
    assert context.player.position == Position(x=3.5, y=3.9)
    assert context.last_tile == TOWN_ENTRANCE
    # Standing on the entrance again does not bounce straight back into town
    assert trigger.apply_tile_effects(context) is None
    assert context.in_town is False


def test_effects_fire_once_per_tile(context):
    trigger = make_trigger()
    context.player.position = Position(x=4.5, y=4.5)

    assert trigger.apply_tile_effects(context) is None
    assert context.last_tile == (4, 4)
    context.player.position = Position(x=4.7, y=4.2)
    assert trigger.apply_tile_effects(context) is None


def test_lava_burns_once_on_entry():
    context = make_context(["~~~~~", "~.^.~", "~~~~~"])
    trigger = make_trigger()
    cues = []
    context.cue_listeners.append(cues.append)
    context.player.position = Position(x=2.5, y=1.5)  # placed directly on lava

    assert trigger.apply_tile_effects(context) is TileEffect.LAVA
    assert context.player.hp == 100 - LAVA_DAMAGE
    assert context.logs[-1].kind is LogKind.DANGER
    assert cues == [Cue.DAMAGE]

    assert trigger.apply_tile_effects(context) is None
    assert context.player.hp == 100 - LAVA_DAMAGE


def test_shop_door_opens_modal_and_nudges_back(context):
    trigger = make_trigger()
    context.in_town = True
    context.last_tile = (2, 3)
    context.player.position = Position(x=2.5, y=2.8)

    assert trigger.apply_tile_effects(context) is TileEffect.OPEN_SHOP
    assert context.modal is Modal.SHOP
    assert context.player.position.x == pytest.approx(2.5)
    assert context.player.position.y == pytest.approx(3.8)
    assert not context.town.is_blocked_at(2.5, 3.8)
    # Closing the modal and standing still does not reopen it
    context.modal = Modal.NONE
    assert trigger.apply_tile_effects(context) is None
    assert context.modal is Modal.NONE


def test_guild_door_offers_quest(context):
    trigger = make_trigger(ScriptedRandom([0.0, 0.99]))
    context.in_town = True
    context.player.position = Position(x=11.5, y=2.5)

    assert trigger.apply_tile_effects(context) is TileEffect.OPEN_GUILD
    assert context.modal is Modal.GUILD
    quest = context.potential_quest
    assert quest.target_name == "Slime"
    assert quest.target_zone == Zone.GRASS
    assert quest.required_count == 4
    assert quest.reward_gold == 80
    assert quest.description == "Slime x4"
    assert context.player.position.y == pytest.approx(3.5)


def test_generate_quest_ranges():
    rng = random.Random(0)
    zones = {"Slime": Zone.GRASS, "Goblin": Zone.FOREST, "Dire Wolf": Zone.FOREST, "Skeleton Warrior": Zone.DUNGEON}

    for _ in range(200):
        quest = generate_quest(Locale.EN, rng)
        assert 2 <= quest.required_count <= 4
        assert quest.reward_gold == quest.required_count * 20
        assert quest.current_count == 0
        assert zones[quest.target_name] == quest.target_zone


def test_generate_quest_localized():
    quest = generate_quest(Locale.KO, ScriptedRandom([0.3, 0.0]))

    assert quest.target_name == "고블린"
    assert quest.description == "고블린 x2"
