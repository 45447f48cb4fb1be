"""
Progression ledger: victory rewards, quests, levelling and shop purchases.

Every function here is a synchronous, pure mutation of a ``Player``. Callers own
logging to the game context and cue emission; results describe what happened.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from .generation import DEFAULT_EMOJI, emoji_for
from .i18n import Locale, level_up, quest_complete, quest_progress, victory
from .schemas import Enemy, LogKind, Player, Quest

LEVEL_UP_MAX_HP = 20
LEVEL_UP_ATTACK = 5
MAX_EXP_GROWTH = 1.5


@dataclass
class VictoryReport:
    """What one victory changed. ``logs`` are localized lines in display order."""

    exp_gained: int
    gold_gained: int
    quest_progressed: bool = False
    quest_completed: bool = False
    quest_reward: int = 0
    leveled_up: bool = False
    logs: List[Tuple[str, LogKind]] = field(default_factory=list)


def matches_quest_target(enemy_name: str, quest: Quest, locale: Locale) -> bool:
    """Substring match on names, falling back to glyph equality for non-Latin locales.

    Generated names may not contain the localized target word, so in those locales two
    names showing the same monster glyph count as the same species. The generic glyph
    never matches.
    """

    if quest.target_name in enemy_name:
        return True
    if locale.latin:
        return False
    glyph = emoji_for(enemy_name, False)
    return glyph != DEFAULT_EMOJI and glyph == emoji_for(quest.target_name, False)


def level_up_once(player: Player) -> bool:
    """Apply at most one level step when exp has reached the threshold.

    Overflow exp beyond a second threshold is kept but not converted; only one level is
    gained per call.
    """

    if player.exp < player.max_exp:
        return False
    player.level += 1
    player.exp -= player.max_exp
    player.max_exp = math.floor(player.max_exp * MAX_EXP_GROWTH)
    player.max_hp += LEVEL_UP_MAX_HP
    player.attack += LEVEL_UP_ATTACK
    player.hp = player.max_hp
    return True


def apply_victory(player: Player, enemy: Enemy, locale: Locale) -> VictoryReport:
    """Pay out rewards, advance the active quest, then run one level-up step."""

    report = VictoryReport(exp_gained=enemy.exp_reward, gold_gained=enemy.gold_reward)
    player.exp += enemy.exp_reward
    player.gold += enemy.gold_reward

    quest = player.active_quest
    if quest is not None and matches_quest_target(enemy.name, quest, locale):
        quest.current_count += 1
        report.quest_progressed = True
        report.logs.append(
            (quest_progress(locale, quest.current_count, quest.required_count), LogKind.QUEST)
        )
        if quest.complete:
            player.gold += quest.reward_gold
            player.active_quest = None
            report.quest_completed = True
            report.quest_reward = quest.reward_gold
            report.logs.append((quest_complete(locale, quest.reward_gold), LogKind.SUCCESS))

    if level_up_once(player):
        report.leveled_up = True
        report.logs.append((level_up(locale, player.level), LogKind.SUCCESS))

    report.logs.append((victory(locale, enemy.exp_reward, enemy.gold_reward), LogKind.SUCCESS))
    return report


def accept_quest(player: Player, quest: Quest) -> Quest:
    """Make a fresh copy of ``quest`` the single active quest, replacing any other."""

    accepted = quest.model_copy(update={"current_count": 0})
    player.active_quest = accepted
    return accepted


class ShopItem(str, Enum):
    POTION = "potion"
    IRON_SWORD = "iron_sword"
    STEEL_SWORD = "steel_sword"
    ARMOR = "armor"


@dataclass(frozen=True)
class ShopOffer:
    cost: int
    potions: int = 0
    attack: int = 0
    max_hp: int = 0


SHOP_CATALOG: Dict[ShopItem, ShopOffer] = {
    ShopItem.POTION: ShopOffer(cost=50, potions=1),
    ShopItem.IRON_SWORD: ShopOffer(cost=100, attack=2),
    ShopItem.STEEL_SWORD: ShopOffer(cost=250, attack=4),
    ShopItem.ARMOR: ShopOffer(cost=200, max_hp=30),
}


def purchase(player: Player, item: ShopItem | str) -> bool:
    """Debit gold and apply the item's effect, or change nothing when gold is short."""

    offer = SHOP_CATALOG[ShopItem(item)]
    if player.gold < offer.cost:
        return False
    player.gold -= offer.cost
    player.potions += offer.potions
    player.attack += offer.attack
    # Armor raises the cap and fills the new headroom
    player.max_hp += offer.max_hp
    player.hp += offer.max_hp
    return True
