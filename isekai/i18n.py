"""Display locales and typed message tables (i18n).

Each locale maps to a frozen ``Messages`` record. Parameterised messages are
stored as ``str.format`` templates and rendered by the small pure functions at the
bottom of this module so callers never build user-facing text by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Locale(str, Enum):
    EN = "en"
    KO = "ko"

    @property
    def latin(self) -> bool:
        return self is Locale.EN


@dataclass(frozen=True)
class MonsterNames:
    slime: str
    goblin: str
    wolf: str
    skeleton: str
    worm: str
    boss: str


@dataclass(frozen=True)
class Messages:
    title: str
    town_entered: str
    town_left: str
    ran_away: str
    run_failed: str
    fallen: str
    boss_encounter: str
    monster_vanished: str
    missed: str
    heal_full: str
    no_potion: str
    bought: str
    no_gold: str
    no_enemy: str
    enemy_near: str
    lava_burn: str
    quest_accepted: str
    saved: str
    load_failed: str
    load_corrupt: str
    loaded: str
    busy: str
    shop_closed: str
    # str.format templates
    welcome: str
    monster_encounter: str
    hit_enemy: str
    critical_hit: str
    hit_player: str
    level_up: str
    healed: str
    victory: str
    quest_complete: str
    quest_progress: str
    quest_description: str
    monsters: MonsterNames


_MESSAGES = {
    Locale.EN: Messages(
        title="Isekai Chronicles",
        town_entered="Entered Town.",
        town_left="Returned to the wild.",
        ran_away="You ran away safely!",
        run_failed="Failed to escape!",
        fallen="You have fallen...",
        boss_encounter="You face the Demon King!",
        monster_vanished="The monster vanished.",
        missed="You missed!",
        heal_full="Health is full.",
        no_potion="No potions left!",
        bought="Item purchased!",
        no_gold="Not enough Gold.",
        no_enemy="There is nothing nearby to attack.",
        enemy_near="Press 'A' to fight!",
        lava_burn="The lava burns you!",
        quest_accepted="Accepted Quest!",
        saved="Game saved. Logging out...",
        load_failed="Incorrect Password!",
        load_corrupt="Save data could not be read. Starting a new adventure.",
        loaded="Game loaded successfully.",
        busy="Wait for the current action to finish.",
        shop_closed="The shop is closed.",
        welcome="Welcome, {name}. Arrow keys to move, 'A' to interact.",
        monster_encounter="You encountered a {name}!",
        hit_enemy="You hit {name} for {damage} dmg!",
        critical_hit="CRITICAL! You hit {name} for {damage} dmg!",
        hit_player="{name} hits you for {damage} dmg!",
        level_up="LEVEL UP! You are now level {level}.",
        healed="Recovered {amount} HP!",
        victory="Victory! +{exp} EXP, +{gold} G.",
        quest_complete="Quest Complete! Received {gold} Gold!",
        quest_progress="Quest: {current}/{required}",
        quest_description="{name} x{count}",
        monsters=MonsterNames(
            slime="Slime",
            goblin="Goblin",
            wolf="Dire Wolf",
            skeleton="Skeleton Warrior",
            worm="Sand Worm",
            boss="Demon King",
        ),
    ),
    Locale.KO: Messages(
        title="이세계 연대기",
        town_entered="마을에 들어왔습니다.",
        town_left="마을 밖으로 나갑니다.",
        ran_away="무사히 도망쳤습니다!",
        run_failed="도망치는데 실패했습니다!",
        fallen="쓰러졌습니다...",
        boss_encounter="마왕이 나타났습니다!",
        monster_vanished="몬스터가 사라졌습니다.",
        missed="공격이 빗나갔습니다!",
        heal_full="체력이 가득 찼습니다.",
        no_potion="포션이 없습니다!",
        bought="구매 완료!",
        no_gold="골드가 부족합니다.",
        no_enemy="주변에 공격할 대상이 없습니다.",
        enemy_near="'A'키를 눌러 전투하세요!",
        lava_burn="용암에 화상을 입었습니다!",
        quest_accepted="의뢰를 수락했습니다!",
        saved="저장되었습니다. 로그아웃 중...",
        load_failed="비밀번호가 틀렸습니다!",
        load_corrupt="저장 데이터를 읽을 수 없습니다. 새 모험을 시작합니다.",
        loaded="게임을 불러왔습니다.",
        busy="현재 행동이 끝날 때까지 기다리세요.",
        shop_closed="상점이 닫혀 있습니다.",
        welcome="{name}님 환영합니다. 방향키로 이동, 'A'키로 상호작용.",
        monster_encounter="{name}이(가) 나타났습니다!",
        hit_enemy="{name}에게 {damage}의 피해!",
        critical_hit="치명타! {name}에게 {damage}의 피해!",
        hit_player="{name}에게 {damage}의 피해를 입음!",
        level_up="레벨 업! 현재 레벨: {level}.",
        healed="체력이 {amount} 회복되었습니다!",
        victory="승리! 경험치 {exp}, 골드 {gold} 획득.",
        quest_complete="의뢰 완료! 보상으로 {gold} 골드를 받았습니다!",
        quest_progress="의뢰 진행: {current}/{required}",
        quest_description="{name} x{count}",
        monsters=MonsterNames(
            slime="슬라임",
            goblin="고블린",
            wolf="다이어 울프",
            skeleton="해골 전사",
            worm="샌드 웜",
            boss="마왕",
        ),
    ),
}


def messages(locale: Locale | str) -> Messages:
    return _MESSAGES[Locale(locale)]


def welcome(locale: Locale, name: str) -> str:
    return messages(locale).welcome.format(name=name)


def monster_encounter(locale: Locale, name: str) -> str:
    return messages(locale).monster_encounter.format(name=name)


def hit_enemy(locale: Locale, name: str, damage: int, *, critical: bool = False) -> str:
    table = messages(locale)
    template = table.critical_hit if critical else table.hit_enemy
    return template.format(name=name, damage=damage)


def hit_player(locale: Locale, name: str, damage: int) -> str:
    return messages(locale).hit_player.format(name=name, damage=damage)


def level_up(locale: Locale, level: int) -> str:
    return messages(locale).level_up.format(level=level)


def healed(locale: Locale, amount: int) -> str:
    return messages(locale).healed.format(amount=amount)


def victory(locale: Locale, exp: int, gold: int) -> str:
    return messages(locale).victory.format(exp=exp, gold=gold)


def quest_complete(locale: Locale, gold: int) -> str:
    return messages(locale).quest_complete.format(gold=gold)


def quest_progress(locale: Locale, current: int, required: int) -> str:
    return messages(locale).quest_progress.format(current=current, required=required)


def quest_description(locale: Locale, name: str, count: int) -> str:
    return messages(locale).quest_description.format(name=name, count=count)
