"""
Turn-based combat state machine.

States move IDLE -> PENDING -> PLAYER_TURN -> {ENEMY_TURN, VICTORY, DEFEAT} -> IDLE.
Presentation delays (hit shake, death animation, the enemy's wind-up) are modelled
as transitions scheduled on a combat clock that the game driver advances with the
same ``dt`` it feeds to movement. A scheduled transition is never skipped, and while
one is outstanding every player action is rejected, so two transitions can never
apply out of order.

All rolls come from ``rng.random()`` in a fixed order per action:

* attack: miss roll, then (if not missed) crit roll, then damage variance
* enemy turn: damage variance
* flee: escape roll
"""

from __future__ import annotations

import heapq
import itertools
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .context import Cue, GameContext, Outcome
from .generation import BOSS_LEVEL, NarrativeGenerator
from .i18n import healed, hit_enemy, hit_player, monster_encounter
from .logging_utils import log_error, log_success, log_world
from .progression import VictoryReport, apply_victory
from .schemas import Enemy, GamePhase, LogKind, MapEntity, Player, Zone

MISS_CHANCE = 0.1
CRIT_CHANCE = 0.15
CRIT_MULTIPLIER = 1.5
DAMAGE_SPREAD = (0.8, 0.4)  # low bound, width: damage scales by 0.8 + 0.4 * r
FLEE_FAIL_BELOW = 0.4  # escape succeeds when the roll is strictly greater
HEAL_FRACTION = 0.5

# Presentation delays in seconds
ENEMY_TURN_DELAY = 0.8
HIT_SHAKE_DELAY = 0.4
DEATH_ANIMATION_DELAY = 1.0
VICTORY_RETURN_DELAY = 1.5
FLEE_FAIL_DELAY = 0.5


class CombatState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"  # waiting for enemy stats
    PLAYER_TURN = "player_turn"
    ENEMY_TURN = "enemy_turn"
    VICTORY = "victory"
    DEFEAT = "defeat"


@dataclass
class ActionResult:
    """Outcome of a player command. Rejected commands change no state."""

    accepted: bool
    message: str = ""


@dataclass(order=True)
class _Transition:
    due: float
    seq: int
    label: str = field(compare=False)
    apply: Callable[[], None] = field(compare=False)


def difficulty_level(player_level: int, entity: MapEntity) -> int:
    if entity.is_boss:
        return BOSS_LEVEL
    if entity.zone == Zone.DUNGEON:
        return player_level + 3
    if entity.zone == Zone.FOREST:
        return player_level + 1
    return player_level


def roll_variance(base: int, rng: random.Random) -> int:
    low, width = DAMAGE_SPREAD
    return math.floor(base * (low + rng.random() * width))


def heal_amount(player: Player) -> int:
    return min(player.max_hp - player.hp, math.floor(player.max_hp * HEAL_FRACTION))


class CombatResolver:
    """Drive one encounter at a time against ``context.enemy``.

    Args:
        context: Shared game state; the resolver writes player hp, the enemy, the
            entity list, logs and ``outcome``.
        generator: Source of enemy stats. Its fallbacks absorb provider failures; any
            exception that still escapes aborts the encounter.
        rng: Random source for every combat roll.
    """

    def __init__(
        self,
        context: GameContext,
        generator: NarrativeGenerator,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.context = context
        self.generator = generator
        self.rng = rng or random.Random()
        self.state = CombatState.IDLE
        self.clock = 0.0
        self.enemy_dying = False
        self.last_report: Optional[VictoryReport] = None
        self._queue: List[_Transition] = []
        self._seq = itertools.count()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        """True while a presentation delay is gating the next transition."""
        return bool(self._queue)

    @property
    def pending_transitions(self) -> List[str]:
        return [item.label for item in sorted(self._queue)]

    def _schedule(self, delay: float, label: str, apply: Callable[[], None]) -> None:
        heapq.heappush(self._queue, _Transition(self.clock + delay, next(self._seq), label, apply))

    def advance(self, dt: float) -> List[str]:
        """Move the combat clock forward and apply every transition now due, in order."""

        if dt < 0:
            return []
        target = self.clock + dt
        fired: List[str] = []
        while self._queue and self._queue[0].due <= target:
            item = heapq.heappop(self._queue)
            # Follow-ups scheduled by this transition are timed from its due time
            self.clock = item.due
            item.apply()
            fired.append(item.label)
        self.clock = target
        return fired

    def reset(self) -> None:
        """Drop any encounter in progress without applying its transitions."""
        self._queue.clear()
        self.state = CombatState.IDLE
        self.enemy_dying = False
        self.context.enemy = None

    # ------------------------------------------------------------------
    # Encounter entry
    # ------------------------------------------------------------------

    async def start(self, entity: MapEntity) -> Optional[Enemy]:
        """Request stats for ``entity`` and open the player's first turn.

        Returns None when combat was already running or the encounter was aborted.
        """

        context = self.context
        if self.state != CombatState.IDLE:
            return None

        self.state = CombatState.PENDING
        self.enemy_dying = False
        self.last_report = None
        context.phase = GamePhase.COMBAT
        context.nearby_entity_id = None
        context.emit(Cue.START)

        level = difficulty_level(context.player.level, entity)
        log_world(f"Encounter {entity.id} ({entity.zone.value}) at difficulty {level}")
        try:
            enemy = await self.generator.generate_monster(
                level, entity.zone, entity.is_boss, entity.name, context.locale
            )
        except Exception as exc:
            log_error(f"Encounter {entity.id} aborted: {exc}")
            context.add_log(context.text.monster_vanished, LogKind.INFO)
            self.state = CombatState.IDLE
            context.phase = GamePhase.MAP
            return None

        enemy.entity_id = entity.id
        context.enemy = enemy
        if entity.is_boss:
            context.add_log(context.text.boss_encounter, LogKind.DANGER)
        else:
            context.add_log(monster_encounter(context.locale, enemy.name), LogKind.COMBAT)
        self.state = CombatState.PLAYER_TURN
        return enemy

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def _rejection(self) -> Optional[ActionResult]:
        if self.context.enemy is None:
            return ActionResult(False, self.context.text.no_enemy)
        if self.state != CombatState.PLAYER_TURN or self.busy:
            return ActionResult(False, self.context.text.busy)
        return None

    def attack(self) -> ActionResult:
        rejected = self._rejection()
        if rejected:
            return rejected

        context = self.context
        enemy = context.enemy
        context.emit(Cue.ATTACK)

        if self.rng.random() < MISS_CHANCE:
            context.add_log(context.text.missed, LogKind.INFO)
            self._schedule(ENEMY_TURN_DELAY, "enemy_turn", self._enemy_turn)
            return ActionResult(True, context.text.missed)

        critical = self.rng.random() < CRIT_CHANCE
        damage = roll_variance(context.player.attack, self.rng)
        if critical:
            damage = math.floor(damage * CRIT_MULTIPLIER)

        enemy.take_damage(damage)
        message = hit_enemy(context.locale, enemy.name, damage, critical=critical)
        context.add_log(message, LogKind.COMBAT)

        if enemy.hp <= 0:
            self._schedule(HIT_SHAKE_DELAY, "death", self._begin_death)
        else:
            self._schedule(ENEMY_TURN_DELAY, "enemy_turn", self._enemy_turn)
        return ActionResult(True, message)

    def flee(self) -> ActionResult:
        rejected = self._rejection()
        if rejected:
            return rejected

        context = self.context
        enemy = context.enemy
        if enemy.is_boss:
            context.add_log(context.text.boss_encounter, LogKind.DANGER)
            return ActionResult(False, context.text.boss_encounter)

        if self.rng.random() > FLEE_FAIL_BELOW:
            context.emit(Cue.RUN)
            context.add_log(context.text.ran_away, LogKind.INFO)
            context.fled_entity_id = enemy.entity_id
            context.enemy = None
            context.phase = GamePhase.MAP
            self.state = CombatState.IDLE
            return ActionResult(True, context.text.ran_away)

        context.add_log(context.text.run_failed, LogKind.DANGER)
        self._schedule(FLEE_FAIL_DELAY, "enemy_turn", self._enemy_turn)
        return ActionResult(True, context.text.run_failed)

    def heal(self) -> ActionResult:
        """Drink a potion. Does not use up the turn."""

        rejected = self._rejection()
        if rejected:
            return rejected

        context = self.context
        player = context.player
        if player.potions <= 0:
            return ActionResult(False, context.text.no_potion)
        if player.hp >= player.max_hp:
            return ActionResult(False, context.text.heal_full)

        amount = heal_amount(player)
        player.hp += amount
        player.potions -= 1
        message = healed(context.locale, amount)
        context.add_log(message, LogKind.SUCCESS)
        context.emit(Cue.HEAL)
        return ActionResult(True, message)

    # ------------------------------------------------------------------
    # Scheduled transitions
    # ------------------------------------------------------------------

    def _enemy_turn(self) -> None:
        context = self.context
        enemy = context.enemy
        if enemy is None or enemy.hp <= 0:
            return

        self.state = CombatState.ENEMY_TURN
        damage = max(1, roll_variance(enemy.attack, self.rng))
        context.player.take_damage(damage)
        context.emit(Cue.DAMAGE)
        context.add_log(hit_player(context.locale, enemy.name, damage), LogKind.DANGER)

        if context.player.dead:
            self.state = CombatState.DEFEAT
            context.add_log(context.text.fallen, LogKind.DANGER)
            context.outcome = Outcome.DEFEAT
            log_world(f"Player defeated by {enemy.name}")
        else:
            self.state = CombatState.PLAYER_TURN

    def _begin_death(self) -> None:
        self.enemy_dying = True
        self._schedule(DEATH_ANIMATION_DELAY, "victory", self._resolve_victory)

    def _resolve_victory(self) -> None:
        context = self.context
        enemy = context.enemy
        if enemy is None:
            return

        self.state = CombatState.VICTORY
        if enemy.entity_id:
            context.remove_entity(enemy.entity_id)

        report = apply_victory(context.player, enemy, context.locale)
        self.last_report = report
        for text, kind in report.logs:
            context.add_log(text, kind)
        if report.quest_completed:
            context.emit(Cue.GOLD)
        context.emit(Cue.LEVEL_UP if report.leveled_up else Cue.GOLD)
        log_success(f"Defeated {enemy.name}: +{report.exp_gained} exp, +{report.gold_gained} gold")

        if enemy.is_boss:
            context.outcome = Outcome.VICTORY
        else:
            self._schedule(VICTORY_RETURN_DELAY, "return_to_map", self._return_to_map)

    def _return_to_map(self) -> None:
        self.context.enemy = None
        self.context.phase = GamePhase.MAP
        self.enemy_dying = False
        self.state = CombatState.IDLE
