"""
Game driver: owns the authoritative context and routes every command through it.

One ``Game`` runs one session at a time. The host (a terminal loop, a web handler, a
test) calls ``tick`` once per frame with the held keys and the frame delta, and calls
the command methods (``interact``, ``attack``, ``buy`` ...) when the player issues
them. Everything is processed sequentially on the caller's task; the only awaits are
the generation collaborator and the save store.
"""

from __future__ import annotations

import random
from numbers import Real
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .combat import ActionResult, CombatResolver, CombatState
from .config import Config
from .context import Cue, CueListener, GameContext, Modal, Outcome
from .encounters import EncounterTrigger
from .environment import TerrainGrid, generate_overworld, generate_town
from .generation import NarrativeGenerator
from .i18n import Locale, welcome
from .logging_utils import log_error, log_info, log_success, log_world
from .movement import ContinuousMovement, MovementModel, MoveOutcome, input_vector_from_keys
from .persistence import (
    CorruptSaveError,
    InMemorySaveStore,
    InvalidCredentialsError,
    SaveRecord,
    SaveStore,
)
from .progression import ShopItem, accept_quest, purchase
from .schemas import Enemy, GamePhase, LogKind, Position, Quest
from .spawner import relocalize_entities, spawn_entities

# Where the hero wakes up after the intro: beside the town fountain
ADVENTURE_START = (7.5, 5.5)

Controls = Union[Iterable[str], Tuple[float, float]]

__all__ = ["Game", "GameContext", "Modal", "Outcome", "ADVENTURE_START"]


def _as_vector(controls: Controls) -> Tuple[float, float]:
    if (
        isinstance(controls, Sequence)
        and not isinstance(controls, str)
        and len(controls) == 2
        and all(isinstance(part, Real) for part in controls)
    ):
        return float(controls[0]), float(controls[1])
    return input_vector_from_keys(controls)


class Game:
    """Session driver for one player.

    Args:
        generator: Narrative/monster generator. Defaults to one built from Config.
        store: Save backend. Defaults to an in-memory store.
        movement: Movement strategy. Defaults to ContinuousMovement.
        rng: Random source shared by terrain, spawns, combat and quests.
        locale: Display locale for new sessions. Defaults to Config.DEFAULT_LOCALE.
        cue_listeners: Callables receiving ``Cue`` events for audio/visual feedback.
    """

    def __init__(
        self,
        *,
        generator: Optional[NarrativeGenerator] = None,
        store: Optional[SaveStore] = None,
        movement: Optional[MovementModel] = None,
        rng: Optional[random.Random] = None,
        locale: Optional[Union[Locale, str]] = None,
        cue_listeners: Optional[List[CueListener]] = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.generator = generator or NarrativeGenerator.from_config()
        self.store = store or InMemorySaveStore()
        self.movement = movement or ContinuousMovement()
        self.encounters = EncounterTrigger(self.movement, self.rng)
        self.cue_listeners: List[CueListener] = list(cue_listeners or [])
        self.login_id: Optional[str] = None
        self._secret: Optional[str] = None
        self.context = self._fresh_context(Locale(locale or Config.DEFAULT_LOCALE))
        self.combat = CombatResolver(self.context, self.generator, self.rng)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        await self.store.initialize()

    async def close(self) -> None:
        await self.store.close()

    def _fresh_context(self, locale: Locale) -> GameContext:
        overworld = generate_overworld(self.rng)
        context = GameContext(
            overworld=overworld,
            town=generate_town(),
            locale=locale,
            cue_listeners=self.cue_listeners,
        )
        context.entities = spawn_entities(overworld, locale, self.rng)
        context.last_tile = context.player.position.tile()
        log_world(
            f"New world: {len(context.entities)} monsters on "
            f"{overworld.width}x{overworld.height} tiles"
        )
        return context

    def new_session(self) -> GameContext:
        """Return to the login screen with a freshly generated world.

        The display locale carries over; everything else is reset.
        """

        self.context = self._fresh_context(self.context.locale)
        self.combat = CombatResolver(self.context, self.generator, self.rng)
        self.login_id = None
        self._secret = None
        return self.context

    async def login(self, login_id: str, secret: str) -> bool:
        """Resume a save for ``login_id`` or start a new adventure under that name.

        A wrong secret refuses the login and leaves the session untouched. An unreadable
        save is reported and a new adventure begins in its place.
        """

        context = self.context
        if context.phase != GamePhase.LOGIN or not login_id or not secret:
            return False
        context.emit(Cue.START)

        try:
            record = await self.store.load(login_id, secret)
        except InvalidCredentialsError as exc:
            log_error(str(exc).splitlines()[0])
            context.add_log(context.text.load_failed, LogKind.DANGER)
            return False
        except CorruptSaveError as exc:
            log_error(str(exc).splitlines()[0])
            context.add_log(context.text.load_corrupt, LogKind.DANGER)
            record = None

        self.login_id = login_id
        self._secret = secret

        if record is not None:
            self._restore(record)
            return True

        context.player.name = login_id
        context.story_text = await self.generator.generate_intro(login_id, context.locale)
        context.phase = GamePhase.INTRO
        log_info(f"New adventure for {login_id}")
        return True

    def _restore(self, record: SaveRecord) -> None:
        # Build everything from the validated record before touching the context
        overworld = TerrainGrid.from_state(record.overworld)
        player = record.player.model_copy(deep=True)
        entities = [entity.model_copy(deep=True) for entity in record.entities]
        world_position = record.world_position.model_copy()

        context = self.context
        context.overworld = overworld
        context.player = player
        context.entities = entities
        context.in_town = record.in_town
        context.world_position = world_position
        context.locale = record.locale
        context.modal = Modal.NONE
        context.enemy = None
        context.outcome = None
        context.fled_entity_id = None
        context.potential_quest = None
        context.last_tile = player.position.tile()
        context.phase = GamePhase.MAP
        self.encounters.refresh_nearby(context)
        context.add_log(context.text.loaded, LogKind.SUCCESS)
        log_success(f"Loaded save for {record.login_id}")

    def start_adventure(self) -> bool:
        """Leave the intro and wake up in town."""

        context = self.context
        if context.phase != GamePhase.INTRO:
            return False
        context.emit(Cue.START)
        context.phase = GamePhase.MAP
        context.in_town = True
        context.player.position = Position(x=ADVENTURE_START[0], y=ADVENTURE_START[1])
        context.last_tile = context.player.position.tile()
        context.add_log(welcome(context.locale, context.player.name), LogKind.INFO)
        return True

    async def save_and_logout(self) -> bool:
        """Persist the session and return to the login screen.

        Only allowed while exploring; a save mid-fight would store a half-resolved turn.
        """

        context = self.context
        if self.login_id is None or self._secret is None:
            return False
        if context.phase != GamePhase.MAP or self.combat.state != CombatState.IDLE:
            return False

        record = SaveRecord(
            login_id=self.login_id,
            secret=self._secret,
            player=context.player,
            in_town=context.in_town,
            world_position=context.world_position,
            entities=context.entities,
            overworld=context.overworld.to_state(),
            locale=context.locale,
        )
        await self.store.save(record)
        log_success(f"Saved {self.login_id}")
        self.new_session()
        self.context.add_log(self.context.text.saved, LogKind.SUCCESS)
        return True

    # ------------------------------------------------------------------
    # Per-frame update
    # ------------------------------------------------------------------

    async def tick(self, controls: Controls = (), dt: float = 0.0) -> MoveOutcome:
        """Advance one frame: combat clock, ending check, movement, tile effects.

        ``controls`` is either held key names or an explicit ``(dx, dy)`` vector.
        """

        context = self.context
        self.combat.advance(dt)

        if context.outcome is not None:
            await self._finish_game()
            return MoveOutcome.SKIPPED
        if context.phase != GamePhase.MAP or context.modal != Modal.NONE:
            return MoveOutcome.SKIPPED

        outcome = self.movement.attempt_move(context, _as_vector(controls), dt)
        if outcome is MoveOutcome.BLOCKED:
            context.emit(Cue.BUMP)

        previous_tile = context.last_tile
        self.encounters.apply_tile_effects(context)
        if outcome is MoveOutcome.MOVED and context.last_tile != previous_tile:
            context.emit(Cue.MOVE)
        self.encounters.refresh_nearby(context)

        if context.player.dead:
            context.add_log(context.text.fallen, LogKind.DANGER)
            context.outcome = Outcome.DEFEAT
            await self._finish_game()
        return outcome

    async def _finish_game(self) -> None:
        context = self.context
        if context.phase in (GamePhase.ENDING, GamePhase.GAME_OVER):
            return
        won = context.outcome is Outcome.VICTORY
        context.story_text = await self.generator.generate_ending(
            context.player.name, won, context.locale
        )
        context.phase = GamePhase.ENDING if won else GamePhase.GAME_OVER
        log_info(f"Game over for {context.player.name}: {'victory' if won else 'defeat'}")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def interact(self) -> Optional[Enemy]:
        """Fight the nearest monster in range, if any. Ignored while a fight is running."""

        context = self.context
        if context.phase != GamePhase.MAP or context.modal != Modal.NONE:
            return None
        if self.combat.state != CombatState.IDLE:
            return None
        entity = self.encounters.resolve_interact(context)
        if entity is None:
            return None
        return await self.combat.start(entity)

    def attack(self) -> ActionResult:
        return self.combat.attack()

    def flee(self) -> ActionResult:
        return self.combat.flee()

    def heal(self) -> ActionResult:
        return self.combat.heal()

    def buy(self, item: Union[ShopItem, str]) -> ActionResult:
        context = self.context
        if context.modal != Modal.SHOP:
            return ActionResult(False, context.text.shop_closed)
        if purchase(context.player, item):
            context.emit(Cue.GOLD)
            context.add_log(context.text.bought, LogKind.SUCCESS)
            return ActionResult(True, context.text.bought)
        context.add_log(context.text.no_gold, LogKind.DANGER)
        return ActionResult(False, context.text.no_gold)

    def accept_quest(self) -> Optional[Quest]:
        context = self.context
        if context.modal != Modal.GUILD or context.potential_quest is None:
            return None
        quest = accept_quest(context.player, context.potential_quest)
        context.emit(Cue.GOLD)
        context.modal = Modal.NONE
        context.add_log(context.text.quest_accepted, LogKind.QUEST)
        return quest

    def close_modal(self) -> None:
        if self.context.modal != Modal.NONE:
            self.context.emit(Cue.SELECT)
        self.context.modal = Modal.NONE

    def set_locale(self, locale: Union[Locale, str]) -> None:
        """Switch display language; existing monsters are renamed, not re-rolled."""

        context = self.context
        context.locale = Locale(locale)
        relocalize_entities(context.entities, context.locale)
        context.emit(Cue.SELECT)
