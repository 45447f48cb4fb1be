"""
The single authoritative game state passed into every tick.

Movement, encounters, combat and progression all read and mutate one ``GameContext``
owned by the game driver. Nothing else holds player, entity or enemy state.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, List, Optional, Tuple

from .environment import TerrainGrid
from .i18n import Locale, Messages, messages
from .logging_utils import log_error
from .schemas import Enemy, GamePhase, LogEntry, LogKind, MapEntity, Player, Position, Quest

MAX_LOG_ENTRIES = 20
WORLD_START = (3.5, 4.5)


class Modal(str, Enum):
    NONE = "none"
    SHOP = "shop"
    GUILD = "guild"


class Outcome(str, Enum):
    VICTORY = "victory"
    DEFEAT = "defeat"


class Cue(str, Enum):
    """Audio/visual feedback events. Listeners decide how to present them."""

    MOVE = "move"
    BUMP = "bump"
    ATTACK = "attack"
    DAMAGE = "damage"
    HEAL = "heal"
    GOLD = "gold"
    LEVEL_UP = "level_up"
    START = "start"
    RUN = "run"
    SELECT = "select"


CueListener = Callable[[Cue], None]


@dataclass
class GameContext:
    overworld: TerrainGrid
    town: TerrainGrid
    player: Player = field(default_factory=Player)
    entities: List[MapEntity] = field(default_factory=list)
    phase: GamePhase = GamePhase.LOGIN
    in_town: bool = False
    # Overworld position to restore when leaving town
    world_position: Position = field(
        default_factory=lambda: Position(x=WORLD_START[0], y=WORLD_START[1])
    )
    modal: Modal = Modal.NONE
    potential_quest: Optional[Quest] = None
    fled_entity_id: Optional[str] = None
    nearby_entity_id: Optional[str] = None
    last_tile: Optional[Tuple[int, int]] = None
    enemy: Optional[Enemy] = None
    logs: Deque[LogEntry] = field(default_factory=lambda: deque(maxlen=MAX_LOG_ENTRIES))
    locale: Locale = Locale.EN
    story_text: str = ""
    outcome: Optional[Outcome] = None
    cue_listeners: List[CueListener] = field(default_factory=list)

    @property
    def active_grid(self) -> TerrainGrid:
        return self.town if self.in_town else self.overworld

    @property
    def text(self) -> Messages:
        return messages(self.locale)

    def add_log(self, text: str, kind: LogKind = LogKind.INFO) -> LogEntry:
        entry = LogEntry(text=text, kind=kind)
        self.logs.append(entry)
        return entry

    def emit(self, cue: Cue) -> None:
        """Notify cue listeners. A failing listener is logged and never interrupts play."""
        for listener in self.cue_listeners:
            try:
                listener(cue)
            except Exception as exc:
                log_error(f"Cue listener failed on {cue.value}: {exc}")

    def entity_by_id(self, entity_id: Optional[str]) -> Optional[MapEntity]:
        if entity_id is None:
            return None
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def remove_entity(self, entity_id: str) -> bool:
        before = len(self.entities)
        self.entities = [entity for entity in self.entities if entity.id != entity_id]
        return len(self.entities) != before
