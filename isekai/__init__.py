"""
Isekai Chronicles - simulation core for a tile-based fantasy RPG.

Deterministic rules (terrain, movement, combat, progression) run in plain Python.
A language model is only asked for flavour: intro and ending text and monster stats,
each with a built-in fallback so the game plays fully offline.
"""

__version__ = "0.1.0"

# Driver
from .game import Game, ADVENTURE_START
from .context import GameContext, Modal, Outcome, Cue

# Rules
from .movement import (
    MovementModel,
    ContinuousMovement,
    MoveOutcome,
    input_vector_from_keys,
)
from .encounters import EncounterTrigger, TileEffect, nearest_entity, generate_quest
from .combat import CombatResolver, CombatState, ActionResult
from .progression import (
    VictoryReport,
    apply_victory,
    level_up_once,
    accept_quest,
    purchase,
    ShopItem,
    SHOP_CATALOG,
)
from .spawner import spawn_entities, relocalize_entities

# Generation
from .generation import NarrativeGenerator, GenerationUnavailableError, emoji_for

# Persistence
from .persistence import (
    SaveStore,
    SaveRecord,
    InMemorySaveStore,
    JsonSaveStore,
    InvalidCredentialsError,
    CorruptSaveError,
)

# Schemas
from .schemas import (
    GamePhase,
    Zone,
    MonsterCategory,
    LogKind,
    Position,
    MapEntity,
    Quest,
    Player,
    Enemy,
    LogEntry,
)
from .i18n import Locale, messages
from .config import Config

__all__ = [
    "__version__",
    # Driver
    "Game",
    "ADVENTURE_START",
    "GameContext",
    "Modal",
    "Outcome",
    "Cue",
    # Rules
    "MovementModel",
    "ContinuousMovement",
    "MoveOutcome",
    "input_vector_from_keys",
    "EncounterTrigger",
    "TileEffect",
    "nearest_entity",
    "generate_quest",
    "CombatResolver",
    "CombatState",
    "ActionResult",
    "VictoryReport",
    "apply_victory",
    "level_up_once",
    "accept_quest",
    "purchase",
    "ShopItem",
    "SHOP_CATALOG",
    "spawn_entities",
    "relocalize_entities",
    # Generation
    "NarrativeGenerator",
    "GenerationUnavailableError",
    "emoji_for",
    # Persistence
    "SaveStore",
    "SaveRecord",
    "InMemorySaveStore",
    "JsonSaveStore",
    "InvalidCredentialsError",
    "CorruptSaveError",
    # Schemas
    "GamePhase",
    "Zone",
    "MonsterCategory",
    "LogKind",
    "Position",
    "MapEntity",
    "Quest",
    "Player",
    "Enemy",
    "LogEntry",
    "Locale",
    "messages",
    "Config",
]
