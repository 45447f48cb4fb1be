"""
SaveStore interface for pluggable save-game backends.

A save is one ``SaveRecord`` per login id holding everything needed to resume
exploration: the player, the spawned entity list with ids intact, the full overworld
grid, town mode, the remembered overworld position and the display locale.

Two implementations are included:
1. InMemorySaveStore - dict of serialized records, lost on exit (tests, prototyping)
2. JsonSaveStore - one human-readable JSON file per login id

Both store the serialized JSON text and validate it on load, so a damaged record
surfaces as ``CorruptSaveError`` from either backend. The secret is an equality
check only; it is not security.

Usage pattern:
    store = JsonSaveStore(Config.SAVE_DIR)
    await store.initialize()
    await store.save(record)
    record = await store.load("hero", "pw")
    await store.close()
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from pydantic import BaseModel, Field, ValidationError, model_validator

from .environment import TerrainGrid, TerrainGridState, generate_town
from .i18n import Locale
from .schemas import MapEntity, Player, Position


class InvalidCredentialsError(Exception):
    """Raised when a save exists but the supplied secret does not match."""

    def __init__(self, login_id: str) -> None:
        self.login_id = login_id
        super().__init__(
            f"Secret does not match the save for {login_id!r}.\n\n"
            "Remediation tips:\n"
            "  - Check the secret used when the game was saved\n"
            "  - Log in with a different id to start a new adventure"
        )


class CorruptSaveError(Exception):
    """Raised when a stored save cannot be parsed or fails validation."""

    def __init__(self, login_id: str, reason: str) -> None:
        self.login_id = login_id
        self.reason = reason
        super().__init__(
            f"Save for {login_id!r} is unreadable: {reason}\n\n"
            "Remediation tips:\n"
            "  - Delete the save file to start over\n"
            "  - Inspect the JSON under SAVE_DIR for manual edits"
        )


class SaveRecord(BaseModel):
    """Everything persisted for one login id."""

    login_id: str = Field(..., min_length=1)
    secret: str
    player: Player
    in_town: bool = False
    world_position: Position
    entities: List[MapEntity] = Field(default_factory=list)
    overworld: TerrainGridState
    locale: Locale = Locale.EN

    @model_validator(mode="after")
    def _check_invariants(self) -> "SaveRecord":
        player = self.player
        if not 0 <= player.hp <= player.max_hp:
            raise ValueError(f"player hp {player.hp} outside 0..{player.max_hp}")
        overworld = TerrainGrid.from_state(self.overworld)
        grid = generate_town() if self.in_town else overworld
        if grid.is_blocked_at(player.position.x, player.position.y):
            raise ValueError(f"player stands on blocked tile {player.position.tile()}")
        if overworld.is_blocked_at(self.world_position.x, self.world_position.y):
            raise ValueError(f"world position on blocked tile {self.world_position.tile()}")
        ids = [entity.id for entity in self.entities]
        if len(ids) != len(set(ids)):
            raise ValueError("entity ids are not unique")
        return self


def decode_record(login_id: str, raw: str | bytes, secret: str) -> SaveRecord:
    """Validate a stored blob, then check the secret."""

    try:
        record = SaveRecord.model_validate_json(raw)
    except ValidationError as exc:
        raise CorruptSaveError(login_id, f"{exc.error_count()} validation error(s)") from exc
    if record.secret != secret:
        raise InvalidCredentialsError(login_id)
    return record


class SaveStore(ABC):
    """Abstract base class for save-game storage."""

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (create directories, open connections)."""

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def save(self, record: SaveRecord) -> None:
        """Create or overwrite the save for ``record.login_id``."""

    @abstractmethod
    async def load(self, login_id: str, secret: str) -> Optional[SaveRecord]:
        """Return the validated save, or None when no save exists.

        Raises:
            InvalidCredentialsError: The save exists but ``secret`` does not match.
            CorruptSaveError: The stored data is not a valid record.
        """

    @abstractmethod
    async def delete(self, login_id: str) -> None:
        """Remove the save if present."""


class InMemorySaveStore(SaveStore):
    """Dict-backed store holding serialized records."""

    def __init__(self) -> None:
        self.records: Dict[str, str] = {}

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        self.records.clear()

    async def save(self, record: SaveRecord) -> None:
        self.records[record.login_id] = record.model_dump_json()

    async def load(self, login_id: str, secret: str) -> Optional[SaveRecord]:
        raw = self.records.get(login_id)
        if raw is None:
            return None
        return decode_record(login_id, raw, secret)

    async def delete(self, login_id: str) -> None:
        self.records.pop(login_id, None)


class JsonSaveStore(SaveStore):
    """One pretty-printed JSON file per login id under ``base_path``.

    File I/O runs in a worker thread (asyncio.to_thread). Login ids are
    percent-encoded into file names, so any id maps to a single flat file.
    """

    def __init__(self, base_path: Path | str = "saves") -> None:
        self.base_path = Path(base_path)

    def _path(self, login_id: str) -> Path:
        return self.base_path / f"{quote(login_id, safe='')}.json"

    async def initialize(self) -> None:
        await asyncio.to_thread(self.base_path.mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        return None

    async def save(self, record: SaveRecord) -> None:
        path = self._path(record.login_id)
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_text, record.model_dump_json(indent=2), "utf-8")

    async def load(self, login_id: str, secret: str) -> Optional[SaveRecord]:
        path = self._path(login_id)

        def _read() -> Tuple[bool, bytes]:
            if not path.exists():
                return False, b""
            return True, path.read_bytes()

        found, raw = await asyncio.to_thread(_read)
        if not found:
            return None
        return decode_record(login_id, raw, secret)

    async def delete(self, login_id: str) -> None:
        path = self._path(login_id)
        await asyncio.to_thread(path.unlink, missing_ok=True)
