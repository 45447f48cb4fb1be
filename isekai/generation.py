"""
Narrative and monster generation with deterministic fallbacks.

The generation collaborator is optional. Without a configured provider, or when a call
errors, times out or returns a payload that fails validation, every method returns
built-in text or formula stats instead. Nothing here raises to the game loop.
"""

from __future__ import annotations

from typing import Optional

from .config import Config
from .i18n import Locale, messages
from .llm_utils import call_llm_with_retries
from .logging_utils import log_error, log_llm
from .schemas import Enemy, GeneratedMonster, GeneratedStory, Zone


class GenerationUnavailableError(Exception):
    """Raised when a caller requires a live generation provider and none is configured."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Narrative generation unavailable: {reason}\n\n"
            "Remediation tips:\n"
            "  - Set LLM_PROVIDER and LLM_MODEL environment variables\n"
            "  - Ensure the API key env var is set for your provider\n"
            "  - DEBUG_LLM=true to inspect prompts/responses"
        )


# Keyword table checked in order; first match wins.
_EMOJI_KEYWORDS = [
    (("slime", "blob", "슬라임"), "💧"),
    (("goblin", "orc", "고블린"), "👺"),
    (("wolf", "dog", "울프", "늑대"), "🐺"),
    (("dragon", "drake"), "🐉"),
    (("skeleton", "bone", "해골"), "💀"),
    (("ghost", "spirit"), "👻"),
    (("spider",), "🕷️"),
    (("bat",), "🦇"),
    (("snake",), "🐍"),
    (("worm", "웜"), "🪱"),
]
BOSS_EMOJI = "👿"
DEFAULT_EMOJI = "👾"

BOSS_LEVEL = 50

_ZONE_DESCRIPTIONS = {
    Zone.GRASS: "grasslands",
    Zone.FOREST: "dark forest",
    Zone.SAND: "scorching desert",
    Zone.DUNGEON: "deep underground dungeon",
    Zone.SNOW: "frozen tundra",
}

_LANGUAGE_NAMES = {Locale.EN: "English", Locale.KO: "Korean"}


def emoji_for(name: str, is_boss: bool) -> str:
    """Pick a glyph for a monster name. Pure and deterministic."""

    if is_boss:
        return BOSS_EMOJI
    lowered = name.lower()
    for keywords, glyph in _EMOJI_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return glyph
    return DEFAULT_EMOJI


def fallback_monster(
    level: int,
    is_boss: bool,
    name_hint: Optional[str] = None,
    locale: Locale = Locale.EN,
) -> Enemy:
    """Formula stats used whenever generation is unavailable or fails."""

    if name_hint:
        name = name_hint
    elif is_boss:
        name = messages(locale).monsters.boss
    else:
        name = "Wild Slime" if locale is Locale.EN else messages(locale).monsters.slime
    return Enemy(
        name=name,
        description="A hostile creature.",
        hp=level * 20,
        max_hp=level * 20,
        attack=level * 2,
        exp_reward=level * 10,
        gold_reward=level * 5,
        emoji=emoji_for(name_hint or "slime", is_boss),
        is_boss=is_boss,
    )


def fallback_intro(player_name: str, locale: Locale = Locale.EN) -> str:
    if locale is Locale.KO:
        return f"{player_name}님, 위기에 처한 세계에 소환되었습니다. 마왕을 쓰러뜨리고 집으로 돌아가세요."
    return (
        f"Welcome, {player_name}. You have been summoned to a world in peril. "
        "Defeat the Demon King to return home."
    )


def fallback_ending(player_name: str, victory: bool, locale: Locale = Locale.EN) -> str:
    if locale is Locale.KO:
        if victory:
            return f"{player_name}님은 마왕을 물리치고 원래 세계로 돌아갔습니다!"
        return "여정은 여기서 끝납니다."
    if victory:
        return "You defeated the Demon King and returned home!"
    return "Your journey ends here."


class NarrativeGenerator:
    """Async facade over the generation collaborator.

    Args:
        llm_provider: Provider name understood by mirascope, or "ollama". None disables
            generation entirely and every call returns fallback content.
        llm_model: Model identifier for the provider.
        timeout: Seconds allowed per call before it is treated as a failure.
    """

    system_prompt = (
        "You are the narrator of a light-hearted fantasy RPG about a hero summoned "
        "to another world. Keep prose short and vivid. Never use markdown."
    )

    def __init__(
        self,
        llm_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self.llm_provider = llm_provider
        self.llm_model = llm_model
        self.timeout = timeout if timeout is not None else Config.GENERATION_TIMEOUT_SECONDS

    @classmethod
    def from_config(cls) -> "NarrativeGenerator":
        return cls(Config.LLM_PROVIDER, Config.LLM_MODEL)

    @property
    def enabled(self) -> bool:
        return bool(self.llm_provider and self.llm_model)

    def require_enabled(self) -> None:
        if not self.enabled:
            raise GenerationUnavailableError("LLM_PROVIDER/LLM_MODEL not configured")

    async def _structured(self, user_prompt: str, response_model):
        return await call_llm_with_retries(
            system_prompt=self.system_prompt,
            user_prompt=user_prompt,
            llm_provider=self.llm_provider,
            llm_model=self.llm_model,
            response_model=response_model,
            timeout=self.timeout,
        )

    async def generate_intro(self, player_name: str, locale: Locale = Locale.EN) -> str:
        if not self.enabled:
            return fallback_intro(player_name, locale)

        prompt = (
            f"Write a short, immersive 3-paragraph introduction in {_LANGUAGE_NAMES[locale]}. "
            f'The protagonist, named "{player_name}", is an ordinary person suddenly summoned '
            "to a fantasy world by a desperate goddess. The world is on the brink of destruction "
            "by the Demon King. Serious but adventurous tone. "
            'Respond as JSON: {"text": "..."}'
        )
        log_llm(f"Generating intro for {player_name}")
        try:
            story = await self._structured(prompt, GeneratedStory)
        except Exception as exc:
            log_error(f"Intro generation failed, using fallback: {exc}")
            return fallback_intro(player_name, locale)
        return story.text

    async def generate_ending(
        self, player_name: str, victory: bool, locale: Locale = Locale.EN
    ) -> str:
        if not self.enabled:
            return fallback_ending(player_name, victory, locale)

        if victory:
            brief = (
                f'Write a triumphant 2-paragraph ending for the hero "{player_name}" who defeated '
                "the Demon King. The kingdom thanks them and a portal opens to take them home."
            )
        else:
            brief = (
                f'Write a tragic 1-paragraph ending for the hero "{player_name}" who fell in '
                "battle. The world is plunged into darkness."
            )
        prompt = f'{brief} Write in {_LANGUAGE_NAMES[locale]}. Respond as JSON: {{"text": "..."}}'
        log_llm(f"Generating {'victory' if victory else 'defeat'} ending for {player_name}")
        try:
            story = await self._structured(prompt, GeneratedStory)
        except Exception as exc:
            log_error(f"Ending generation failed, using fallback: {exc}")
            return fallback_ending(player_name, victory, locale)
        return story.text

    async def generate_monster(
        self,
        level: int,
        zone: Zone,
        is_boss: bool,
        name_hint: Optional[str] = None,
        locale: Locale = Locale.EN,
    ) -> Enemy:
        """Return an Enemy for the encounter; stats scale with ``level``."""

        if not self.enabled:
            return fallback_monster(level, is_boss, name_hint, locale)

        if is_boss:
            subject = "Create the ultimate Demon King boss."
        else:
            basis = f"based on a {name_hint}" if name_hint else "Create a fantasy monster"
            subject = (
                f"Create a monster {basis} for a level {level} hero in the "
                f"{_ZONE_DESCRIPTIONS[zone]}. Difficulty: NORMAL."
            )
        prompt = (
            f"{subject}\n"
            f"Name and description in {_LANGUAGE_NAMES[locale]}.\n"
            f"Base stats roughly on level {level}.\n"
            f"Normal monster: hp ~ {level * 20}, attack ~ {level * 3}.\n"
            f"Dungeon monster: hp ~ {level * 35}, attack ~ {level * 5}.\n"
            "Demon King: hp 500, attack 25 (fixed).\n"
            "Respond as JSON with keys name, description, hp, attack, exp_reward, gold_reward."
        )
        log_llm(f"Generating {'boss' if is_boss else zone.value.lower()} monster (level {level})")
        try:
            data = await self._structured(prompt, GeneratedMonster)
        except Exception as exc:
            log_error(f"Monster generation failed, using fallback stats: {exc}")
            return fallback_monster(level, is_boss, name_hint, locale)

        return Enemy(
            name=data.name,
            description=data.description,
            hp=data.hp,
            max_hp=data.hp,
            attack=data.attack,
            exp_reward=data.exp_reward,
            gold_reward=data.gold_reward,
            emoji=emoji_for(data.name, is_boss),
            is_boss=is_boss,
        )
