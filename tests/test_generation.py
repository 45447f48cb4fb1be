"""Tests for narrative generation and its deterministic fallbacks."""

import asyncio

import pytest

from isekai.generation import (
    BOSS_EMOJI,
    DEFAULT_EMOJI,
    GenerationUnavailableError,
    NarrativeGenerator,
    emoji_for,
    fallback_ending,
    fallback_intro,
    fallback_monster,
)
from isekai.i18n import Locale
from isekai.schemas import GeneratedMonster, GeneratedStory, Zone


def test_fallback_monster_formula():
    enemy = fallback_monster(3, False, "Goblin")

    assert (enemy.hp, enemy.max_hp, enemy.attack) == (60, 60, 6)
    assert (enemy.exp_reward, enemy.gold_reward) == (30, 15)
    assert enemy.name == "Goblin"
    assert enemy.emoji == "👺"
    assert not enemy.is_boss


def test_fallback_names_without_hint():
    assert fallback_monster(1, False).name == "Wild Slime"
    assert fallback_monster(1, False, locale=Locale.KO).name == "슬라임"
    boss = fallback_monster(50, True, locale=Locale.KO)
    assert boss.name == "마왕"
    assert boss.hp == 1000
    assert boss.emoji == BOSS_EMOJI
    assert boss.is_boss


def test_emoji_for_keywords():
    assert emoji_for("Frost Wolf", False) == "🐺"
    assert emoji_for("해골 전사", False) == "💀"
    assert emoji_for("Sand Worm", False) == "🪱"
    assert emoji_for("Mysterious Thing", False) == DEFAULT_EMOJI
    assert emoji_for("Slime", True) == BOSS_EMOJI


def test_fallback_story_text():
    assert "Hero" in fallback_intro("Hero")
    assert "Hero" in fallback_intro("Hero", Locale.KO)
    assert fallback_ending("Hero", True) == "You defeated the Demon King and returned home!"
    assert fallback_ending("Hero", False) == "Your journey ends here."
    assert fallback_ending("Hero", False, Locale.KO) == "여정은 여기서 끝납니다."


@pytest.mark.asyncio
async def test_disabled_generator_never_calls_provider(monkeypatch):
    async def fail(**kwargs):
        raise AssertionError("provider should not be called")

    monkeypatch.setattr("isekai.generation.call_llm_with_retries", fail)
    generator = NarrativeGenerator()

    assert not generator.enabled
    enemy = await generator.generate_monster(2, Zone.GRASS, False, "Slime")
    assert enemy.hp == 40
    assert await generator.generate_intro("Aki") == fallback_intro("Aki")
    assert await generator.generate_ending("Aki", True) == fallback_ending("Aki", True)


@pytest.mark.asyncio
async def test_generated_monster_becomes_enemy(monkeypatch):
    captured = {}

    async def fake_call(**kwargs):
        captured.update(kwargs)
        return GeneratedMonster(
            name="Shadow Wolf", description="Fast.", hp=45, attack=7, exp_reward=25, gold_reward=12
        )

    monkeypatch.setattr("isekai.generation.call_llm_with_retries", fake_call)
    generator = NarrativeGenerator("openai", "gpt-5-nano", timeout=3.0)

    enemy = await generator.generate_monster(3, Zone.FOREST, False, "Dire Wolf")

    assert enemy.name == "Shadow Wolf"
    assert enemy.hp == enemy.max_hp == 45
    assert enemy.emoji == "🐺"
    assert captured["response_model"] is GeneratedMonster
    assert captured["timeout"] == 3.0
    assert "dark forest" in captured["user_prompt"]
    assert "Dire Wolf" in captured["user_prompt"]


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [asyncio.TimeoutError(), RuntimeError("bad gateway")])
async def test_generation_failure_falls_back(monkeypatch, capsys, error):
    async def failing_call(**kwargs):
        raise error

    monkeypatch.setattr("isekai.generation.call_llm_with_retries", failing_call)
    generator = NarrativeGenerator("openai", "gpt-5-nano")

    enemy = await generator.generate_monster(4, Zone.DUNGEON, False, "Skeleton Warrior")
    intro = await generator.generate_intro("Aki", Locale.KO)
    ending = await generator.generate_ending("Aki", False)

    assert (enemy.hp, enemy.attack, enemy.exp_reward, enemy.gold_reward) == (80, 8, 40, 20)
    assert enemy.name == "Skeleton Warrior"
    assert intro == fallback_intro("Aki", Locale.KO)
    assert ending == "Your journey ends here."
    assert "[!]" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_story_text_comes_from_provider(monkeypatch):
    async def fake_call(**kwargs):
        assert kwargs["response_model"] is GeneratedStory
        return GeneratedStory(text="The portal hums.")

    monkeypatch.setattr("isekai.generation.call_llm_with_retries", fake_call)
    generator = NarrativeGenerator("anthropic", "claude-haiku")

    assert await generator.generate_intro("Aki") == "The portal hums."
    assert await generator.generate_ending("Aki", True) == "The portal hums."


def test_require_enabled():
    with pytest.raises(GenerationUnavailableError, match="Remediation tips"):
        NarrativeGenerator().require_enabled()
    NarrativeGenerator("ollama", "llama3.1").require_enabled()
