"""Unit tests for the structured-call retry helper."""

import asyncio

import pytest
from pydantic import ValidationError

from isekai.llm_utils import call_llm_with_retries, inject_validation_feedback
from isekai.local_llm import LocalLLMError
from isekai.schemas import GeneratedMonster, GeneratedStory


def passthrough_decorator(caller):
    def fake_decorator(*, provider, model, response_model):
        def wrapper(fn):
            async def inner(prompt: str):
                return await caller(prompt)

            return inner

        return wrapper

    return fake_decorator


@pytest.mark.asyncio
async def test_remote_call_success(monkeypatch):
    recorded_prompts: list[str] = []

    async def fake_caller(prompt: str) -> GeneratedStory:
        recorded_prompts.append(prompt)
        return GeneratedStory(text="Once upon a time")

    monkeypatch.setattr("isekai.llm_utils.llm.call", passthrough_decorator(fake_caller))

    result = await call_llm_with_retries(
        system_prompt="  Narrator  ",
        user_prompt="Write an intro",
        llm_provider="openai",
        llm_model="gpt-5-nano",
        response_model=GeneratedStory,
    )

    assert result.text == "Once upon a time"
    assert recorded_prompts == ["Narrator\n\nWrite an intro"]


@pytest.mark.asyncio
async def test_validation_failure_retries_with_feedback(monkeypatch):
    attempts: list[str] = []

    try:
        GeneratedMonster.model_validate(
            {"name": "Slime", "description": "", "hp": -3, "attack": 2, "exp_reward": 1, "gold_reward": 1}
        )
    except ValidationError as exc:
        validation_error = exc

    async def fake_caller(prompt: str) -> GeneratedMonster:
        attempts.append(prompt)
        if len(attempts) == 1:
            raise validation_error
        return GeneratedMonster(
            name="Slime", description="", hp=20, attack=2, exp_reward=10, gold_reward=5
        )

    monkeypatch.setattr("isekai.llm_utils.llm.call", passthrough_decorator(fake_caller))

    result = await call_llm_with_retries(
        system_prompt="System",
        user_prompt="Monster please",
        llm_provider="openai",
        llm_model="gpt-5-nano",
        response_model=GeneratedMonster,
    )

    assert result.hp == 20
    assert len(attempts) == 2
    assert "Your previous JSON response failed to validate against the required schema." in attempts[1]
    assert "- hp: Input should be greater than 0" in attempts[1]


@pytest.mark.asyncio
async def test_validation_failure_reraised_after_max_attempts(monkeypatch):
    calls = 0

    async def fake_caller(prompt: str):
        nonlocal calls
        calls += 1
        return GeneratedStory.model_validate({})

    monkeypatch.setattr("isekai.llm_utils.llm.call", passthrough_decorator(fake_caller))

    with pytest.raises(ValidationError):
        await call_llm_with_retries(
            system_prompt="System",
            user_prompt="User",
            llm_provider="openai",
            llm_model="gpt-5-nano",
            response_model=GeneratedStory,
            max_attempts=3,
        )
    assert calls == 3


@pytest.mark.asyncio
async def test_slow_call_times_out_without_retry(monkeypatch, capsys):
    calls = 0

    async def slow_caller(prompt: str):
        nonlocal calls
        calls += 1
        await asyncio.sleep(5)

    monkeypatch.setattr("isekai.llm_utils.llm.call", passthrough_decorator(slow_caller))

    with pytest.raises(asyncio.TimeoutError):
        await call_llm_with_retries(
            system_prompt="System",
            user_prompt="User",
            llm_provider="openai",
            llm_model="gpt-5-nano",
            response_model=GeneratedStory,
            timeout=0.01,
        )
    assert calls == 1
    assert "[!] LLM call timed out" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_local_provider_path(monkeypatch):
    captured: dict[str, object] = {}

    async def fake_local_call(*, system_prompt, user_prompt, llm_model, base_url=None, timeout=60.0, json_mode=False):
        captured.update(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            llm_model=llm_model,
            timeout=timeout,
            json_mode=json_mode,
        )
        return '{"text": "A hero arrives."}'

    def fail_decorator(*args, **kwargs):
        raise AssertionError("remote provider path should not be used for ollama")

    monkeypatch.setattr("isekai.llm_utils.call_ollama_chat", fake_local_call)
    monkeypatch.setattr("isekai.llm_utils.llm.call", fail_decorator)

    result = await call_llm_with_retries(
        system_prompt="System context",
        user_prompt="User payload",
        llm_provider="Ollama",
        llm_model="llama3.1",
        response_model=GeneratedStory,
        timeout=7.0,
    )

    assert result.text == "A hero arrives."
    assert captured == {
        "system_prompt": "System context",
        "user_prompt": "User payload",
        "llm_model": "llama3.1",
        "timeout": 7.0,
        "json_mode": True,
    }


@pytest.mark.asyncio
async def test_local_provider_error_is_wrapped(monkeypatch):
    async def broken_local_call(**kwargs):
        raise LocalLLMError("connection refused")

    monkeypatch.setattr("isekai.llm_utils.call_ollama_chat", broken_local_call)

    with pytest.raises(RuntimeError, match="Local LLM provider error"):
        await call_llm_with_retries(
            system_prompt="System",
            user_prompt="User",
            llm_provider="ollama",
            llm_model="llama3.1",
            response_model=GeneratedStory,
        )


def test_feedback_lists_each_issue():
    try:
        GeneratedMonster.model_validate({"name": "", "hp": 0})
    except ValidationError as exc:
        feedback = inject_validation_feedback(exc)

    assert any(issue.startswith("name:") for issue in feedback.issues)
    assert any(issue.startswith("hp:") for issue in feedback.issues)
    assert any(issue.startswith("attack: Field required") for issue in feedback.issues)
    assert feedback.llm_text.count("\n- ") == len(feedback.issues)
