"""Structured LLM calls with schema-correction retries and a hard timeout."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

from mirascope import llm
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .local_llm import LocalLLMError, call_ollama_chat
from .logging_utils import debug_llm_enabled, log_error, log_llm


ModelT = TypeVar("ModelT", bound=BaseModel)
DEFAULT_TIMEOUT_SECONDS = 20.0


@dataclass(slots=True)
class ValidationFeedback:
    """Correction text for the model plus the individual issues for logging."""

    llm_text: str
    issues: Sequence[str]


def _preview(value: Any, *, limit: int = 60) -> str:
    if value is None:
        return "null"
    text = repr(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def inject_validation_feedback(error: ValidationError) -> ValidationFeedback:
    """Turn a pydantic ValidationError into instructions for the next attempt.

    Each issue reads ``field.path: message [type=...] | received=...`` so the model
    can see exactly which stat it got wrong (e.g. a negative hp).
    """

    issues: list[str] = []
    for err in error.errors(include_url=False):
        loc = ".".join(str(part) for part in err.get("loc", [])) or "root"
        details = f"{loc}: {err.get('msg', 'validation error')}"
        if err.get("type"):
            details += f" [type={err['type']}]"
        if "input" in err:
            details += f" | received={_preview(err['input'])}"
        issues.append(details)

    if not issues:
        issues.append("root: response did not match the expected schema")

    lines = [
        "Your previous JSON response failed to validate against the required schema.",
        "Return only corrected JSON with no commentary or code fences.",
        "Issues detected:",
    ]
    lines.extend(f"- {issue}" for issue in issues)
    return ValidationFeedback(llm_text="\n".join(lines), issues=issues)


async def call_llm_with_retries(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
    response_model: type[ModelT],
    max_attempts: int = 2,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    feedback_builder: Callable[[ValidationError], ValidationFeedback] = inject_validation_feedback,
) -> ModelT:
    """Invoke a structured LLM call, retrying only on schema validation failures.

    Hosted providers go through mirascope; ``ollama`` goes through the local HTTP
    client and is validated here. Every attempt is bounded by ``timeout``; a timeout
    or transport error is raised immediately without another attempt. After
    ``max_attempts`` validation failures the last ValidationError is re-raised.
    """

    system_prompt = system_prompt.strip()
    base_user_prompt = user_prompt.strip()
    feedback: ValidationFeedback | None = None
    use_local_llm = llm_provider.lower() == "ollama"

    remote_invoke: Callable[[str], Any] | None = None
    if not use_local_llm:
        @llm.call(provider=llm_provider, model=llm_model, response_model=response_model)
        async def _invoke(prompt: str) -> str:
            return prompt

        remote_invoke = _invoke

    def _user_section() -> str:
        if feedback is None:
            return base_user_prompt
        return f"{base_user_prompt}\n\n{feedback.llm_text}"

    attempt_number = 0
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(ValidationError),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                log_llm(
                    f"Retry {attempt_number}/{max_attempts} for {response_model.__name__}"
                    " with schema feedback."
                )
            user_section = _user_section()
            if debug_llm_enabled():
                print(f"\n[SYSTEM PROMPT]\n{system_prompt}\n\n[USER PROMPT]\n{user_section}\n")
            try:
                if use_local_llm:
                    raw = await asyncio.wait_for(
                        call_ollama_chat(
                            system_prompt=system_prompt,
                            user_prompt=user_section,
                            llm_model=llm_model,
                            timeout=timeout,
                            json_mode=True,
                        ),
                        timeout=timeout,
                    )
                    result = response_model.model_validate_json(raw)
                else:
                    if remote_invoke is None:
                        raise RuntimeError("Remote LLM invoke is not initialized.")
                    combined = "\n\n".join(p for p in (system_prompt, user_section) if p)
                    result = await asyncio.wait_for(remote_invoke(combined), timeout=timeout)
                if debug_llm_enabled():
                    print(f"[LLM RESPONSE]\n{result!r}\n")
                return result
            except ValidationError as exc:
                feedback = feedback_builder(exc)
                log_error(
                    f"{response_model.__name__} failed validation "
                    f"(attempt {attempt_number}/{max_attempts})."
                )
                for issue in feedback.issues:
                    print(f"    - {issue}")
                raise
            except asyncio.TimeoutError:
                log_error(f"LLM call timed out after {timeout:g}s for {response_model.__name__}.")
                raise
            except LocalLLMError as exc:
                raise RuntimeError(f"Local LLM provider error ({llm_provider}): {exc}") from exc

    raise RuntimeError("LLM retry loop exited unexpectedly")
