"""Ollama chat client used when ``LLM_PROVIDER=ollama``.

The server speaks plain JSON over HTTP, so a single non-streaming POST per
generation is enough. The blocking call runs in a worker thread to keep the
game loop responsive.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib import error, request

from .config import Config

DEFAULT_OLLAMA_BASE_URL = "http://127.0.0.1:11434"
_CHAT_ENDPOINT = "/api/chat"


class LocalLLMError(RuntimeError):
    """The Ollama server was unreachable or answered with something unusable."""


def _chat_messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    return messages


def _extract_reply(raw: str) -> str:
    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LocalLLMError(f"Chat endpoint sent unparseable JSON ({len(raw)} bytes)") from exc

    reply = (envelope.get("message") or {}).get("content") if isinstance(envelope, dict) else None
    if not reply:
        raise LocalLLMError("Chat endpoint answered without any message text")
    return reply


def _perform_ollama_request(
    payload: dict[str, Any],
    base_url: str,
    timeout: float,
) -> str:
    url = base_url.rstrip("/") + _CHAT_ENDPOINT
    req = request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )

    try:
        with request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8")
    except error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="ignore") if exc.fp else ""
        raise LocalLLMError(f"HTTP {exc.code} from {url}: {detail or exc.reason}") from exc
    except error.URLError as exc:
        raise LocalLLMError(f"No Ollama server answering at {url} ({exc.reason})") from exc

    return _extract_reply(raw)


async def call_ollama_chat(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_model: str,
    base_url: str | None = None,
    timeout: float = 60.0,
    json_mode: bool = False,
) -> str:
    """Run one chat exchange against ``llm_model`` and return its reply.

    With ``json_mode`` the server is told to emit a JSON document; monster stat
    blocks are requested this way.
    """

    prompt = user_prompt.strip()
    if not prompt:
        raise LocalLLMError("Refusing to send a blank prompt to the model")

    server = (base_url or Config.OLLAMA_BASE_URL or DEFAULT_OLLAMA_BASE_URL).rstrip("/")
    payload: dict[str, Any] = {
        "model": llm_model,
        "messages": _chat_messages(system_prompt.strip(), prompt),
        "stream": False,
    }
    if json_mode:
        payload["format"] = "json"

    return await asyncio.to_thread(_perform_ollama_request, payload, server, timeout)


__all__ = ["LocalLLMError", "call_ollama_chat", "DEFAULT_OLLAMA_BASE_URL"]
