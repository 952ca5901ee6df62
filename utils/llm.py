"""
OpenAI LLM helpers — shared across all activities.
"""

from __future__ import annotations

import json
import logging

from openai import OpenAI, OpenAIError

import config

log = logging.getLogger(__name__)

_client: OpenAI | None = None


class GenerationError(Exception):
    """The generation service failed or returned something unusable."""


def get_client() -> OpenAI:
    global _client
    if _client is None:
        # Retries are owned by the pipeline, not the transport
        _client = OpenAI(
            api_key=config.OPENAI_API_KEY,
            max_retries=0,
            timeout=config.OPENAI_TIMEOUT_SEC,
        )
    return _client


def chat(
    system: str,
    user: str,
    model: str | None = None,
    json_mode: bool = False,
    temperature: float = 0.7,
    max_tokens: int = 4096,
) -> str:
    """Send a chat completion request and return the assistant message.

    Any SDK failure is raised as GenerationError with the original as cause.
    """
    client = get_client()
    kwargs: dict = {
        "model": model or config.OPENAI_MODEL,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        resp = client.chat.completions.create(**kwargs)
    except OpenAIError as e:
        log.warning("Chat completion failed: %s", e)
        raise GenerationError(str(e)) from e
    return resp.choices[0].message.content or ""


def chat_json(system: str, user: str, **kwargs) -> dict:
    """Send a chat completion and parse the JSON response."""
    raw = chat(system, user, json_mode=True, **kwargs)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        log.error("Failed to parse LLM JSON response: %s", raw[:500])
        raise GenerationError(f"JSON parse failed: {e}") from e
    if not isinstance(data, dict):
        raise GenerationError(f"Expected a JSON object, got {type(data).__name__}")
    return data
