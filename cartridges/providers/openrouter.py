"""OpenRouter client construction shared by the classifier and responder."""

from __future__ import annotations

from typing import Any

import openai

from ..utils.exceptions import ConfigurationError


def create_async_client(agent_settings: Any) -> openai.AsyncOpenAI:
    """Return an ``AsyncOpenAI`` client pointed at the OpenRouter endpoint.

    Raises :class:`ConfigurationError` when no API key is configured.
    """

    api_key = getattr(agent_settings, "openrouter_api_key", None)
    if not api_key:
        raise ConfigurationError(
            "OPENROUTER_API_KEY is required",
            context={"setting": "agents.openrouter_api_key"},
        )

    return openai.AsyncOpenAI(
        api_key=api_key,
        base_url=agent_settings.base_url,
        timeout=agent_settings.timeout_seconds,
        max_retries=0,
        default_headers={"HTTP-Referer": agent_settings.http_referer},
    )


def first_message_content(completion: Any) -> str | None:
    """Extract ``choices[0].message.content`` from a chat completion."""

    choices = getattr(completion, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)
