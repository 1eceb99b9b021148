"""
Responder client - answers a query using the selected cartridge's memory.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import openai

from ..schemas import Cartridge, Message, ResponderResult
from ..utils.exceptions import ConfigurationError, ResponderError
from .openrouter import create_async_client, first_message_content


def build_system_prompt(cartridge: Cartridge) -> str:
    """Render the system prompt embedding the cartridge's memory compartments."""

    memory = cartridge.memory_payload()
    return f"""
You are an AI assistant with access to episodic memory from the "{cartridge.name}" cartridge.

Cartridge Description: {cartridge.description}

Available Memory Context:
- Episodic Memory: {json.dumps(memory["episodicMemory"], indent=2)}
- Semantic Memory: {json.dumps(memory["semanticMemory"], indent=2)}
- Procedural Memory: {json.dumps(memory["proceduralMemory"], indent=2)}

Instructions:
1. Use the memory context to provide informed, relevant responses
2. Reference specific concepts, procedures, or past conversations when applicable
3. If the memory is empty or insufficient, acknowledge this and provide general assistance
4. Always be helpful, accurate, and conversational
5. When providing code examples or technical explanations, be precise and practical

Remember: You have access to the accumulated knowledge and patterns stored in this cartridge's memory graph.
""".strip()


def build_message_history(
    query: str,
    cartridge: Cartridge,
    history: Sequence[Message],
    *,
    max_history: int = 10,
) -> list[dict[str, str]]:
    """Assemble the chat payload: system prompt, recent turns, then the query."""

    messages = [{"role": "system", "content": build_system_prompt(cartridge)}]
    recent = list(history)[-max_history:] if max_history else []
    for message in recent:
        if message.role in ("user", "assistant"):
            messages.append({"role": message.role, "content": message.content})
    messages.append({"role": "user", "content": query})
    return messages


def calculate_cost(token_count: int, cost_per_token: float = 0.000000375) -> str:
    """Blended per-token estimate formatted with six decimals."""

    return f"{token_count * cost_per_token:.6f}"


class OpenRouterResponder:
    """Response generator backed by an OpenRouter chat model."""

    def __init__(
        self,
        agent_settings: Any,
        client: Any | None = None,
        *,
        max_history: int = 10,
    ):
        self.settings = agent_settings
        self.model = agent_settings.responder_model
        self.max_history = max_history
        self._client = client

    async def respond(
        self, query: str, cartridge: Cartridge, history: Sequence[Message]
    ) -> ResponderResult:
        messages = build_message_history(
            query, cartridge, history, max_history=self.max_history
        )
        try:
            client = self._client or create_async_client(self.settings)
        except ConfigurationError as exc:
            raise ResponderError(str(exc), context={"model": self.model}) from exc

        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.settings.responder_temperature,
                max_tokens=self.settings.max_tokens,
            )
        except openai.OpenAIError as exc:
            raise ResponderError(
                f"OpenRouter API error: {exc}", context={"model": self.model}
            ) from exc
        finally:
            if client is not self._client:
                await client.close()

        content = first_message_content(completion)
        if not content:
            raise ResponderError("No content in OpenRouter response")

        usage = getattr(completion, "usage", None)
        token_count = int(getattr(usage, "total_tokens", 0) or 0)
        return ResponderResult(
            content=content,
            token_count=token_count,
            cost=calculate_cost(token_count, self.settings.cost_per_token),
        )
