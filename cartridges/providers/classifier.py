"""
Classifier client - asks a small model which cartridge matches a query.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

import openai
from loguru import logger

from ..schemas import CartridgeSummary
from ..utils.exceptions import ClassifierError
from .openrouter import create_async_client, first_message_content

SYSTEM_PROMPT = (
    "You are a cartridge selection agent. Analyze the user query and select the "
    "most relevant memory cartridge. Respond with valid JSON only."
)


def build_selection_prompt(query: str, candidates: Sequence[CartridgeSummary]) -> str:
    """Render the user prompt listing the candidate cartridges."""

    descriptions = [candidate.to_wire() for candidate in candidates]
    return f"""
Analyze this user query and select the most relevant memory cartridge:

User Query: "{query}"

Available Cartridges:
{json.dumps(descriptions, indent=2)}

Consider:
1. Semantic similarity between query and cartridge descriptions
2. Relevance of tags to the query topic
3. Cartridge size and content depth (node count)
4. Recent activity (last updated)

Respond with JSON in this exact format:
{{
  "selectedCartridgeId": <number>,
  "matchScore": <number between 0-100>,
  "reasoning": "<brief explanation of why this cartridge was selected>"
}}
""".strip()


class OpenRouterClassifier:
    """Cartridge classifier backed by an OpenRouter chat model."""

    def __init__(self, agent_settings: Any, client: Any | None = None):
        self.settings = agent_settings
        self.model = agent_settings.classifier_model
        self._client = client

    async def classify(
        self, query: str, candidates: Sequence[CartridgeSummary]
    ) -> Mapping[str, Any]:
        # httpx pools are bound to the loop that opened them, so a client is
        # created per call unless one was injected.
        client = self._client or create_async_client(self.settings)
        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_selection_prompt(query, candidates)},
                ],
                response_format={"type": "json_object"},
                temperature=self.settings.classifier_temperature,
            )
        except openai.OpenAIError as exc:
            raise ClassifierError(
                f"OpenRouter API error: {exc}", context={"model": self.model}
            ) from exc
        finally:
            if client is not self._client:
                await client.close()

        content = first_message_content(completion)
        if not content:
            raise ClassifierError("No content in OpenRouter response")

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.debug(f"Raw classifier response: {content}")
            raise ClassifierError(f"Classifier returned invalid JSON: {exc}") from exc

        if not isinstance(payload, Mapping):
            raise ClassifierError("Classifier response must be a JSON object")
        return payload
