"""Capability interfaces for the two LLM collaborators."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from ..schemas import Cartridge, CartridgeSummary, Message, ResponderResult


@runtime_checkable
class CartridgeClassifier(Protocol):
    """Picks the cartridge that best matches a query."""

    async def classify(
        self, query: str, candidates: Sequence[CartridgeSummary]
    ) -> Mapping[str, Any]:
        """Return the raw ``{selectedCartridgeId, matchScore, reasoning}`` payload.

        The payload is untrusted; callers validate it before use. Transport
        and decoding failures raise :class:`~cartridges.utils.exceptions.ClassifierError`.
        """


@runtime_checkable
class CartridgeResponder(Protocol):
    """Generates an answer grounded in a cartridge's memory."""

    async def respond(
        self, query: str, cartridge: Cartridge, history: Sequence[Message]
    ) -> ResponderResult:
        """Return the generated text with token and cost accounting."""
