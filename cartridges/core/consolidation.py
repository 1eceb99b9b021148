"""
Memory consolidation - folds a completed turn into a cartridge's episodic memory.

Concept and topic extraction are word-level heuristics, not semantic
analysis. Nothing else in the package depends on their quality.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from ..schemas import (
    Cartridge,
    CartridgeUpdate,
    ConversationRecord,
    EpisodicMemory,
)
from ..storage.base import CartridgeStore
from ..utils.exceptions import ConsolidationError

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "can", "this", "that", "these", "those",
    }
)  # fmt: skip

MAX_CONVERSATIONS = 50
MAX_KEY_CONCEPTS = 10
TOPIC_WORDS = 5
OUTCOME_CHARS = 200
SIZE_INCREMENT_MB = 0.001


def extract_key_concepts(text: str, limit: int = MAX_KEY_CONCEPTS) -> list[str]:
    """Return up to ``limit`` distinct lower-cased words longer than three characters."""

    concepts: list[str] = []
    seen: set[str] = set()
    for word in text.lower().split():
        if len(word) <= 3 or word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        concepts.append(word)
        if len(concepts) >= limit:
            break
    return concepts


def extract_topic(message: str, words: int = TOPIC_WORDS) -> str:
    """First ``words`` space-separated tokens of ``message``."""

    return " ".join(message.split()[:words])


def truncate_outcome(response: str, limit: int = OUTCOME_CHARS) -> str:
    if len(response) <= limit:
        return response
    return response[:limit] + "..."


class MemoryConsolidator:
    """Appends turns to episodic memory under a FIFO cap."""

    def __init__(
        self,
        store: CartridgeStore,
        *,
        max_conversations: int = MAX_CONVERSATIONS,
        max_key_concepts: int = MAX_KEY_CONCEPTS,
        topic_words: int = TOPIC_WORDS,
        outcome_chars: int = OUTCOME_CHARS,
        size_increment_mb: float = SIZE_INCREMENT_MB,
    ):
        self.store = store
        self.max_conversations = max_conversations
        self.max_key_concepts = max_key_concepts
        self.topic_words = topic_words
        self.outcome_chars = outcome_chars
        self.size_increment_mb = size_increment_mb

    @classmethod
    def from_settings(cls, store: CartridgeStore, memory_settings: Any) -> "MemoryConsolidator":
        return cls(
            store,
            max_conversations=memory_settings.max_conversations,
            max_key_concepts=memory_settings.max_key_concepts,
            topic_words=memory_settings.topic_words,
            outcome_chars=memory_settings.outcome_chars,
            size_increment_mb=memory_settings.size_increment_mb,
        )

    def build_record(self, user_message: str, ai_response: str) -> ConversationRecord:
        return ConversationRecord(
            id=f"conv_{time.time_ns() // 1_000_000}",
            timestamp=datetime.now(timezone.utc).isoformat(),
            topic=extract_topic(user_message, self.topic_words),
            key_concepts=extract_key_concepts(
                f"{user_message} {ai_response}", self.max_key_concepts
            ),
            outcomes=[truncate_outcome(ai_response, self.outcome_chars)],
        )

    def build_update(
        self, cartridge: Cartridge, user_message: str, ai_response: str
    ) -> CartridgeUpdate:
        """Compute the episodic memory and metadata changes for one turn."""

        conversations = list(cartridge.episodic_memory.conversations)
        conversations.append(self.build_record(user_message, ai_response))
        conversations = conversations[-self.max_conversations :]

        metadata = cartridge.metadata.model_copy(
            update={
                "node_count": cartridge.metadata.node_count + 1,
                "size_mb": cartridge.metadata.size_mb + self.size_increment_mb,
            }
        )
        return CartridgeUpdate(
            episodic_memory=EpisodicMemory(conversations=conversations),
            metadata=metadata,
        )

    async def consolidate(
        self, cartridge: Cartridge, user_message: str, ai_response: str
    ) -> Cartridge | None:
        """Persist the turn; returns the updated cartridge or ``None`` if it vanished."""

        try:
            update = self.build_update(cartridge, user_message, ai_response)
            updated = await self.store.update_cartridge(cartridge.id, update)
        except Exception as exc:
            raise ConsolidationError(
                f"Failed to consolidate memory for cartridge {cartridge.id}: {exc}",
                context={"cartridge_id": cartridge.id},
            ) from exc

        if updated is None:
            logger.warning(
                "Cartridge {} disappeared before its memory could be updated",
                cartridge.id,
            )
        return updated
