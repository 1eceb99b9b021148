"""
Pydantic models for cartridges, chat messages and selection results.

Models serialise with the camelCase keys used on the wire
(``episodicMemory``, ``isActive``, ``matchScore`` ...) and accept either the
camelCase or the snake_case spelling on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MessageRole = Literal["user", "assistant", "system"]


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the SQL backends hand back."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-safe camelCase representation."""

        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Memory compartments
# ---------------------------------------------------------------------------


class ConversationRecord(CamelModel):
    """One consolidated turn stored in episodic memory."""

    id: str
    timestamp: str
    topic: str = ""
    key_concepts: list[str] = Field(default_factory=list)
    outcomes: list[str] = Field(default_factory=list)


class EpisodicMemory(CamelModel):
    conversations: list[ConversationRecord] = Field(default_factory=list)


class ConceptEntry(CamelModel):
    definition: str = ""
    relationships: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    sources: list[str] = Field(default_factory=list)


class SemanticMemory(CamelModel):
    concepts: dict[str, ConceptEntry] = Field(default_factory=dict)


class Workflow(CamelModel):
    name: str
    steps: list[str] = Field(default_factory=list)
    success_rate: float = 0.0


class ProceduralMemory(CamelModel):
    workflows: list[Workflow] = Field(default_factory=list)


class CartridgeMetadata(CamelModel):
    """Bookkeeping counters for a cartridge.

    ``size_mb`` is an approximation that grows by a fixed increment per
    consolidated turn; it is not a measurement of the stored payload.
    """

    version: str = "1.0.0"
    size_mb: float = Field(default=0.0, ge=0.0)
    node_count: int = Field(default=0, ge=0)
    created_by: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


# ---------------------------------------------------------------------------
# Cartridges
# ---------------------------------------------------------------------------


class Cartridge(CamelModel):
    """A persisted bundle of memory usable as grounding context."""

    id: int
    name: str
    description: str
    episodic_memory: EpisodicMemory = Field(default_factory=EpisodicMemory)
    semantic_memory: SemanticMemory = Field(default_factory=SemanticMemory)
    procedural_memory: ProceduralMemory = Field(default_factory=ProceduralMemory)
    metadata: CartridgeMetadata = Field(default_factory=CartridgeMetadata)
    is_active: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def memory_payload(self) -> dict[str, Any]:
        """Return the three memory compartments in wire form."""

        return {
            "episodicMemory": self.episodic_memory.to_wire(),
            "semanticMemory": self.semantic_memory.to_wire(),
            "proceduralMemory": self.procedural_memory.to_wire(),
        }


class CartridgeCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    episodic_memory: EpisodicMemory = Field(default_factory=EpisodicMemory)
    semantic_memory: SemanticMemory = Field(default_factory=SemanticMemory)
    procedural_memory: ProceduralMemory = Field(default_factory=ProceduralMemory)
    metadata: CartridgeMetadata = Field(default_factory=CartridgeMetadata)
    is_active: bool = False

    @field_validator("name", "description")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class CartridgeUpdate(CamelModel):
    """Partial update; only explicitly set fields are applied."""

    name: str | None = None
    description: str | None = None
    episodic_memory: EpisodicMemory | None = None
    semantic_memory: SemanticMemory | None = None
    procedural_memory: ProceduralMemory | None = None
    metadata: CartridgeMetadata | None = None
    is_active: bool | None = None

    def changes(self) -> dict[str, Any]:
        """Return the set fields as a mapping of attribute name to value."""

        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


class CartridgeSummary(CamelModel):
    """Compact description of a cartridge offered to the classifier."""

    id: int
    name: str
    description: str
    tags: list[str] = Field(default_factory=list)
    node_count: int = 0
    last_updated: datetime

    @classmethod
    def from_cartridge(cls, cartridge: Cartridge) -> "CartridgeSummary":
        return cls(
            id=cartridge.id,
            name=cartridge.name,
            description=cartridge.description,
            tags=list(cartridge.metadata.tags),
            node_count=cartridge.metadata.node_count,
            last_updated=cartridge.updated_at,
        )


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class Message(CamelModel):
    id: int
    content: str
    role: MessageRole
    cartridge_id: int | None = None
    selected_cartridge_id: int | None = None
    match_score: int | None = None
    token_count: int | None = None
    cost: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class MessageCreate(CamelModel):
    content: str
    role: MessageRole
    cartridge_id: int | None = None
    selected_cartridge_id: int | None = None
    match_score: int | None = Field(default=None, ge=0, le=100)
    token_count: int | None = Field(default=None, ge=0)
    cost: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Selection and responses
# ---------------------------------------------------------------------------


class SelectionResult(CamelModel):
    selected_cartridge_id: int
    match_score: int = Field(..., ge=0, le=100)
    reasoning: str


class ResponderResult(CamelModel):
    content: str
    token_count: int = 0
    cost: str = "0"


class QueryResult(CamelModel):
    selection: SelectionResult
    response: str
    token_count: int = 0
    cost: str = "0"


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1)
    force_cartridge_id: int | None = None


class ChatTurn(CamelModel):
    user_message: Message
    ai_message: Message
    selection: SelectionResult


__all__ = [
    "Cartridge",
    "CartridgeCreate",
    "CartridgeMetadata",
    "CartridgeSummary",
    "CartridgeUpdate",
    "ChatRequest",
    "ChatTurn",
    "ConceptEntry",
    "ConversationRecord",
    "EpisodicMemory",
    "Message",
    "MessageCreate",
    "MessageRole",
    "ProceduralMemory",
    "QueryResult",
    "ResponderResult",
    "SelectionResult",
    "SemanticMemory",
    "Workflow",
    "utcnow",
]
