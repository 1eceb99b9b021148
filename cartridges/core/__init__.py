"""
Core selection and consolidation pipeline
"""

from .chat import ChatService
from .consolidation import (
    MemoryConsolidator,
    extract_key_concepts,
    extract_topic,
)
from .selection import (
    SelectionErr,
    SelectionOk,
    clamp_match_score,
    fallback_selection,
    forced_selection,
    validate_selection_payload,
)
from .selector import CartridgeSelector

__all__ = [
    "CartridgeSelector",
    "ChatService",
    "MemoryConsolidator",
    "SelectionErr",
    "SelectionOk",
    "clamp_match_score",
    "extract_key_concepts",
    "extract_topic",
    "fallback_selection",
    "forced_selection",
    "validate_selection_payload",
]
