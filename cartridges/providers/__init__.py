"""
LLM collaborators used by the cartridge selector
"""

from .base import CartridgeClassifier, CartridgeResponder
from .classifier import OpenRouterClassifier, build_selection_prompt
from .openrouter import create_async_client
from .responder import (
    OpenRouterResponder,
    build_message_history,
    build_system_prompt,
    calculate_cost,
)

__all__ = [
    "CartridgeClassifier",
    "CartridgeResponder",
    "OpenRouterClassifier",
    "OpenRouterResponder",
    "build_message_history",
    "build_selection_prompt",
    "build_system_prompt",
    "calculate_cost",
    "create_async_client",
]
