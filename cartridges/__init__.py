"""
Memory Cartridges - query routing across named memory bundles.

A query is matched to one cartridge (by a classifier call or an explicit
override), answered by an LLM grounded in that cartridge's memory, and folded
back into the cartridge's episodic memory.
"""

__version__ = "0.1.0"

from .config import (
    AgentSettings,
    CartridgeSettings,
    ConfigManager,
    DatabaseSettings,
    LoggingSettings,
    MemorySettings,
)
from .core import (
    CartridgeSelector,
    ChatService,
    MemoryConsolidator,
)
from .schemas import (
    Cartridge,
    CartridgeCreate,
    CartridgeUpdate,
    Message,
    MessageCreate,
    QueryResult,
    SelectionResult,
)
from .storage import (
    CartridgeStore,
    InMemoryCartridgeStore,
    SQLAlchemyCartridgeStore,
    create_store,
    seed_default_cartridges,
)
from .utils import (
    CartridgeError,
    CartridgeNotFoundError,
    ClassifierError,
    ConsolidationError,
    NoCartridgesAvailableError,
    ResponderError,
    SelectedCartridgeMissingError,
)

__all__ = [
    "AgentSettings",
    "Cartridge",
    "CartridgeCreate",
    "CartridgeError",
    "CartridgeNotFoundError",
    "CartridgeSelector",
    "CartridgeSettings",
    "CartridgeStore",
    "CartridgeUpdate",
    "ChatService",
    "ClassifierError",
    "ConfigManager",
    "ConsolidationError",
    "DatabaseSettings",
    "InMemoryCartridgeStore",
    "LoggingSettings",
    "MemoryConsolidator",
    "MemorySettings",
    "Message",
    "MessageCreate",
    "NoCartridgesAvailableError",
    "QueryResult",
    "ResponderError",
    "SQLAlchemyCartridgeStore",
    "SelectedCartridgeMissingError",
    "SelectionResult",
    "create_store",
    "seed_default_cartridges",
]
