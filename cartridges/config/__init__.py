"""
Configuration management for the cartridge services
"""

from .manager import ConfigManager
from .settings import (
    AgentSettings,
    CartridgeSettings,
    DatabaseSettings,
    LoggingSettings,
    MemorySettings,
    StoreBackend,
)

__all__ = [
    "CartridgeSettings",
    "DatabaseSettings",
    "AgentSettings",
    "MemorySettings",
    "LoggingSettings",
    "StoreBackend",
    "ConfigManager",
]
