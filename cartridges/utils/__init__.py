"""
Shared utilities for the cartridge services
"""

from .exceptions import (
    CartridgeError,
    CartridgeNotFoundError,
    ClassifierError,
    ConfigurationError,
    ConsolidationError,
    DocumentImportError,
    ExceptionHandler,
    NoCartridgesAvailableError,
    ResponderError,
    SelectedCartridgeMissingError,
    StorageError,
)
from .logging import LoggingManager, get_logger

__all__ = [
    # Exceptions
    "CartridgeError",
    "CartridgeNotFoundError",
    "ClassifierError",
    "ConfigurationError",
    "ConsolidationError",
    "DocumentImportError",
    "ExceptionHandler",
    "NoCartridgesAvailableError",
    "ResponderError",
    "SelectedCartridgeMissingError",
    "StorageError",
    # Logging
    "LoggingManager",
    "get_logger",
]
