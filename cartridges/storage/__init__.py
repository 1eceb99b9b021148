"""
Cartridge store variants and helpers
"""

from .base import CartridgeStore
from .factory import create_store
from .importer import load_cartridge_file, parse_cartridge_document
from .inmemory import InMemoryCartridgeStore
from .seed import DEFAULT_CARTRIDGES, seed_default_cartridges
from .sqlalchemy_store import SQLAlchemyCartridgeStore

__all__ = [
    "CartridgeStore",
    "InMemoryCartridgeStore",
    "SQLAlchemyCartridgeStore",
    "create_store",
    "seed_default_cartridges",
    "DEFAULT_CARTRIDGES",
    "parse_cartridge_document",
    "load_cartridge_file",
]
