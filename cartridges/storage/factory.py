"""Factory helpers for constructing stores based on configuration."""

from __future__ import annotations

from typing import Any

from loguru import logger

from .base import CartridgeStore
from .inmemory import InMemoryCartridgeStore
from .sqlalchemy_store import SQLAlchemyCartridgeStore


def create_store(settings: Any) -> CartridgeStore:
    """Instantiate the store variant named by ``DatabaseSettings``.

    ``settings`` may be the full ``CartridgeSettings`` or just its
    ``database`` section.
    """

    database = getattr(settings, "database", settings)
    backend_value = getattr(database, "backend", None)
    if hasattr(backend_value, "value"):
        backend_value = backend_value.value
    backend_name = str(backend_value or "sqlalchemy").lower()

    if backend_name in {"memory", "inmemory", "in-memory"}:
        logger.debug("Using in-memory cartridge store")
        return InMemoryCartridgeStore()

    if backend_name == "sqlalchemy":
        connection_string = getattr(database, "connection_string", None) or (
            "sqlite:///cartridges.db"
        )
        return SQLAlchemyCartridgeStore(
            connection_string,
            echo=bool(getattr(database, "echo_sql", False)),
        )

    raise ValueError(f"Unsupported store backend: {backend_name}")
