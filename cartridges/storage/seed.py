"""Default cartridges created on first start."""

from __future__ import annotations

from loguru import logger

from ..schemas import CartridgeCreate
from .base import CartridgeStore

DEFAULT_CARTRIDGES: tuple[dict, ...] = (
    {
        "name": "Web Development",
        "description": "React, Next.js, TypeScript patterns and best practices",
        "metadata": {
            "version": "1.0.0",
            "sizeMb": 2.4,
            "nodeCount": 1247,
            "tags": ["react", "typescript", "web"],
        },
        "isActive": True,
    },
    {
        "name": "AI/ML Research",
        "description": "Machine learning papers, model architectures, training techniques",
        "metadata": {
            "version": "1.0.0",
            "sizeMb": 4.1,
            "nodeCount": 2891,
            "tags": ["ai", "ml", "research"],
        },
        "isActive": False,
    },
    {
        "name": "System Design",
        "description": "Scalable architecture patterns, distributed systems",
        "metadata": {
            "version": "1.0.0",
            "sizeMb": 1.8,
            "nodeCount": 892,
            "tags": ["system-design", "architecture"],
        },
        "isActive": False,
    },
)


async def seed_default_cartridges(store: CartridgeStore) -> int:
    """Create the default cartridges when ``store`` is empty.

    Returns the number of cartridges created.
    """

    existing = await store.list_cartridges()
    if existing:
        logger.info("Cartridges already exist, skipping seed.")
        return 0

    for payload in DEFAULT_CARTRIDGES:
        await store.create_cartridge(CartridgeCreate.model_validate(payload))

    logger.info("Default cartridges created: {}", len(DEFAULT_CARTRIDGES))
    return len(DEFAULT_CARTRIDGES)
