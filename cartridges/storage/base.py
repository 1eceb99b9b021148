"""Abstract interface shared by the cartridge store variants."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..schemas import (
    Cartridge,
    CartridgeCreate,
    CartridgeUpdate,
    Message,
    MessageCreate,
)


@runtime_checkable
class CartridgeStore(Protocol):
    """Persistence capability consumed by the selector and the HTTP layer.

    Stores hold no domain logic beyond persistence, with one exception:
    :meth:`set_active` must leave at most one cartridge active.
    """

    async def list_cartridges(self) -> list[Cartridge]:
        """Return all cartridges, most recently updated first."""

    async def get_cartridge(self, cartridge_id: int) -> Cartridge | None:
        """Return a cartridge or ``None`` when the id is unknown."""

    async def create_cartridge(self, data: CartridgeCreate) -> Cartridge:
        """Persist a new cartridge and return it with its assigned id."""

    async def update_cartridge(
        self, cartridge_id: int, updates: CartridgeUpdate
    ) -> Cartridge | None:
        """Apply a partial update; ``None`` when the id is unknown."""

    async def delete_cartridge(self, cartridge_id: int) -> bool:
        """Delete a cartridge. Messages referencing it are left untouched."""

    async def set_active(self, cartridge_id: int) -> None:
        """Make ``cartridge_id`` the only active cartridge.

        An unknown id clears the active slot without raising.
        """

    async def list_messages(self, limit: int | None = None) -> list[Message]:
        """Return messages in chronological order, the newest ``limit`` when given."""

    async def create_message(self, data: MessageCreate) -> Message:
        """Persist a chat message."""

    async def list_messages_by_cartridge(self, cartridge_id: int) -> list[Message]:
        """Return the messages generated against ``cartridge_id`` chronologically."""
