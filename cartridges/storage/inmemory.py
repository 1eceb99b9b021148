"""In-memory cartridge store for tests and single-process deployments."""

from __future__ import annotations

import itertools

from ..schemas import (
    Cartridge,
    CartridgeCreate,
    CartridgeUpdate,
    Message,
    MessageCreate,
    utcnow,
)
from .base import CartridgeStore


class InMemoryCartridgeStore(CartridgeStore):
    """Dictionary-backed store.

    Records are copied on the way in and out so callers never share state
    with the store.
    """

    def __init__(self) -> None:
        self._cartridges: dict[int, Cartridge] = {}
        self._messages: dict[int, Message] = {}
        self._cartridge_ids = itertools.count(1)
        self._message_ids = itertools.count(1)
        # Tie-breaker for records touched within the same clock tick.
        self._touch_clock = itertools.count()
        self._touched: dict[int, int] = {}

    def _touch(self, cartridge_id: int) -> None:
        self._touched[cartridge_id] = next(self._touch_clock)

    async def list_cartridges(self) -> list[Cartridge]:
        ordered = sorted(
            self._cartridges.values(),
            key=lambda c: (c.updated_at, self._touched.get(c.id, 0)),
            reverse=True,
        )
        return [cartridge.model_copy(deep=True) for cartridge in ordered]

    async def get_cartridge(self, cartridge_id: int) -> Cartridge | None:
        cartridge = self._cartridges.get(cartridge_id)
        return cartridge.model_copy(deep=True) if cartridge else None

    async def create_cartridge(self, data: CartridgeCreate) -> Cartridge:
        now = utcnow()
        cartridge = Cartridge(
            id=next(self._cartridge_ids),
            created_at=now,
            updated_at=now,
            **dict(data.model_copy(deep=True)),
        )
        self._cartridges[cartridge.id] = cartridge
        self._touch(cartridge.id)
        if cartridge.is_active:
            self._activate_only(cartridge.id)
        return cartridge.model_copy(deep=True)

    async def update_cartridge(
        self, cartridge_id: int, updates: CartridgeUpdate
    ) -> Cartridge | None:
        current = self._cartridges.get(cartridge_id)
        if current is None:
            return None

        changes = updates.model_copy(deep=True).changes()
        changes["updated_at"] = utcnow()
        updated = current.model_copy(update=changes)
        self._cartridges[cartridge_id] = updated
        self._touch(cartridge_id)
        if updated.is_active:
            self._activate_only(cartridge_id)
        return updated.model_copy(deep=True)

    async def delete_cartridge(self, cartridge_id: int) -> bool:
        self._touched.pop(cartridge_id, None)
        return self._cartridges.pop(cartridge_id, None) is not None

    async def set_active(self, cartridge_id: int) -> None:
        self._activate_only(cartridge_id)

    def _activate_only(self, cartridge_id: int) -> None:
        # Single synchronous pass: no await point between deactivation and
        # activation, so other coroutines never observe a partial state.
        for existing_id, cartridge in list(self._cartridges.items()):
            should_be_active = existing_id == cartridge_id
            if cartridge.is_active != should_be_active:
                self._cartridges[existing_id] = cartridge.model_copy(
                    update={"is_active": should_be_active}
                )

    async def list_messages(self, limit: int | None = None) -> list[Message]:
        ordered = sorted(self._messages.values(), key=lambda m: (m.created_at, m.id))
        if limit is not None:
            ordered = ordered[-limit:] if limit > 0 else []
        return [message.model_copy(deep=True) for message in ordered]

    async def create_message(self, data: MessageCreate) -> Message:
        message = Message(
            id=next(self._message_ids),
            created_at=utcnow(),
            **dict(data.model_copy(deep=True)),
        )
        self._messages[message.id] = message
        return message.model_copy(deep=True)

    async def list_messages_by_cartridge(self, cartridge_id: int) -> list[Message]:
        return [
            message.model_copy(deep=True)
            for message in sorted(
                self._messages.values(), key=lambda m: (m.created_at, m.id)
            )
            if message.cartridge_id == cartridge_id
        ]
