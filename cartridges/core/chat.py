"""Chat turn handling: run the selector, then persist both messages."""

from __future__ import annotations

import time

from ..schemas import ChatTurn, MessageCreate
from ..storage.base import CartridgeStore
from .selector import CartridgeSelector


class ChatService:
    """Persists the user and assistant messages for each answered query.

    Nothing is written when :meth:`CartridgeSelector.process_query` raises.
    """

    def __init__(self, store: CartridgeStore, selector: CartridgeSelector):
        self.store = store
        self.selector = selector

    async def handle_chat(
        self, message: str, force_cartridge_id: int | None = None
    ) -> ChatTurn:
        started = time.perf_counter()
        result = await self.selector.process_query(message, force_cartridge_id)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        selection = result.selection
        cartridge_id = selection.selected_cartridge_id

        user_message = await self.store.create_message(
            MessageCreate(
                content=message,
                role="user",
                cartridge_id=cartridge_id,
                selected_cartridge_id=cartridge_id,
                match_score=selection.match_score,
                token_count=0,
                cost="0",
                metadata={},
            )
        )
        ai_message = await self.store.create_message(
            MessageCreate(
                content=result.response,
                role="assistant",
                cartridge_id=cartridge_id,
                selected_cartridge_id=cartridge_id,
                match_score=selection.match_score,
                token_count=result.token_count,
                cost=result.cost,
                metadata={
                    "model": getattr(self.selector.responder, "model", None),
                    "processingTime": elapsed_ms,
                },
            )
        )
        return ChatTurn(
            user_message=user_message,
            ai_message=ai_message,
            selection=selection,
        )
