"""
Cartridge Selector - routes a query to a cartridge and answers it.

Flow for :meth:`CartridgeSelector.process_query`:

1. Resolve the cartridge, either from an explicit override or through the
   classifier (with a deterministic fallback when classification fails).
2. Activate it, deactivating every other cartridge.
3. Ask the responder for an answer grounded in the cartridge's memory and
   the recent conversation history.
4. Fold the turn into the cartridge's episodic memory. Failures here are
   logged and swallowed because the answer already exists.

Persisting the user and assistant messages is left to the caller (see
:class:`cartridges.core.chat.ChatService`).
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from ..providers.base import CartridgeClassifier, CartridgeResponder
from ..schemas import Cartridge, QueryResult, SelectionResult
from ..storage.base import CartridgeStore
from ..utils.exceptions import (
    CartridgeNotFoundError,
    ClassifierError,
    ExceptionHandler,
    NoCartridgesAvailableError,
    SelectedCartridgeMissingError,
)
from .consolidation import MemoryConsolidator
from .selection import (
    SelectionErr,
    build_candidates,
    fallback_selection,
    forced_selection,
    validate_selection_payload,
)

DEFAULT_HISTORY_WINDOW = 20


class CartridgeSelector:
    """Orchestrates selection, activation, response generation and consolidation."""

    def __init__(
        self,
        store: CartridgeStore,
        classifier: CartridgeClassifier,
        responder: CartridgeResponder,
        *,
        consolidator: MemoryConsolidator | None = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
    ):
        self.store = store
        self.classifier = classifier
        self.responder = responder
        self.consolidator = consolidator or MemoryConsolidator(store)
        self.history_window = history_window

    @classmethod
    def from_settings(
        cls,
        store: CartridgeStore,
        settings: Any,
        *,
        classifier: CartridgeClassifier | None = None,
        responder: CartridgeResponder | None = None,
    ) -> "CartridgeSelector":
        """Wire a selector with OpenRouter clients unless collaborators are given."""

        from ..providers.classifier import OpenRouterClassifier
        from ..providers.responder import OpenRouterResponder

        return cls(
            store,
            classifier or OpenRouterClassifier(settings.agents),
            responder
            or OpenRouterResponder(
                settings.agents,
                max_history=settings.memory.prompt_history_messages,
            ),
            consolidator=MemoryConsolidator.from_settings(store, settings.memory),
            history_window=settings.memory.history_window,
        )

    async def process_query(
        self, query: str, forced_cartridge_id: int | None = None
    ) -> QueryResult:
        """Answer ``query`` against the best matching (or forced) cartridge.

        Raises:
            NoCartridgesAvailableError: the store is empty.
            CartridgeNotFoundError: ``forced_cartridge_id`` does not exist, or
                (as ``SelectedCartridgeMissingError``) the selected id no
                longer resolves.
            ResponderError: the response generator failed. Other exceptions
                raised by the responder propagate unchanged.
        """

        cartridges = await self.store.list_cartridges()
        if not cartridges:
            raise NoCartridgesAvailableError()

        if forced_cartridge_id is not None:
            selection = self._select_forced(cartridges, forced_cartridge_id)
        else:
            selection = await self._select_automatic(query, cartridges)

        cartridge = await self.store.get_cartridge(selection.selected_cartridge_id)
        if cartridge is None:
            raise SelectedCartridgeMissingError(selection.selected_cartridge_id)

        await self.store.set_active(cartridge.id)

        history = await self.store.list_messages(limit=self.history_window)

        logger.info("Generating response with cartridge: {}", cartridge.name)
        answer = await self.responder.respond(query, cartridge, history)

        await self._consolidate(cartridge, query, answer.content)

        return QueryResult(
            selection=selection,
            response=answer.content,
            token_count=answer.token_count,
            cost=answer.cost,
        )

    def _select_forced(
        self, cartridges: list[Cartridge], cartridge_id: int
    ) -> SelectionResult:
        forced = next((c for c in cartridges if c.id == cartridge_id), None)
        if forced is None:
            raise CartridgeNotFoundError(
                cartridge_id,
                message=f"Forced cartridge with ID {cartridge_id} not found",
            )
        logger.info("Using forced cartridge: {}", forced.name)
        return forced_selection(forced.id)

    async def _select_automatic(
        self, query: str, cartridges: list[Cartridge]
    ) -> SelectionResult:
        """Classify ``query``; never raises."""

        logger.debug("Selecting cartridge for query: {}...", query[:100])
        try:
            payload = await self.classifier.classify(query, build_candidates(cartridges))
            outcome = validate_selection_payload(payload)
            if isinstance(outcome, SelectionErr):
                raise ClassifierError(
                    f"Invalid cartridge selection result format: {outcome.reason}"
                )
        except Exception as exc:
            fallback = fallback_selection(cartridges)
            logger.warning(
                "Cartridge classification failed ({}); falling back to cartridge {}",
                exc,
                fallback.selected_cartridge_id,
            )
            return fallback

        logger.info(
            "Classifier selected cartridge {} (score {})",
            outcome.selection.selected_cartridge_id,
            outcome.selection.match_score,
        )
        return outcome.selection

    async def _consolidate(
        self, cartridge: Cartridge, query: str, response: str
    ) -> None:
        try:
            await self.consolidator.consolidate(cartridge, query, response)
        except Exception as exc:
            ExceptionHandler.log_exception(
                exc,
                logger=logger,
                message=f"Error updating cartridge memory: {exc}",
            )
