"""
Exception hierarchy for the cartridge selection pipeline.

Only a subset of these errors is allowed to reach callers of
:meth:`cartridges.core.selector.CartridgeSelector.process_query`:
``NoCartridgesAvailableError``, ``CartridgeNotFoundError`` (including the
``SelectedCartridgeMissingError`` variant) and ``ResponderError``. Classifier
and consolidation failures are absorbed inside the selector.
"""

from __future__ import annotations

from typing import Any

from loguru import logger as default_logger


class CartridgeError(Exception):
    """Base exception carrying a machine readable code and context."""

    default_code = "CARTRIDGE_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.context = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable description of the error."""

        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(CartridgeError):
    """Raised when settings cannot be loaded or are invalid."""

    default_code = "CONFIGURATION_ERROR"


class StorageError(CartridgeError):
    """Raised by store backends when persistence fails."""

    default_code = "STORAGE_ERROR"


class NoCartridgesAvailableError(CartridgeError):
    """The store holds no cartridges, so no selection can be made."""

    default_code = "NO_CARTRIDGES_AVAILABLE"

    def __init__(self, message: str = "No cartridges available", **kwargs: Any):
        super().__init__(message, **kwargs)


class CartridgeNotFoundError(CartridgeError):
    """A cartridge id did not resolve to a stored cartridge."""

    default_code = "CARTRIDGE_NOT_FOUND"

    def __init__(
        self,
        cartridge_id: Any,
        message: str | None = None,
        **kwargs: Any,
    ):
        self.cartridge_id = cartridge_id
        context = dict(kwargs.pop("context", None) or {})
        context.setdefault("cartridge_id", cartridge_id)
        super().__init__(
            message or f"Cartridge with ID {cartridge_id} not found",
            context=context,
            **kwargs,
        )


class SelectedCartridgeMissingError(CartridgeNotFoundError):
    """The id chosen by a selection path does not exist in the store."""

    default_code = "SELECTED_CARTRIDGE_MISSING"

    def __init__(self, cartridge_id: Any, **kwargs: Any):
        super().__init__(
            cartridge_id,
            message=f"Selected cartridge {cartridge_id} not found",
            **kwargs,
        )


class ClassifierError(CartridgeError):
    """Transport, parse or validation failure from the classifier."""

    default_code = "CLASSIFIER_ERROR"


class ResponderError(CartridgeError):
    """Transport failure or empty answer from the response generator."""

    default_code = "RESPONDER_ERROR"


class ConsolidationError(CartridgeError):
    """Failure while folding a turn into episodic memory."""

    default_code = "CONSOLIDATION_ERROR"


class DocumentImportError(CartridgeError):
    """An uploaded cartridge document could not be parsed."""

    default_code = "DOCUMENT_IMPORT_ERROR"


class ExceptionHandler:
    """Helpers for logging cartridge errors with structured context."""

    @staticmethod
    def log_exception(
        error: BaseException,
        *,
        logger: Any = None,
        level: str = "ERROR",
        message: str | None = None,
    ) -> None:
        """Log ``error`` binding its structured payload as loguru extras."""

        target = logger or default_logger
        if isinstance(error, CartridgeError):
            data = error.to_dict()
        else:
            data = {"error_type": type(error).__name__, "message": str(error)}

        target.bind(
            error_type=data["error_type"],
            exception_data=data,
        ).log(level, message or f"{data['error_type']}: {data['message']}")
