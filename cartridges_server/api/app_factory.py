"""Flask application factory and setup helpers for the cartridge API."""

from __future__ import annotations

import asyncio
import os

from flask import Flask, jsonify
from flask_cors import CORS
from loguru import logger
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from cartridges.config import CartridgeSettings, ConfigManager
from cartridges.core import CartridgeSelector, ChatService
from cartridges.storage import CartridgeStore, create_store, seed_default_cartridges
from cartridges.utils.exceptions import (
    CartridgeError,
    CartridgeNotFoundError,
    DocumentImportError,
    ExceptionHandler,
    NoCartridgesAvailableError,
    ResponderError,
)

from .cartridge_routes import cartridge_bp
from .chat_routes import chat_bp
from .message_routes import message_bp

_ERROR_STATUS: tuple[tuple[type[CartridgeError], int], ...] = (
    (CartridgeNotFoundError, 404),
    (NoCartridgesAvailableError, 409),
    (DocumentImportError, 400),
    (ResponderError, 502),
)


def _status_for(error: CartridgeError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def _load_settings() -> CartridgeSettings:
    manager = ConfigManager.get_instance()
    manager.auto_load()
    manager.setup_logging()
    return manager.get_settings()


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(CartridgeError)
    def _handle_cartridge_error(error: CartridgeError):
        status = _status_for(error)
        ExceptionHandler.log_exception(
            error, level="WARNING" if status < 500 else "ERROR"
        )
        return (
            jsonify(
                {
                    "status": "error",
                    "message": error.message,
                    "code": error.error_code,
                }
            ),
            status,
        )

    @app.errorhandler(ValidationError)
    def _handle_validation_error(error: ValidationError):
        return (
            jsonify(
                {
                    "status": "error",
                    "message": "Invalid request data",
                    "errors": error.errors(include_url=False, include_context=False),
                }
            ),
            400,
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"status": "error", "message": error.description}), error.code
        logger.opt(exception=error).error("Unhandled API error: {}", error)
        return jsonify({"status": "error", "message": "Internal server error"}), 500


def create_app(
    *,
    settings: CartridgeSettings | None = None,
    store: CartridgeStore | None = None,
    selector: CartridgeSelector | None = None,
    seed: bool | None = None,
) -> Flask:
    """Application factory for the cartridge API.

    Collaborators may be injected; anything missing is built from
    ``settings`` (auto-loaded from files and ``CARTRIDGES_*`` variables when
    not given). Default cartridges are seeded only for stores built here,
    unless ``seed`` says otherwise.
    """

    app = Flask(__name__)

    allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    if allowed_origins != "*":
        allowed_origins = [o.strip() for o in allowed_origins.split(",") if o.strip()]
    CORS(app, resources={r"/api/*": {"origins": allowed_origins}})

    settings = settings or _load_settings()
    should_seed = seed if seed is not None else (
        store is None and settings.database.seed_defaults
    )

    if store is None:
        store = create_store(settings)
    if should_seed:
        asyncio.run(seed_default_cartridges(store))
    if selector is None:
        selector = CartridgeSelector.from_settings(store, settings)

    app.config["SETTINGS"] = settings
    app.config["STORE"] = store
    app.config["SELECTOR"] = selector
    app.config["CHAT_SERVICE"] = ChatService(store, selector)

    app.register_blueprint(chat_bp, url_prefix="/api")
    app.register_blueprint(cartridge_bp, url_prefix="/api")
    app.register_blueprint(message_bp, url_prefix="/api")
    _register_error_handlers(app)

    logger.info(
        "Cartridge API ready (store: {})", type(store).__name__
    )
    return app
