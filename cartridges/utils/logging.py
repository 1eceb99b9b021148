"""
Loguru configuration helpers
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from loguru import logger


class LoggingManager:
    """Install and track loguru sinks for the cartridge services."""

    _handler_ids: list[int] = []
    _configured = False

    @classmethod
    def setup_logging(cls, settings: Any | None = None, *, verbose: bool = False) -> None:
        """Configure loguru sinks from ``LoggingSettings``.

        Replaces any sinks installed by a previous call, including loguru's
        default stderr handler the first time around.
        """

        level = "DEBUG" if verbose else str(_value(settings, "level", "INFO"))
        fmt = _value(settings, "format", None) or (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        )

        cls.reset()
        if not cls._configured:
            logger.remove()

        cls._handler_ids.append(
            logger.add(sys.stderr, level=level, format=fmt, colorize=True)
        )

        if _value(settings, "log_to_file", False):
            log_path = Path(str(_value(settings, "log_file_path", "logs/cartridges.log")))
            log_path.parent.mkdir(parents=True, exist_ok=True)
            cls._handler_ids.append(
                logger.add(
                    str(log_path),
                    level=level,
                    format=fmt,
                    rotation=_value(settings, "log_rotation", "10 MB"),
                    retention=_value(settings, "log_retention", "30 days"),
                )
            )

        cls._configured = True
        logger.debug("Logging configured at level {}", level)

    @classmethod
    def reset(cls) -> None:
        """Remove sinks previously installed by :meth:`setup_logging`."""

        for handler_id in cls._handler_ids:
            try:
                logger.remove(handler_id)
            except ValueError:
                continue
        cls._handler_ids = []


def _value(settings: Any | None, name: str, default: Any) -> Any:
    if settings is None:
        return default
    value = getattr(settings, name, default)
    if hasattr(value, "value"):
        value = value.value
    return value


def get_logger(name: str | None = None):
    """Return the shared loguru logger bound to ``name``."""

    if name:
        return logger.bind(component=name)
    return logger
