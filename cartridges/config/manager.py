"""
Configuration manager for the cartridge services
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from loguru import logger

from ..utils.exceptions import ConfigurationError
from .settings import CartridgeSettings


class ConfigManager:
    """Central configuration manager"""

    _instance: ConfigManager | None = None
    _settings: CartridgeSettings | None = None

    def __new__(cls) -> ConfigManager:
        """Singleton pattern for configuration manager"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize configuration manager"""
        if not hasattr(self, "_initialized"):
            self._initialized = True
            self._config_sources: list[str] = []
            self._env_overrides: list[str] = []
            self._load_default_config()

    def _load_default_config(self) -> None:
        """Load default configuration"""
        try:
            self._settings = CartridgeSettings()
            self._config_sources = ["defaults"]
            self._env_overrides = []
            logger.debug("Loaded default configuration")
        except Exception as e:
            raise ConfigurationError(f"Failed to load default configuration: {e}")

    def load_from_env(self) -> None:
        """Load configuration from environment variables"""
        try:
            settings, used_keys = CartridgeSettings.from_env_with_metadata()
        except Exception as e:
            logger.warning(f"Failed to load configuration from environment: {e}")
            raise ConfigurationError(f"Environment configuration error: {e}")

        self._settings = settings
        self._env_overrides = sorted(used_keys)
        if used_keys and "environment" not in self._config_sources:
            self._config_sources.append("environment")
        logger.info(
            "Configuration loaded from environment variables: {}",
            ", ".join(self._env_overrides) or "<none>",
        )

    def load_from_file(self, config_path: str | Path) -> None:
        """Load configuration from file"""
        config_path = Path(config_path)
        try:
            self._settings = CartridgeSettings.from_file(config_path)
        except FileNotFoundError:
            logger.warning(f"Configuration file not found: {config_path}")
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        except Exception as e:
            logger.error(f"Failed to load configuration from file {config_path}: {e}")
            raise ConfigurationError(f"File configuration error: {e}")

        self._config_sources.append(str(config_path))
        logger.info(f"Configuration loaded from file: {config_path}")

    def auto_load(self) -> None:
        """Load the first config file found, then overlay environment variables"""
        self._env_overrides = []
        config_locations = [
            os.getenv("CARTRIDGES_CONFIG_PATH"),
            "cartridges.json",
            "cartridges.yaml",
            "cartridges.yml",
            "config/cartridges.json",
            "config/cartridges.yaml",
            Path.home() / ".cartridges" / "config.json",
            Path.home() / ".cartridges" / "config.yaml",
        ]

        for config_path in config_locations:
            if config_path and Path(config_path).exists():
                try:
                    self.load_from_file(config_path)
                    break
                except ConfigurationError:
                    continue

        try:
            env_data, used_keys = CartridgeSettings._collect_env_data()
        except Exception as e:
            logger.warning(f"Failed to parse environment configuration: {e}")
            return

        if not used_keys:
            return

        base = self._settings.model_dump() if self._settings else {}
        try:
            self._settings = CartridgeSettings(**self._deep_merge_dicts(base, env_data))
        except Exception as e:
            raise ConfigurationError(f"Environment configuration error: {e}")

        if "environment" not in self._config_sources:
            self._config_sources.append("environment")
        self._env_overrides = sorted(used_keys)
        logger.info(
            "Environment variables merged into configuration: {}",
            ", ".join(self._env_overrides),
        )

    def _deep_merge_dicts(
        self, base: dict[str, Any], override: dict[str, Any]
    ) -> dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge_dicts(result[key], value)
            else:
                result[key] = value

        return result

    def get_settings(self) -> CartridgeSettings:
        """Get current settings"""
        if self._settings is None:
            raise ConfigurationError("Configuration not loaded")
        return self._settings

    def set_settings(
        self, settings: CartridgeSettings, *, source: str = "explicit"
    ) -> None:
        """Replace the active settings object, recording ``source``."""

        self._settings = settings
        if source not in self._config_sources:
            self._config_sources.append(source)

    def get_config_info(self) -> dict[str, Any]:
        """Describe where the active configuration came from."""

        return {
            "sources": list(self._config_sources),
            "env_overrides": list(self._env_overrides),
            "settings": self.get_settings().export(),
        }

    def reset_to_defaults(self) -> None:
        """Reset configuration to defaults"""
        self._load_default_config()
        logger.info("Configuration reset to defaults")

    def setup_logging(self) -> None:
        """Setup logging based on current configuration"""
        settings = self.get_settings()

        try:
            from ..utils.logging import LoggingManager

            LoggingManager.setup_logging(settings.logging, verbose=settings.debug)
        except Exception as e:
            logger.error(f"Failed to setup logging: {e}")
            raise ConfigurationError(f"Logging setup error: {e}")

    @classmethod
    def get_instance(cls) -> ConfigManager:
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton so the next access reloads defaults."""

        cls._instance = None
        cls._settings = None
