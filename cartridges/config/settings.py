"""
Pydantic-based configuration settings for the cartridge services
"""

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, Enum):
    """Supported store variants"""

    MEMORY = "memory"
    SQLALCHEMY = "sqlalchemy"


SUPPORTED_DATABASE_SCHEME_PREFIXES = (
    "sqlite",
    "postgres",
    "postgresql",
    "mysql",
)

ENV_PREFIX = "CARTRIDGES_"
ENV_NESTED_DELIMITER = "__"
ENV_ALIASES = {
    "OPENROUTER_API_KEY": "agents__openrouter_api_key",
    "DATABASE_URL": "database__connection_string",
    "CARTRIDGES_DB_URL": "database__connection_string",
    "CARTRIDGES_LOG_LEVEL": "logging__level",
}


class DatabaseSettings(BaseModel):
    """Store configuration settings"""

    backend: StoreBackend = Field(
        default=StoreBackend.SQLALCHEMY, description="Store variant selected at startup"
    )
    connection_string: str = Field(
        default="sqlite:///cartridges.db", description="Database connection string"
    )
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")
    seed_defaults: bool = Field(
        default=True, description="Create the default cartridges when the store is empty"
    )

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"inmemory", "in-memory", "memory"}:
                return StoreBackend.MEMORY
            if lowered in {"sql", "sqlalchemy", "database", "db"}:
                return StoreBackend.SQLALCHEMY
        return value

    @field_validator("connection_string")
    @classmethod
    def validate_connection_string(cls, v: str) -> str:
        """Validate database connection string"""
        if not v:
            raise ValueError("Connection string cannot be empty")

        scheme = urlsplit(v).scheme.lower()
        if not scheme:
            raise ValueError(
                "Connection string must include a URI scheme (e.g. sqlite:///cartridges.db)"
            )

        base_scheme = scheme.split("+", 1)[0]
        if not any(
            base_scheme.startswith(prefix)
            for prefix in SUPPORTED_DATABASE_SCHEME_PREFIXES
        ):
            raise ValueError(f"Unsupported database type in connection string: {v}")

        return v


class AgentSettings(BaseModel):
    """LLM provider settings for the classifier and responder"""

    openrouter_api_key: str | None = Field(
        default=None, description="OpenRouter API key used by both clients"
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI-compatible chat completions endpoint",
    )
    http_referer: str = Field(
        default="http://localhost:5000",
        description="Value forwarded in the HTTP-Referer header",
    )
    classifier_model: str = Field(
        default="openai/gpt-4.1-nano", description="Model used to pick a cartridge"
    )
    responder_model: str = Field(
        default="openai/gpt-4o-mini", description="Model used to answer queries"
    )
    classifier_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    responder_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(
        default=2000, ge=100, le=8000, description="Maximum tokens per answer"
    )
    timeout_seconds: float = Field(
        default=60.0, gt=0, le=600, description="HTTP timeout applied by the clients"
    )
    cost_per_token: float = Field(
        default=0.000000375,
        ge=0.0,
        description="Blended USD price per token used for cost accounting",
    )

    @field_validator("openrouter_api_key")
    @classmethod
    def _validate_api_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        key = value.strip()
        if not key:
            raise ValueError("API key must be a non-empty string")
        return key


class MemorySettings(BaseModel):
    """Selection and consolidation tuning"""

    max_conversations: int = Field(
        default=50, ge=1, description="Episodic memory cap per cartridge (FIFO)"
    )
    history_window: int = Field(
        default=20, ge=0, description="Stored messages fetched for each query"
    )
    prompt_history_messages: int = Field(
        default=10, ge=0, description="History messages forwarded to the responder"
    )
    size_increment_mb: float = Field(
        default=0.001,
        ge=0.0,
        description="Approximate size growth recorded per consolidated turn",
    )
    max_key_concepts: int = Field(default=10, ge=1)
    topic_words: int = Field(default=5, ge=1)
    outcome_chars: int = Field(default=200, ge=1)


class LoggingSettings(BaseModel):
    """Logging configuration settings"""

    level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log message format",
    )
    log_to_file: bool = Field(default=False, description="Enable logging to file")
    log_file_path: str = Field(
        default="logs/cartridges.log", description="Log file path"
    )
    log_rotation: str = Field(default="10 MB", description="Log rotation size")
    log_retention: str = Field(default="30 days", description="Log retention period")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class CartridgeSettings(BaseModel):
    """Main configuration"""

    version: str = Field(default="1.0.0", description="Configuration version")
    debug: bool = Field(default=False, description="Enable debug mode")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    agents: AgentSettings = Field(default_factory=AgentSettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def _collect_env_data(cls) -> tuple[dict[str, Any], set[str]]:
        """Return environment driven configuration data and the originating keys."""

        env_data: dict[str, Any] = {}
        used_keys: set[str] = set()
        aliases = {alias.lower(): path for alias, path in ENV_ALIASES.items()}
        prefix = ENV_PREFIX.lower()

        def _assign(keys: list[str], value: Any) -> None:
            current = env_data
            for part in keys[:-1]:
                if part not in current or not isinstance(current[part], dict):
                    current[part] = {}
                current = current[part]
            current[keys[-1]] = value

        for env_key, env_value in os.environ.items():
            lowered = env_key.lower()
            if lowered in aliases:
                path = aliases[lowered]
            elif lowered.startswith(prefix):
                path = lowered[len(prefix) :]
            else:
                continue

            parts = [part for part in path.split(ENV_NESTED_DELIMITER) if part]
            if not parts:
                continue
            _assign(parts, env_value)
            used_keys.add(env_key)

        return env_data, used_keys

    @classmethod
    def from_env_with_metadata(cls) -> tuple["CartridgeSettings", set[str]]:
        """Return settings from the environment along with the keys that were used."""

        env_data, used_keys = cls._collect_env_data()
        return cls(**env_data), used_keys

    @classmethod
    def from_file(cls, config_path: str | Path) -> "CartridgeSettings":
        """Load settings from JSON/YAML file"""

        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            if config_path.suffix.lower() == ".json":
                data = json.load(f)
            elif config_path.suffix.lower() in [".yml", ".yaml"]:
                import yaml

                data = yaml.safe_load(f) or {}
            else:
                raise ValueError(
                    f"Unsupported configuration file format: {config_path.suffix}"
                )

        return cls(**data)

    def export(self, *, include_sensitive: bool = False) -> dict[str, Any]:
        """Return a serialisable representation of the settings."""

        data = self.model_dump(mode="json")
        if not include_sensitive and data["agents"].get("openrouter_api_key"):
            data["agents"]["openrouter_api_key"] = "***"
        return data
