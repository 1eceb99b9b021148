import json

import pytest

from cartridges.config import (
    CartridgeSettings,
    ConfigManager,
    DatabaseSettings,
    StoreBackend,
)
from cartridges.utils.exceptions import ConfigurationError


def test_defaults():
    settings = CartridgeSettings()

    assert settings.database.backend is StoreBackend.SQLALCHEMY
    assert settings.database.connection_string == "sqlite:///cartridges.db"
    assert settings.agents.classifier_model == "openai/gpt-4.1-nano"
    assert settings.agents.responder_model == "openai/gpt-4o-mini"
    assert settings.memory.max_conversations == 50
    assert settings.memory.history_window == 20


def test_backend_aliases_normalise():
    assert DatabaseSettings(backend="In-Memory").backend is StoreBackend.MEMORY
    assert DatabaseSettings(backend="db").backend is StoreBackend.SQLALCHEMY


@pytest.mark.parametrize("url", ["", "cartridges.db", "redis://localhost/0"])
def test_connection_string_is_validated(url):
    with pytest.raises(ValueError):
        DatabaseSettings(connection_string=url)


def test_env_prefix_and_aliases(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-env")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///env.db")
    monkeypatch.setenv("CARTRIDGES_MEMORY__MAX_CONVERSATIONS", "12")
    monkeypatch.setenv("CARTRIDGES_DATABASE__BACKEND", "memory")

    settings, used = CartridgeSettings.from_env_with_metadata()

    assert settings.agents.openrouter_api_key == "sk-env"
    assert settings.database.connection_string == "sqlite:///env.db"
    assert settings.database.backend is StoreBackend.MEMORY
    assert settings.memory.max_conversations == 12
    assert "OPENROUTER_API_KEY" in used


def test_from_file_json_and_yaml(tmp_path):
    json_path = tmp_path / "cartridges.json"
    json_path.write_text(json.dumps({"memory": {"history_window": 4}}))
    yaml_path = tmp_path / "cartridges.yaml"
    yaml_path.write_text("agents:\n  responder_model: test/model\n")

    assert CartridgeSettings.from_file(json_path).memory.history_window == 4
    assert CartridgeSettings.from_file(yaml_path).agents.responder_model == "test/model"
    with pytest.raises(FileNotFoundError):
        CartridgeSettings.from_file(tmp_path / "missing.json")


def test_export_masks_api_key():
    settings = CartridgeSettings(agents={"openrouter_api_key": "sk-secret"})

    assert settings.export()["agents"]["openrouter_api_key"] == "***"
    assert (
        settings.export(include_sensitive=True)["agents"]["openrouter_api_key"]
        == "sk-secret"
    )


def test_auto_load_merges_file_and_environment(tmp_path, monkeypatch):
    (tmp_path / "cartridges.json").write_text(
        json.dumps({"memory": {"history_window": 6}, "debug": True})
    )
    monkeypatch.setenv("CARTRIDGES_MEMORY__TOPIC_WORDS", "3")

    manager = ConfigManager.get_instance()
    manager.auto_load()
    settings = manager.get_settings()

    assert settings.debug is True
    assert settings.memory.history_window == 6
    assert settings.memory.topic_words == 3
    info = manager.get_config_info()
    assert "environment" in info["sources"]
    assert info["env_overrides"] == ["CARTRIDGES_MEMORY__TOPIC_WORDS"]


def test_config_manager_is_singleton():
    assert ConfigManager() is ConfigManager.get_instance()


def test_load_from_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        ConfigManager.get_instance().load_from_file(tmp_path / "nope.yaml")


def test_load_from_env_records_overrides(monkeypatch):
    monkeypatch.setenv("CARTRIDGES_MEMORY__HISTORY_WINDOW", "8")

    manager = ConfigManager.get_instance()
    manager.load_from_env()

    assert manager.get_settings().memory.history_window == 8
    info = manager.get_config_info()
    assert info["sources"] == ["defaults", "environment"]
    assert info["env_overrides"] == ["CARTRIDGES_MEMORY__HISTORY_WINDOW"]


def test_set_settings_replaces_active_settings():
    manager = ConfigManager.get_instance()
    replacement = CartridgeSettings(memory={"history_window": 3})

    manager.set_settings(replacement, source="command line")

    assert manager.get_settings() is replacement
    assert manager.get_config_info()["sources"] == ["defaults", "command line"]
