import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from cartridges.config import ConfigManager
from cartridges.storage import InMemoryCartridgeStore, SQLAlchemyCartridgeStore

_ENV_KEYS = (
    "OPENROUTER_API_KEY",
    "DATABASE_URL",
    "CARTRIDGES_DB_URL",
    "CARTRIDGES_LOG_LEVEL",
    "CARTRIDGES_CONFIG_PATH",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep configuration from leaking between tests or from the host."""

    for key in list(os.environ):
        if key.startswith("CARTRIDGES_") or key in _ENV_KEYS:
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    ConfigManager.reset_instance()
    yield
    ConfigManager.reset_instance()


@pytest.fixture
def store() -> InMemoryCartridgeStore:
    return InMemoryCartridgeStore()


@pytest.fixture(params=["memory", "sqlalchemy"])
def any_store(request):
    """Each store variant in turn; the SQLAlchemy one on in-memory SQLite."""

    if request.param == "memory":
        yield InMemoryCartridgeStore()
        return
    store = SQLAlchemyCartridgeStore("sqlite:///:memory:")
    yield store
    store.close()
