from pathlib import Path

import pytest

from config import DEFAULT_APP_IDENTIFIER, DEFAULT_PORT, MEMORIES_DIR, load_settings
import store as store_module

_ENV_KEYS = [
    "WIKIMEM_DATA_DIR",
    "WIKIMEM_APP_IDENTIFIER",
    "WIKIMEM_ID_STRATEGY",
    "WIKIMEM_HOST",
    "WIKIMEM_PORT",
    "WIKIMEM_LOG_LEVEL",
    "WIKIMEM_EVENT_QUEUE_SIZE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    store_module.close_memory_store()
    yield
    store_module.close_memory_store()


def test_defaults() -> None:
    settings = load_settings()
    assert settings.data_dir is None
    assert settings.app_identifier == DEFAULT_APP_IDENTIFIER
    assert settings.id_strategy == "slug"
    assert settings.port == DEFAULT_PORT
    assert settings.mcp_url == "http://127.0.0.1:3926/mcp"

    memories_dir = settings.memories_dir()
    assert memories_dir.name == MEMORIES_DIR
    assert memories_dir.parent.name == DEFAULT_APP_IDENTIFIER


def test_env_override(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WIKIMEM_DATA_DIR", str(tmp_path / "custom"))
    monkeypatch.setenv("WIKIMEM_ID_STRATEGY", "Timestamp")
    monkeypatch.setenv("WIKIMEM_PORT", "4000")
    monkeypatch.setenv("WIKIMEM_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.memories_dir() == tmp_path / "custom"
    assert settings.id_strategy == "timestamp"
    assert settings.port == 4000
    assert settings.log_level == "DEBUG"


def test_invalid_values_fall_back(monkeypatch) -> None:
    monkeypatch.setenv("WIKIMEM_ID_STRATEGY", "uuid")
    monkeypatch.setenv("WIKIMEM_PORT", "not-a-port")
    monkeypatch.setenv("WIKIMEM_EVENT_QUEUE_SIZE", "0")

    settings = load_settings()

    assert settings.id_strategy == "slug"
    assert settings.port == DEFAULT_PORT
    assert settings.event_queue_size == 1


def test_shared_store_handle(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WIKIMEM_DATA_DIR", str(tmp_path / "shared"))
    monkeypatch.setenv("WIKIMEM_ID_STRATEGY", "timestamp")

    first = store_module.get_memory_store()
    second = store_module.get_memory_store()

    assert first is second
    assert first.base_dir == tmp_path / "shared"
    assert first.base_dir.is_dir()
    assert first.id_strategy == "timestamp"


def test_unusable_data_dir_is_configuration_error(monkeypatch, tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    monkeypatch.setenv("WIKIMEM_DATA_DIR", str(blocker / "memories"))

    with pytest.raises(store_module.ConfigurationError):
        store_module.get_memory_store()
