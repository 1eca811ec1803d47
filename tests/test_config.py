from __future__ import annotations

from pathlib import Path

import pytest

from subfusion.config import Settings, load_config
from subfusion.exceptions import ConfigError


def test_defaults():
    settings = Settings()
    assert settings.network.request_timeout == 10
    assert settings.network.user_agent == "clash.meta"
    assert settings.storage.backend == "memory"
    assert settings.storage.profiles_key == "subfusion:profiles"
    assert settings.storage.subscriptions_key == "subfusion:subscriptions"
    assert settings.transform.default_template == "{emoji}{region}-{protocol}-{index}"
    assert settings.logging.level == "INFO"


def test_load_config_from_yaml(tmp_path):
    config_file = tmp_path / "custom.yaml"
    config_file.write_text(
        "network:\n  request_timeout: 42\nstorage:\n  backend: sqlite\n  sqlite_path: db/kv.db\n"
    )
    settings = load_config(config_file)
    assert settings.network.request_timeout == 42
    assert settings.storage.backend == "sqlite"
    assert settings.storage.sqlite_path == Path("db/kv.db")


def test_env_overrides_yaml(tmp_path, monkeypatch):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("network:\n  request_timeout: 42\n")
    monkeypatch.setenv("SUBFUSION_NETWORK__REQUEST_TIMEOUT", "7")
    assert load_config(config_file).network.request_timeout == 7


def test_project_root_config_is_found(fs):
    fs.create_file("pyproject.toml", "")
    fs.create_file("config.yaml", "logging:\n  level: DEBUG\n")
    assert load_config().logging.level == "DEBUG"


def test_missing_file_uses_defaults(tmp_path):
    assert load_config(tmp_path / "absent.yaml").network.retry_attempts == 3


def test_unknown_section_keys_are_rejected(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("network:\n  no_such_option: 1\n")
    with pytest.raises(ConfigError):
        load_config(config_file)


def test_invalid_backend_is_rejected(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("storage:\n  backend: redis\n")
    with pytest.raises(ConfigError):
        load_config(config_file)
