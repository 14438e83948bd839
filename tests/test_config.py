"""
Tests for services.json loading and validation
"""

import json
import os

import pytest

from llm_relay.core.config import ConfigManager, parse_services
from llm_relay.core.errors import ConfigurationError

SERVICES = {
    "summary": {
        "default_model": "gpt-4o-mini",
        "retry": 2,
        "retry_delay": 250,
        "other_models": {"claude": "claude-3-haiku-20240307"},
        "temperature": 0.3,
    }
}


def write_services(directory, data):
    path = directory / "services.json"
    path.write_text(json.dumps(data))
    return path


async def test_load_services(tmp_path):
    write_services(tmp_path, SERVICES)
    manager = ConfigManager(str(tmp_path))

    assert await manager.load_configs() is True

    summary = manager.get_service("summary")
    assert summary.retry == 2
    assert summary.retry_delay == 250
    assert summary.other_models == {"claude": "claude-3-haiku-20240307"}
    assert summary.default_parameters().temperature == 0.3


async def test_config_dir_from_environment(tmp_path, monkeypatch):
    write_services(tmp_path, SERVICES)
    monkeypatch.setenv("LLM_RELAY_CONFIG_DIR", str(tmp_path))

    manager = ConfigManager()
    await manager.load_configs()
    assert list(manager.services) == ["summary"]


async def test_reload_only_when_file_changes(tmp_path):
    path = write_services(tmp_path, SERVICES)
    manager = ConfigManager(str(tmp_path))
    await manager.load_configs()

    assert await manager.refresh_if_changed() is False

    updated = dict(SERVICES, chat={"default_model": "gemini-1.5-pro"})
    path.write_text(json.dumps(updated))
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 5))

    assert await manager.refresh_if_changed() is True
    assert sorted(manager.services) == ["chat", "summary"]


async def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        await ConfigManager(str(tmp_path)).load_configs()


async def test_invalid_json(tmp_path):
    (tmp_path / "services.json").write_text("{not json")
    with pytest.raises(ConfigurationError):
        await ConfigManager(str(tmp_path)).load_configs()


async def test_invalid_service_definition(tmp_path):
    write_services(tmp_path, {"summary": {"default_model": "gpt-4o", "retry_delay": -1}})
    with pytest.raises(ConfigurationError, match="summary"):
        await ConfigManager(str(tmp_path)).load_configs()


def test_unknown_service_lookup():
    manager = ConfigManager("unused")
    with pytest.raises(ConfigurationError):
        manager.get_service("missing")


def test_defaults_and_key_fallback():
    services = parse_services({"chat": {"default_model": "claude-3-opus", "api_key": "shared",
                                        "gemini_key": "g"}})
    chat = services["chat"]
    assert chat.retry == 3
    assert chat.retry_delay == 1000
    assert chat.key_for("claude") == "shared"
    assert chat.key_for("gemini") == "g"
