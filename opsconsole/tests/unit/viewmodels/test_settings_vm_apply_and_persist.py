from __future__ import annotations

import json
from pathlib import Path

import pytest

from opsconsole.adapters.storage_local import StorageLocal
from opsconsole.viewmodels.settings_vm import (
    ConsoleSettings,
    SettingsVM,
    default_settings_payload,
)


def test_apply_dict_updates_flat_keys() -> None:
    vm = SettingsVM()
    payload = {
        "api_base_url": " https://gateway.example/api/ ",
        "tenant": "contoso.test",
        "admin_upn": "admin@contoso.test",
        "request_timeout_s": "12",
        "async_enabled_for_heavy": "yes",
        "worker_pool_size": 3,
        "completion_poll_ms": 250,
        "debug_logging": 1,
        "last_action_index": 7,
    }
    vm.apply_dict(payload)

    assert vm.api_base_url == "https://gateway.example/api"
    assert vm.config.tenant == "contoso.test"
    assert vm.config.admin_upn == "admin@contoso.test"
    assert vm.config.request_timeout_s == 12
    assert vm.async_enabled_for_heavy is True
    assert vm.worker_pool_size == 3
    assert vm.config.completion_poll_ms == 250
    assert vm.debug_logging is True
    assert vm.last_action_index == 7


def test_async_is_off_by_default(monkeypatch) -> None:
    monkeypatch.delenv("OPSCONSOLE_DEBUG", raising=False)
    monkeypatch.delenv("OPSCONSOLE_LOG_LEVEL", raising=False)

    vm = SettingsVM()

    assert vm.async_enabled_for_heavy is False
    assert vm.worker_pool_size == 2
    assert default_settings_payload()["async_enabled_for_heavy"] is False


def test_pool_size_is_clamped() -> None:
    vm = SettingsVM()

    vm.worker_pool_size = 12
    assert vm.worker_pool_size == 4
    vm.apply_dict({"worker_pool_size": 0})
    assert vm.worker_pool_size == 1


def test_apply_dict_rejects_unknown_keys() -> None:
    vm = SettingsVM()

    with pytest.raises(ValueError) as excinfo:
        vm.apply_dict({"api_base_url": "http://x", "box_urls": {}})

    assert "box_urls" in str(excinfo.value)
    assert vm.api_base_url == ""


def test_apply_dict_rejects_bad_integers() -> None:
    vm = SettingsVM()

    with pytest.raises(ValueError):
        vm.apply_dict({"request_timeout_s": "ten"})
    with pytest.raises(ValueError):
        vm.apply_dict({"last_action_index": -1})


def test_is_valid_checks_url_scheme() -> None:
    vm = SettingsVM()
    assert vm.is_valid() is True

    vm.api_base_url = "gateway.local"
    assert vm.is_valid() is False

    vm.api_base_url = "http://gateway.local"
    assert vm.is_valid() is True


def test_cmd_save_emits_payload_only_when_valid() -> None:
    saved = []
    vm = SettingsVM(config=ConsoleSettings(api_base_url="ftp://nope"), on_save=saved.append)

    with pytest.raises(ValueError):
        vm.cmd_save()

    vm.api_base_url = "https://ok"
    vm.cmd_save()
    assert saved[0]["api_base_url"] == "https://ok"


def test_storage_local_defaults_and_roundtrip(tmp_path: Path) -> None:
    storage = StorageLocal(root_dir=str(tmp_path))
    assert storage.load_user_settings() == default_settings_payload()
    settings_path = tmp_path / "user_settings.json"
    assert not settings_path.exists()

    vm = SettingsVM()
    vm.apply_dict(
        {
            "api_base_url": "https://gateway.example",
            "tenant": "contoso.test",
            "async_enabled_for_heavy": True,
            "worker_pool_size": 4,
        }
    )
    payload = vm.to_dict()

    storage.save_user_settings(payload)
    assert settings_path.exists()
    assert list(tmp_path.glob("user_settings_*.tmp")) == []

    loaded = storage.load_user_settings()
    assert loaded == payload

    with settings_path.open("r", encoding="utf-8") as fh:
        parsed = json.load(fh)
    assert parsed == payload

    restored = SettingsVM()
    restored.apply_dict(loaded)
    assert restored.config == vm.config


def test_storage_local_rejects_non_object(tmp_path: Path) -> None:
    (tmp_path / "user_settings.json").write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError):
        StorageLocal(root_dir=str(tmp_path)).load_user_settings()
