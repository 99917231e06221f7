from __future__ import annotations

import json
from pathlib import Path

from core.config import AppConfig
from core.resources import get_catalog_dir


def test_defaults_written_on_first_load(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    config = AppConfig(path)

    assert json.loads(path.read_text(encoding="utf-8"))["loopback_port"] == 41295
    assert config.get_command_timeout_seconds() == 5.0
    assert config.get_install_timeout_seconds() == 600.0
    assert config.get_known_hosts_path() is None
    assert config.get_loopback_host() == "127.0.0.1"
    assert config.get_profile_cache_ttl_seconds() == 3600
    assert config.get_catalog_dir() == get_catalog_dir()
    assert config.get_active_profile_id() is None


def test_existing_values_are_kept_and_missing_filled(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"loopback_port": 50000, "known_hosts_path": "~/.ssh/known_hosts"}), encoding="utf-8")

    config = AppConfig(path)

    assert config.get_loopback_port() == 50000
    assert config.get_known_hosts_path() == Path("~/.ssh/known_hosts").expanduser()
    assert "command_timeout_seconds" in json.loads(path.read_text(encoding="utf-8"))


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    assert AppConfig(path).get_loopback_port() == 41295


def test_invalid_values_fall_back(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"loopback_port": 70000, "command_timeout_seconds": -1, "active_profile_id": "x"}),
        encoding="utf-8",
    )
    config = AppConfig(path)

    assert config.get_loopback_port() == 41295
    assert config.get_command_timeout_seconds() == 5.0
    assert config.get_active_profile_id() is None


def test_setters_persist(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    config = AppConfig(path)
    config.set_active_profile_id(4)
    config.set_command_timeout_seconds(12)
    config.set_loopback_port(41300)

    reloaded = AppConfig(path)
    assert reloaded.get_active_profile_id() == 4
    assert reloaded.get_command_timeout_seconds() == 12.0
    assert reloaded.get_loopback_port() == 41300
