from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.paths import get_config_path
from core.resources import get_catalog_dir


class AppConfig:
    _DEFAULTS: dict[str, Any] = {
        "command_timeout_seconds": 5.0,
        "install_timeout_seconds": 600.0,
        "known_hosts_path": None,
        "loopback_host": "127.0.0.1",
        "loopback_port": 41295,
        "profile_cache_ttl_seconds": 3600,
        "catalog_dir": None,
        "active_profile_id": None,
    }

    def __init__(self, config_path: Path | None = None) -> None:
        self._config_path = config_path or get_config_path()
        self._data: dict[str, Any] = {}
        self._load_or_create()

    def _load_or_create(self) -> None:
        if not self._config_path.exists():
            self._data = dict(self._DEFAULTS)
            self.save()
            return

        try:
            content = self._config_path.read_text(encoding="utf-8")
            loaded = json.loads(content)
            if not isinstance(loaded, dict):
                loaded = {}
        except (json.JSONDecodeError, OSError):
            loaded = {}

        self._data = dict(self._DEFAULTS)
        self._data.update(loaded)
        self.save()

    def save(self) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(
            json.dumps(self._data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.save()

    def get_command_timeout_seconds(self) -> float:
        return self._positive_float("command_timeout_seconds")

    def set_command_timeout_seconds(self, seconds: float) -> None:
        self._data["command_timeout_seconds"] = float(seconds)
        self.save()

    def get_install_timeout_seconds(self) -> float:
        return self._positive_float("install_timeout_seconds")

    def get_known_hosts_path(self) -> Path | None:
        value = self._data.get("known_hosts_path")
        if value is None or str(value).strip() == "":
            return None
        return Path(str(value)).expanduser()

    def set_known_hosts_path(self, path: str | None) -> None:
        self._data["known_hosts_path"] = None if path is None else str(path)
        self.save()

    def get_loopback_host(self) -> str:
        return str(self._data.get("loopback_host") or self._DEFAULTS["loopback_host"])

    def get_loopback_port(self) -> int:
        value = self._data.get("loopback_port", self._DEFAULTS["loopback_port"])
        try:
            port = int(value)
        except (TypeError, ValueError):
            return int(self._DEFAULTS["loopback_port"])
        if not 0 < port < 65536:
            return int(self._DEFAULTS["loopback_port"])
        return port

    def set_loopback_port(self, port: int) -> None:
        self._data["loopback_port"] = int(port)
        self.save()

    def get_profile_cache_ttl_seconds(self) -> float:
        return self._positive_float("profile_cache_ttl_seconds")

    def get_catalog_dir(self) -> Path:
        value = self._data.get("catalog_dir")
        if value is None or str(value).strip() == "":
            return get_catalog_dir()
        return Path(str(value)).expanduser()

    def get_active_profile_id(self) -> int | None:
        value = self._data.get("active_profile_id", self._DEFAULTS["active_profile_id"])
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def set_active_profile_id(self, profile_id: int | None) -> None:
        self._data["active_profile_id"] = profile_id if profile_id is None else int(profile_id)
        self.save()

    def _positive_float(self, key: str) -> float:
        default = float(self._DEFAULTS[key])
        try:
            value = float(self._data.get(key, default))
        except (TypeError, ValueError):
            return default
        return value if value > 0 else default
