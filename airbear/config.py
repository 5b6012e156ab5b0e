"""Persistent settings and debug logging."""

from __future__ import annotations

import json
import logging
import os
from enum import IntEnum
from pathlib import Path
from typing import Any

_log = logging.getLogger(__name__)


class ConnectionType(IntEnum):
    NONE = 0
    DASH = 1
    BLE = 2
    TUNERSTUDIO = 3
    DISPLAY = 4


class LogLevel(IntEnum):
    OFF = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4


class Config:
    """Key-value settings kept in a JSON file, or in memory when no path is given."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._values: dict[str, Any] = {}
        if self.path is not None and self.path.exists():
            with self.path.open(encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, dict):
                raise ValueError(f"settings file {self.path} does not hold an object")
            self._values = data

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for ``key``, or ``default``."""
        return self._values.get(key, default)

    def put(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` and save."""
        if isinstance(value, (bool, str)):
            stored: Any = value
        elif isinstance(value, int):
            stored = int(value)
        else:
            raise TypeError(f"cannot store {type(value).__name__} setting {key!r}")
        self._values[key] = stored
        self._save()

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(self._values, fh, indent=2, sort_keys=True)
        os.replace(tmp, self.path)


def init_config(path: str | os.PathLike[str] | None = None) -> Config:
    """Open the settings, defaulting the connection type to the web dash."""
    _log.info("Initialising config")
    config = Config(path)
    if config.get("connection_type", 0) == 0:
        config.put("connection_type", ConnectionType.DASH)
    _log.info("Config initialised, connection type: %s", config.get("connection_type"))
    return config


def debug_msg(config: Config, msg: str, priority: int) -> None:
    """Print ``msg`` to the console when its priority reaches the configured level."""
    if priority < config.get("debugLevel", 0):
        return
    if config.get("debugSerial", False):
        print(msg, flush=True)
    if config.get("debugWeb", False):
        print(msg, flush=True)