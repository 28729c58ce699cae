"""
Ideapad Controls settings

Key/value settings with defaults, a JSON file under ~/.config and change
subscription. Keys follow the hyphenated schema names
(`use-pkexec`, `camera-power-option`, ...).
"""

from __future__ import annotations

import json
import os
import logging
import itertools
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from ideapad_controls.core.options import KNOWN_OPTIONS
from ideapad_controls.core.types import Option, ToggleConfig

log = logging.getLogger(__name__)

DEFAULT_SYSFS_PATH = "/sys/bus/platform/drivers/ideapad_acpi/VPC2004:00/"

DEFAULTS: Dict[str, Any] = {
    "sysfs-path": DEFAULT_SYSFS_PATH,
    "use-pkexec": True,
    "send-success-notifications": True,
    "tray-location": True,          # True: switches at top level, False: "Controls" submenu
    "settings-button": True,
    "serialize-writes": False,
}
DEFAULTS.update({Option(option_id).config_key: True for option_id in KNOWN_OPTIONS})

Callback = Callable[[str, Any], None]


def default_settings_path() -> Path:
    return Path.home() / ".config" / "ideapad-controls" / "settings.json"


class SettingsStore:
    """
    Thread-safe settings with change notification.

    connect(key, cb) subscribes to one key, connect(None, cb) to all keys.
    Callbacks get (key, value) and run outside the lock, on the thread that
    made the change.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else default_settings_path()
        self._values: Dict[str, Any] = dict(DEFAULTS)
        self._lock = Lock()
        self._handlers: Dict[int, Tuple[Optional[str], Callback]] = {}
        self._ids = itertools.count(1)
        self._values.update(self._load() or {})

    # --------------------------------------------------------
    # access
    # --------------------------------------------------------

    def get(self, key: str) -> Any:
        with self._lock:
            return self._values[key]

    def get_string(self, key: str) -> str:
        return str(self.get(key))

    def get_boolean(self, key: str) -> bool:
        return bool(self.get(key))

    def items(self) -> Iterator[Tuple[str, Any]]:
        with self._lock:
            return iter(sorted(self._values.items()))

    def snapshot(self) -> ToggleConfig:
        with self._lock:
            return ToggleConfig(
                sysfs_path=self._values["sysfs-path"],
                use_pkexec=self._values["use-pkexec"],
                send_success_notifications=self._values["send-success-notifications"],
            )

    def set(self, key: str, value: Any) -> None:
        if key not in DEFAULTS:
            raise KeyError(key)
        if type(value) is not type(DEFAULTS[key]):
            raise TypeError(f"{key} expects {type(DEFAULTS[key]).__name__}, got {type(value).__name__}")

        with self._lock:
            changed = self._values[key] != value
            self._values[key] = value
        if changed:
            self.save()
            self._emit(key, value)

    # --------------------------------------------------------
    # subscription
    # --------------------------------------------------------

    def connect(self, key: Optional[str], callback: Callback) -> int:
        handler_id = next(self._ids)
        with self._lock:
            self._handlers[handler_id] = (key, callback)
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        with self._lock:
            self._handlers.pop(handler_id, None)

    def _emit(self, key: str, value: Any) -> None:
        with self._lock:
            targets = [cb for k, cb in self._handlers.values() if k is None or k == key]
        for cb in targets:
            cb(key, value)

    # --------------------------------------------------------
    # persistence
    # --------------------------------------------------------

    def reload(self) -> None:
        """
        Re-read the settings file and notify keys whose value changed.

        A file that cannot be parsed leaves the current values alone.
        """
        loaded = self._load()
        if loaded is None:
            return
        fresh = dict(DEFAULTS)
        fresh.update(loaded)
        with self._lock:
            changed = [(k, v) for k, v in fresh.items() if self._values.get(k) != v]
            self._values = fresh
        for key, value in changed:
            log.debug("Setting %s changed to %r", key, value)
            self._emit(key, value)

    def _load(self) -> Optional[Dict[str, Any]]:
        # None: file present but unusable
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.error("Could not load settings from %s: %s", self.path, e)
            return None
        if not isinstance(raw, dict):
            log.error("Ignoring settings file %s: expected an object", self.path)
            return None

        values = {}
        for key, value in raw.items():
            if key not in DEFAULTS:
                log.warning("Ignoring unknown setting %s", key)
            elif type(value) is not type(DEFAULTS[key]):
                log.warning("Ignoring setting %s: wrong type %s", key, type(value).__name__)
            else:
                values[key] = value
        return values

    def save(self) -> None:
        with self._lock:
            data = dict(self._values)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            log.error("Could not save settings to %s: %s", self.path, e)


def parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in ("1", "true", "on", "yes"):
        return True
    if lowered in ("0", "false", "off", "no"):
        return False
    raise ValueError(f"expected a boolean, got {text!r}")


def parse_value(key: str, text: str) -> Any:
    """Convert command-line text into the type `key` stores."""
    if key not in DEFAULTS:
        raise KeyError(key)
    if isinstance(DEFAULTS[key], bool):
        return parse_bool(text)
    return text
