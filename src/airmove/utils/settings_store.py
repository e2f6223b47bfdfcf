"""
Settings persistence for AirMove.

Two stores share the same load/save contract:
- JsonSettingsStore: settings.json under the per-user config directory
  (platformdirs), overridable with AIRMOVE_CONFIG_DIR
- InMemorySettingsStore: used by tests and dry runs

SettingsTable owns the live AppSettings snapshot. Every mutation commits a
new frozen snapshot under a lock and is persisted immediately, so a read
after a write always sees that write.

Usage:
    table = SettingsTable(JsonSettingsStore())
    table.update_direction(GestureDirection.UP, sensitivity=0.9)
    table.direction(GestureDirection.UP).sensitivity  # 0.9
"""

import json
import logging
import os
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol

import platformdirs

from airmove.core.errors import SettingsError
from airmove.core.imu.orientation_sample import GestureDirection
from airmove.utils.config import Config
from airmove.utils.config_sections import (
    AppSettings,
    DirectionSettings,
    WakeMeConfig,
    clamp_sensitivity,
)

log = logging.getLogger(__name__)


def default_config_dir() -> Path:
    override = os.environ.get(Config.CONFIG_DIR_ENV)
    if override:
        return Path(override)
    return Path(platformdirs.user_config_dir(Config.APP_NAME))


class SettingsStore(Protocol):
    def load(self) -> AppSettings: ...

    def save(self, settings: AppSettings) -> None: ...


class JsonSettingsStore:
    """Reads and writes the settings blob as JSON."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else default_config_dir() / Config.SETTINGS_FILENAME

    def load(self) -> AppSettings:
        if not self.path.exists():
            log.info("No settings at %s, using defaults", self.path)
            return AppSettings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return AppSettings.from_dict(data)
        except (OSError, json.JSONDecodeError, SettingsError) as exc:
            log.warning("Ignoring unreadable settings %s: %s", self.path, exc)
            return AppSettings()

    def save(self, settings: AppSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)


class InMemorySettingsStore:
    """Keeps the serialized blob in memory (round-trips like the JSON store)."""

    def __init__(self, initial: Optional[AppSettings] = None) -> None:
        self.blob = initial.to_dict() if initial else None
        self.save_count = 0

    def load(self) -> AppSettings:
        if self.blob is None:
            return AppSettings()
        return AppSettings.from_dict(self.blob)

    def save(self, settings: AppSettings) -> None:
        self.blob = settings.to_dict()
        self.save_count += 1


class SettingsTable:
    """Live settings snapshot with guarded, persisted updates."""

    def __init__(self, store: SettingsStore) -> None:
        self.store = store
        self._lock = threading.Lock()
        self._settings = store.load()
        self._listeners: List[Callable[[AppSettings], None]] = []

    @property
    def snapshot(self) -> AppSettings:
        with self._lock:
            return self._settings

    def direction(self, direction: GestureDirection) -> DirectionSettings:
        return self.snapshot.directions[direction]

    @property
    def wake_me(self) -> WakeMeConfig:
        return self.snapshot.wake_me

    def sensitivity(self, direction: GestureDirection) -> float:
        return self.direction(direction).sensitivity

    def add_listener(self, callback: Callable[[AppSettings], None]) -> None:
        self._listeners.append(callback)

    def update_direction(self, direction: GestureDirection, **changes: Any) -> DirectionSettings:
        if "sensitivity" in changes:
            changes["sensitivity"] = clamp_sensitivity(changes["sensitivity"])
        with self._lock:
            self._settings = self._settings.with_direction(direction, **changes)
            committed = self._settings
            self._persist(committed)
        self._notify(committed)
        return committed.directions[direction]

    def update_wake_me(self, **changes: Any) -> WakeMeConfig:
        if "sensitivity" in changes:
            changes["sensitivity"] = clamp_sensitivity(changes["sensitivity"])
        if "timeout" in changes and float(changes["timeout"]) <= 0:
            raise SettingsError(f"Wake-me timeout must be positive, got {changes['timeout']}")
        with self._lock:
            self._settings = replace(self._settings, wake_me=replace(self._settings.wake_me, **changes))
            committed = self._settings
            self._persist(committed)
        self._notify(committed)
        return committed.wake_me

    def _persist(self, settings: AppSettings) -> None:
        try:
            self.store.save(settings)
        except OSError as exc:
            log.error("Failed to persist settings: %s", exc)

    def _notify(self, settings: AppSettings) -> None:
        for callback in list(self._listeners):
            callback(settings)
