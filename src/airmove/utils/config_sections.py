"""
Typed settings sections for AirMove.

This module defines the user-tunable settings schema that the gesture
pipeline reads and the settings store persists:

- DirectionSettings: one per gesture direction (enabled, mode, preset,
  sensitivity, recorded shortcut)
- RecordedShortcut: key code + modifier mask captured by the recorder
- WakeMeConfig: the inactivity watchdog singleton
- AppSettings: the full blob written to the settings store

All sections are frozen; edits produce a new snapshot with
``dataclasses.replace`` so readers never observe a half-applied change.
Serialization goes through plain dicts so the store can pick any format.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from airmove.core.errors import SettingsError
from airmove.core.imu.orientation_sample import GestureDirection
from airmove.utils.config import Config


class ActionMode(Enum):
    PRESET = "preset"
    SHORTCUT = "shortcut"


class PresetAction(Enum):
    """Fixed system-level actions selectable without recording a shortcut."""

    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    MUTE = "mute"
    BRIGHTNESS_UP = "brightness_up"
    BRIGHTNESS_DOWN = "brightness_down"
    PLAY_PAUSE = "play_pause"
    NEXT_TRACK = "next_track"
    PREVIOUS_TRACK = "previous_track"
    QUIT_APP = "quit_app"
    DESKTOP_1 = "desktop_1"
    DESKTOP_2 = "desktop_2"
    DESKTOP_3 = "desktop_3"
    DESKTOP_4 = "desktop_4"
    DESKTOP_5 = "desktop_5"
    DESKTOP_6 = "desktop_6"
    DESKTOP_7 = "desktop_7"
    DESKTOP_8 = "desktop_8"


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise SettingsError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _read_bool(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise SettingsError(f"{key} must be true or false, got {value!r}")
    return value


def clamp_sensitivity(value: float) -> float:
    """Clamp a sensitivity to [0.0, 1.0]; non-numeric input raises SettingsError."""
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"Invalid sensitivity: {value!r}") from exc
    return min(1.0, max(0.0, value))


@dataclass(frozen=True)
class RecordedShortcut:
    """Key combination captured by the shortcut recorder."""

    key_code: int
    modifier_mask: int
    display_string: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key_code": self.key_code,
            "modifier_mask": self.modifier_mask,
            "display_string": self.display_string,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RecordedShortcut":
        _require_mapping(data, "Shortcut")
        try:
            key_code = int(data["key_code"])
            modifier_mask = int(data.get("modifier_mask", 0))
        except (KeyError, TypeError, ValueError) as exc:
            raise SettingsError(f"Invalid shortcut: {data!r}") from exc
        if not 0 <= key_code <= 0xFFFF or not 0 <= modifier_mask <= 0xFFFFFFFF:
            raise SettingsError(f"Shortcut out of range: {data!r}")
        return cls(
            key_code=key_code,
            modifier_mask=modifier_mask,
            display_string=str(data.get("display_string", f"Key {key_code}")),
        )


@dataclass(frozen=True)
class DirectionSettings:
    """Action mapping for one gesture direction."""

    is_enabled: bool = True
    mode: ActionMode = ActionMode.PRESET
    preset: PresetAction = PresetAction.VOLUME_UP
    sensitivity: float = Config.DEFAULT_SENSITIVITY
    shortcut: Optional[RecordedShortcut] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_enabled": self.is_enabled,
            "mode": self.mode.value,
            "preset": self.preset.value,
            "sensitivity": self.sensitivity,
            "shortcut": self.shortcut.to_dict() if self.shortcut else None,
        }

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], default: Optional["DirectionSettings"] = None
    ) -> "DirectionSettings":
        _require_mapping(data, "Direction settings")
        base = default or cls()
        try:
            mode = ActionMode(data.get("mode", base.mode.value))
            preset = PresetAction(data.get("preset", base.preset.value))
        except ValueError as exc:
            raise SettingsError(str(exc)) from exc
        shortcut_data = data.get("shortcut")
        return cls(
            is_enabled=_read_bool(data, "is_enabled", base.is_enabled),
            mode=mode,
            preset=preset,
            sensitivity=clamp_sensitivity(data.get("sensitivity", base.sensitivity)),
            shortcut=RecordedShortcut.from_dict(shortcut_data) if shortcut_data else None,
        )


def default_direction_settings() -> Dict[GestureDirection, DirectionSettings]:
    """Fresh per-direction defaults, as created at process start."""
    return {
        direction: DirectionSettings(preset=PresetAction(Config.DEFAULT_PRESETS[direction.value]))
        for direction in GestureDirection
    }


@dataclass(frozen=True)
class WakeMeConfig:
    """Inactivity watchdog settings."""

    is_enabled: bool = Config.WAKE_ME_ENABLED
    sensitivity: float = Config.WAKE_ME_SENSITIVITY
    timeout: float = Config.WAKE_ME_TIMEOUT  # seconds
    sound_id: str = Config.WAKE_ME_SOUND

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_enabled": self.is_enabled,
            "sensitivity": self.sensitivity,
            "timeout": self.timeout,
            "sound_id": self.sound_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WakeMeConfig":
        base = cls()
        _require_mapping(data, "Wake-me settings")
        try:
            timeout = float(data.get("timeout", base.timeout))
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"Invalid wake-me timeout: {data.get('timeout')!r}") from exc
        if not math.isfinite(timeout) or timeout <= 0:
            raise SettingsError(f"Wake-me timeout must be a positive number, got {timeout}")
        return cls(
            is_enabled=_read_bool(data, "is_enabled", base.is_enabled),
            sensitivity=clamp_sensitivity(data.get("sensitivity", base.sensitivity)),
            timeout=timeout,
            sound_id=str(data.get("sound_id", base.sound_id)),
        )


@dataclass(frozen=True)
class AppSettings:
    """Everything the settings store persists."""

    directions: Dict[GestureDirection, DirectionSettings] = field(
        default_factory=default_direction_settings
    )
    wake_me: WakeMeConfig = field(default_factory=WakeMeConfig)

    def with_direction(self, direction: GestureDirection, **changes: Any) -> "AppSettings":
        directions = dict(self.directions)
        directions[direction] = replace(directions[direction], **changes)
        return replace(self, directions=directions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directions": {
                direction.value: settings.to_dict()
                for direction, settings in self.directions.items()
            },
            "wake_me": self.wake_me.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppSettings":
        _require_mapping(data, "Settings blob")
        directions = default_direction_settings()
        stored = data.get("directions")
        for key, value in _require_mapping(stored if stored is not None else {}, "directions").items():
            try:
                direction = GestureDirection(key)
            except ValueError as exc:
                raise SettingsError(f"Unknown gesture direction: {key!r}") from exc
            directions[direction] = DirectionSettings.from_dict(value, directions[direction])
        return cls(
            directions=directions,
            wake_me=WakeMeConfig.from_dict(data["wake_me"] if data.get("wake_me") is not None else {}),
        )
