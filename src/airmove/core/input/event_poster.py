"""
Synthetic input events at the OS level.

Backends:
- QuartzEventPoster (macOS): CGEvent keyboard events with explicit flags, and
  NSEvent system-defined events for media/brightness keys (pyobjc)
- PynputEventPoster (Linux/Windows): pynput keyboard controller; modifiers are
  pressed around the key, media keys map to pynput's media keys
- DryRunEventPoster: logs and records every call, posts nothing

Every backend raises EventSynthesisError when it cannot build an event.
Callers decide what to do with it; the dispatcher logs and moves on.

Usage:
    poster = create_event_poster()
    poster.post_key(12, Modifier.COMMAND, is_key_down=True)
    poster.post_key(12, Modifier.COMMAND, is_key_down=False)
"""

import logging
from typing import List, Optional, Protocol, Tuple

from airmove.core.errors import EventSynthesisError
from airmove.core.input.key_codes import (
    KEY_NAMES,
    Modifier,
    SystemControl,
    canonical_mask,
    modifiers_in_order,
)
from airmove.utils.config import PLATFORM

log = logging.getLogger(__name__)

try:
    from pynput import keyboard
except ImportError as exc:
    keyboard = None
    log.warning("pynput unavailable (%s); keyboard backend disabled", exc)


class EventPoster(Protocol):
    def post_key(self, key_code: int, modifier_mask: int, is_key_down: bool) -> None: ...

    def post_system_control(self, code: int, is_key_down: bool) -> None: ...


# NSEvent system-defined subtype for auxiliary control buttons
_NX_SUBTYPE_AUX_CONTROL_BUTTONS = 8
_NS_SYSTEM_DEFINED = 14


class QuartzEventPoster:
    """Posts CGEvents to the HID event tap (macOS)."""

    def __init__(self) -> None:
        import AppKit
        import Quartz

        self.AppKit = AppKit
        self.Quartz = Quartz

    def post_key(self, key_code: int, modifier_mask: int, is_key_down: bool) -> None:
        event = self.Quartz.CGEventCreateKeyboardEvent(None, key_code, is_key_down)
        if event is None:
            raise EventSynthesisError(f"CGEventCreateKeyboardEvent failed for key {key_code}")
        self.Quartz.CGEventSetFlags(event, int(canonical_mask(modifier_mask)))
        self.Quartz.CGEventPost(self.Quartz.kCGHIDEventTap, event)

    def post_system_control(self, code: int, is_key_down: bool) -> None:
        key_state = 0xA if is_key_down else 0xB
        event = self.AppKit.NSEvent.otherEventWithType_location_modifierFlags_timestamp_windowNumber_context_subtype_data1_data2_(
            _NS_SYSTEM_DEFINED,
            (0, 0),
            key_state << 8,
            0,
            0,
            0,
            _NX_SUBTYPE_AUX_CONTROL_BUTTONS,
            (code << 16) | (key_state << 8),
            -1,
        )
        if event is None:
            raise EventSynthesisError(f"NSEvent system-defined event failed for code {code}")
        self.Quartz.CGEventPost(self.Quartz.kCGHIDEventTap, event.CGEvent())


# KEY_NAMES labels that pynput exposes as named keys
PYNPUT_SPECIAL_KEYS = {
    "Return": "enter", "Tab": "tab", "Space": "space", "Delete": "backspace",
    "Escape": "esc", "Left": "left", "Right": "right", "Up": "up", "Down": "down",
    "Home": "home", "End": "end", "PageUp": "page_up", "PageDown": "page_down",
    "ForwardDelete": "delete",
    **{f"F{index}": f"f{index}" for index in range(1, 13)},
}

PYNPUT_MODIFIER_KEYS = {
    Modifier.CONTROL: "ctrl",
    Modifier.OPTION: "alt",
    Modifier.SHIFT: "shift",
    Modifier.COMMAND: "cmd",
}

PYNPUT_MEDIA_KEYS = {
    SystemControl.SOUND_UP: "media_volume_up",
    SystemControl.SOUND_DOWN: "media_volume_down",
    SystemControl.MUTE: "media_volume_mute",
    SystemControl.PLAY: "media_play_pause",
    SystemControl.NEXT: "media_next",
    SystemControl.PREVIOUS: "media_previous",
}


class PynputEventPoster:
    """Posts key events through pynput (non-macOS hosts)."""

    def __init__(self, controller=None) -> None:
        if controller is None:
            if keyboard is None:
                raise EventSynthesisError("pynput keyboard backend is not available")
            controller = keyboard.Controller()
        self.controller = controller

    def _key(self, key_code: int):
        name = KEY_NAMES.get(key_code)
        if name in PYNPUT_SPECIAL_KEYS:
            return getattr(keyboard.Key, PYNPUT_SPECIAL_KEYS[name])
        if name is not None and len(name) == 1:
            return keyboard.KeyCode.from_char(name.lower())
        return keyboard.KeyCode.from_vk(key_code)

    def post_key(self, key_code: int, modifier_mask: int, is_key_down: bool) -> None:
        modifiers = [getattr(keyboard.Key, PYNPUT_MODIFIER_KEYS[m]) for m in modifiers_in_order(modifier_mask)]
        key = self._key(key_code)
        try:
            if is_key_down:
                for modifier in modifiers:
                    self.controller.press(modifier)
                self.controller.press(key)
            else:
                self.controller.release(key)
                for modifier in reversed(modifiers):
                    self.controller.release(modifier)
        except (self.controller.InvalidKeyException, ValueError) as exc:
            raise EventSynthesisError(f"pynput could not post key {key_code}: {exc}") from exc

    def post_system_control(self, code: int, is_key_down: bool) -> None:
        name = PYNPUT_MEDIA_KEYS.get(code)
        if name is None or not hasattr(keyboard.Key, name):
            raise EventSynthesisError(f"System control {code} is not supported on this platform")
        key = getattr(keyboard.Key, name)
        if is_key_down:
            self.controller.press(key)
        else:
            self.controller.release(key)


class DryRunEventPoster:
    """Records events instead of posting them."""

    def __init__(self) -> None:
        self.posted: List[Tuple[str, int, int, bool]] = []

    def post_key(self, key_code: int, modifier_mask: int, is_key_down: bool) -> None:
        self.posted.append(("key", key_code, int(modifier_mask), is_key_down))
        log.info("[dry-run] key %d mods=0x%x %s", key_code, int(modifier_mask), "down" if is_key_down else "up")

    def post_system_control(self, code: int, is_key_down: bool) -> None:
        self.posted.append(("system", code, 0, is_key_down))
        log.info("[dry-run] system control %d %s", code, "down" if is_key_down else "up")


def create_event_poster(dry_run: bool = False, platform_name: Optional[str] = None) -> EventPoster:
    """Pick the event backend for this host."""
    if dry_run:
        return DryRunEventPoster()
    if (platform_name or PLATFORM) == "darwin":
        return QuartzEventPoster()
    return PynputEventPoster()
