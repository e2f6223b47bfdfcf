"""
One-shot capture of a key combination for custom shortcuts.

States:
- idle: no hook installed, key events pass through untouched
- capturing: the recorder owns the keyboard; every event reaching the hook is
  consumed, bare modifier presses only update the held-modifier mask, and the
  first non-modifier key-down completes the capture

The capture decision is made synchronously inside the hook callback (which
may run on the OS event thread). The captured shortcut is then handed to the
``on_recorded`` callback on a separate thread, so the hook returns before any
settings update or listener notification runs.

Only one capture session exists at a time: start_recording() while already
capturing is rejected.

Usage:
    recorder = ShortcutRecorder(PynputKeyboardHook(), on_recorded=save_shortcut)
    recorder.start_recording(GestureDirection.LEFT)
    # user presses Shift+A -> save_shortcut(LEFT, RecordedShortcut(0, SHIFT, "Shift+A"))
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from airmove.core.errors import InputHookError
from airmove.core.imu.orientation_sample import GestureDirection
from airmove.core.input.event_poster import PYNPUT_SPECIAL_KEYS, keyboard
from airmove.core.input.key_codes import (
    MODIFIER_KEY_CODES,
    Modifier,
    canonical_mask,
    format_shortcut,
    is_modifier_key,
    key_code_for_name,
)
from airmove.utils.config import PLATFORM
from airmove.utils.config_sections import RecordedShortcut

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyEvent:
    key_code: int
    modifiers: int = 0
    is_key_down: bool = True


# Returns True to consume the event, False to let it through
KeyHandler = Callable[[KeyEvent], bool]


class InputHook(Protocol):
    def install(self, handler: KeyHandler) -> None: ...

    def uninstall(self) -> None: ...


class ShortcutRecorder:
    """Capture the next non-modifier key press plus held modifiers."""

    def __init__(
        self,
        input_hook: InputHook,
        on_recorded: Callable[[GestureDirection, RecordedShortcut], None],
    ) -> None:
        self.input_hook = input_hook
        self.on_recorded = on_recorded

        self._lock = threading.Lock()
        self._direction: Optional[GestureDirection] = None
        self._held = Modifier.NONE
        self.last_captured: Optional[RecordedShortcut] = None
        # Captured, hook still installed: keep swallowing the trailing key-ups
        self._handing_off = False

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._direction is not None

    @property
    def recording_direction(self) -> Optional[GestureDirection]:
        with self._lock:
            return self._direction

    def start_recording(self, direction: GestureDirection) -> bool:
        with self._lock:
            if self._direction is not None:
                log.warning(
                    "Already recording for %s, rejecting %s",
                    self._direction.value, direction.value,
                )
                return False
            if self._handing_off:
                log.warning("Previous capture still releasing the keyboard, rejecting %s", direction.value)
                return False
            self._direction = direction
            self._held = Modifier.NONE

        try:
            self.input_hook.install(self.handle_key_event)
        except InputHookError as exc:
            log.error("Cannot record shortcut: %s", exc)
            with self._lock:
                self._direction = None
            return False
        log.info("Recording shortcut for %s", direction.value)
        return True

    def stop_recording(self) -> None:
        """Cancel capture; the previously saved shortcut stays in place."""
        with self._lock:
            was_recording = self._direction is not None
            self._direction = None
            self._held = Modifier.NONE
        if was_recording:
            self.input_hook.uninstall()
            log.info("Recording cancelled")

    def handle_key_event(self, event: KeyEvent) -> bool:
        with self._lock:
            if self._direction is None:
                return self._handing_off

            if is_modifier_key(event.key_code):
                flag = MODIFIER_KEY_CODES[event.key_code]
                if event.is_key_down:
                    self._held |= flag
                else:
                    self._held &= ~flag
                return True

            if not event.is_key_down:
                return True

            mask = canonical_mask(int(event.modifiers) | int(self._held))
            shortcut = RecordedShortcut(
                key_code=event.key_code,
                modifier_mask=int(mask),
                display_string=format_shortcut(event.key_code, mask),
            )
            direction = self._direction
            self._direction = None
            self._held = Modifier.NONE
            self.last_captured = shortcut
            self._handing_off = True

        threading.Thread(target=self._hand_off, args=(direction, shortcut), daemon=True).start()
        return True

    def _hand_off(self, direction: GestureDirection, shortcut: RecordedShortcut) -> None:
        self.input_hook.uninstall()
        with self._lock:
            self._handing_off = False
        log.info("Recorded %s for %s", shortcut.display_string, direction.value)
        self.on_recorded(direction, shortcut)


# pynput key names for bare modifiers -> macOS key codes
_PYNPUT_MODIFIER_CODES = {
    "cmd": 55, "cmd_l": 55, "cmd_r": 54,
    "shift": 56, "shift_l": 56, "shift_r": 60,
    "alt": 58, "alt_l": 58, "alt_r": 61, "alt_gr": 61,
    "ctrl": 59, "ctrl_l": 59, "ctrl_r": 62,
    "caps_lock": 57,
}
_PYNPUT_SPECIAL_CODES = {
    pynput_name: key_code_for_name(label) for label, pynput_name in PYNPUT_SPECIAL_KEYS.items()
}


def key_code_from_pynput(key) -> Optional[int]:
    """Translate a pynput key into a macOS virtual key code."""
    name = getattr(key, "name", None)
    if name is not None:
        if name in _PYNPUT_MODIFIER_CODES:
            return _PYNPUT_MODIFIER_CODES[name]
        return _PYNPUT_SPECIAL_CODES.get(name)
    char = getattr(key, "char", None)
    if char:
        return key_code_for_name(char)
    return getattr(key, "vk", None)


class PynputKeyboardHook:
    """Exclusive keyboard intercept built on a pynput listener.

    On macOS the listener's event tap filter returns None for consumed events.
    Elsewhere the listener suppresses all input while installed, which is the
    same contract since it only exists during a capture session.
    """

    def __init__(self, platform_name: Optional[str] = None) -> None:
        self.platform_name = platform_name or PLATFORM
        self.listener = None
        self._handler: Optional[KeyHandler] = None

    def install(self, handler: KeyHandler) -> None:
        if keyboard is None:
            raise InputHookError("pynput keyboard backend is not available")
        if self.listener is not None:
            raise InputHookError("keyboard hook already installed")
        self._handler = handler
        if self.platform_name == "darwin":
            self.listener = keyboard.Listener(darwin_intercept=self._darwin_intercept)
        else:
            self.listener = keyboard.Listener(
                on_press=lambda key: self._dispatch(key, True),
                on_release=lambda key: self._dispatch(key, False),
                suppress=True,
            )
        self.listener.start()

    def uninstall(self) -> None:
        listener, self.listener = self.listener, None
        self._handler = None
        if listener is not None:
            listener.stop()

    def _dispatch(self, key, is_key_down: bool) -> None:
        key_code = key_code_from_pynput(key)
        handler = self._handler
        if key_code is None or handler is None:
            return
        handler(KeyEvent(key_code=key_code, modifiers=0, is_key_down=is_key_down))

    def _darwin_intercept(self, event_type, event):
        import Quartz

        handler = self._handler
        if handler is None:
            return event
        key_code = Quartz.CGEventGetIntegerValueField(event, Quartz.kCGKeyboardEventKeycode)
        flags = Quartz.CGEventGetFlags(event)
        if event_type == Quartz.kCGEventFlagsChanged:
            flag = MODIFIER_KEY_CODES.get(key_code, Modifier.NONE)
            is_key_down = bool(flags & flag) if flag else True
        else:
            is_key_down = event_type == Quartz.kCGEventKeyDown
        consumed = handler(KeyEvent(key_code=key_code, modifiers=int(canonical_mask(flags)), is_key_down=is_key_down))
        return None if consumed else event
