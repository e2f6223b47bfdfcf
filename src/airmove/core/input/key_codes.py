"""
Key codes, modifier masks and preset actions.

Key codes are macOS virtual key codes on every platform; the pynput backend
translates to and from them so recorded shortcuts stay portable. Modifier
masks use the device-independent macOS flag bits, and display strings always
list modifiers in the order Control, Option, Shift, Command.

System-control codes are the NX_KEYTYPE values macOS uses for media and
display keys (posted as system-defined events, not ordinary key events).
"""

from dataclasses import dataclass
from enum import IntFlag
from typing import Dict, Iterable, Optional, Union

from airmove.utils.config_sections import PresetAction


class Modifier(IntFlag):
    NONE = 0
    SHIFT = 1 << 17
    CONTROL = 1 << 18
    OPTION = 1 << 19
    COMMAND = 1 << 20


CANONICAL_MODIFIER_ORDER = (Modifier.CONTROL, Modifier.OPTION, Modifier.SHIFT, Modifier.COMMAND)
MODIFIER_NAMES = {
    Modifier.CONTROL: "Control",
    Modifier.OPTION: "Option",
    Modifier.SHIFT: "Shift",
    Modifier.COMMAND: "Command",
}
ALL_MODIFIERS = Modifier.CONTROL | Modifier.OPTION | Modifier.SHIFT | Modifier.COMMAND

# Bare modifier keys: Command R/L, Shift, Caps Lock, Option, Control,
# Shift R, Option R, Control R, Function.
MODIFIER_KEY_CODES: Dict[int, Modifier] = {
    54: Modifier.COMMAND,
    55: Modifier.COMMAND,
    56: Modifier.SHIFT,
    57: Modifier.NONE,
    58: Modifier.OPTION,
    59: Modifier.CONTROL,
    60: Modifier.SHIFT,
    61: Modifier.OPTION,
    62: Modifier.CONTROL,
    63: Modifier.NONE,
}

KEY_NAMES: Dict[int, str] = {
    0: "A", 1: "S", 2: "D", 3: "F", 4: "H", 5: "G", 6: "Z", 7: "X", 8: "C", 9: "V",
    11: "B", 12: "Q", 13: "W", 14: "E", 15: "R", 16: "Y", 17: "T", 31: "O", 32: "U",
    34: "I", 35: "P", 37: "L", 38: "J", 40: "K", 45: "N", 46: "M",
    18: "1", 19: "2", 20: "3", 21: "4", 22: "6", 23: "5", 25: "9", 26: "7", 28: "8", 29: "0",
    27: "-", 24: "=", 30: "]", 33: "[", 39: "'", 41: ";", 42: "\\", 43: ",", 44: "/",
    47: ".", 50: "`",
    36: "Return", 48: "Tab", 49: "Space", 51: "Delete", 53: "Escape",
    123: "Left", 124: "Right", 125: "Down", 126: "Up",
    122: "F1", 120: "F2", 99: "F3", 118: "F4", 96: "F5", 97: "F6",
    98: "F7", 100: "F8", 101: "F9", 109: "F10", 103: "F11", 111: "F12",
    115: "Home", 119: "End", 116: "PageUp", 121: "PageDown", 117: "ForwardDelete",
}

# Reverse lookup for backends that report characters instead of key codes
KEY_CODES_BY_NAME: Dict[str, int] = {name.lower(): code for code, name in KEY_NAMES.items()}


def is_modifier_key(key_code: int) -> bool:
    return key_code in MODIFIER_KEY_CODES


def canonical_mask(mask: int) -> Modifier:
    """Keep only the Control/Option/Shift/Command bits."""
    return Modifier(int(mask) & int(ALL_MODIFIERS))


def modifiers_in_order(mask: int) -> Iterable[Modifier]:
    canonical = canonical_mask(mask)
    return [modifier for modifier in CANONICAL_MODIFIER_ORDER if modifier & canonical]


def key_name(key_code: int) -> str:
    return KEY_NAMES.get(key_code, f"Key {key_code}")


def key_code_for_name(name: str) -> Optional[int]:
    return KEY_CODES_BY_NAME.get(name.lower())


def format_shortcut(key_code: int, modifier_mask: int) -> str:
    parts = [MODIFIER_NAMES[modifier] for modifier in modifiers_in_order(modifier_mask)]
    parts.append(key_name(key_code))
    return "+".join(parts)


# NX_KEYTYPE_* values from IOKit/hidsystem/ev_keymap.h
class SystemControl:
    SOUND_UP = 0
    SOUND_DOWN = 1
    BRIGHTNESS_UP = 2
    BRIGHTNESS_DOWN = 3
    MUTE = 7
    PLAY = 16
    NEXT = 17
    PREVIOUS = 18


@dataclass(frozen=True)
class SystemControlAction:
    code: int


@dataclass(frozen=True)
class KeyComboAction:
    key_code: int
    modifier_mask: int


PresetTarget = Union[SystemControlAction, KeyComboAction]

_DIGIT_KEY_CODES = (18, 19, 20, 21, 23, 22, 26, 28)  # "1".."8"

PRESET_ACTIONS: Dict[PresetAction, PresetTarget] = {
    PresetAction.VOLUME_UP: SystemControlAction(SystemControl.SOUND_UP),
    PresetAction.VOLUME_DOWN: SystemControlAction(SystemControl.SOUND_DOWN),
    PresetAction.MUTE: SystemControlAction(SystemControl.MUTE),
    PresetAction.BRIGHTNESS_UP: SystemControlAction(SystemControl.BRIGHTNESS_UP),
    PresetAction.BRIGHTNESS_DOWN: SystemControlAction(SystemControl.BRIGHTNESS_DOWN),
    PresetAction.PLAY_PAUSE: SystemControlAction(SystemControl.PLAY),
    PresetAction.NEXT_TRACK: SystemControlAction(SystemControl.NEXT),
    PresetAction.PREVIOUS_TRACK: SystemControlAction(SystemControl.PREVIOUS),
    PresetAction.QUIT_APP: KeyComboAction(12, int(Modifier.COMMAND)),
}
PRESET_ACTIONS.update(
    {
        PresetAction(f"desktop_{index}"): KeyComboAction(key_code, int(Modifier.CONTROL))
        for index, key_code in enumerate(_DIGIT_KEY_CODES, start=1)
    }
)


def preset_target(preset: PresetAction) -> PresetTarget:
    return PRESET_ACTIONS[preset]
