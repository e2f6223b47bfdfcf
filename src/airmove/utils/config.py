"""
Centralized configuration for AirMove.

This module provides all configuration constants and runtime settings for:
- Gesture recognition (thresholds, global cooldown)
- Wake Me inactivity watchdog (activity thresholds, tick rate, timeout)
- Default per-direction action mapping
- Alarm sounds and fallback beep tone
- Synthetic sampler used in demo mode
- Settings storage and session logging locations

The Config class contains all constants as class attributes, making them
accessible throughout the application without instantiation.

Usage:
    from airmove.utils.config import Config

    cooldown = Config.GESTURE_COOLDOWN
    if Config.WAKE_ME_ENABLED:
        # Arm the watchdog at startup
"""

import logging
import os
import platform

log = logging.getLogger(__name__)


def detect_platform() -> str:
    """
    Detect which input-synthesis backend the host supports.

    Returns:
        str: "darwin" on macOS (Quartz events), "generic" elsewhere (pynput)
    """
    if platform.system() == "Darwin":
        return "darwin"
    return "generic"


PLATFORM = detect_platform()


class Config:
    """System configuration constants for AirMove."""

    # ==========================================================================
    # GESTURE RECOGNITION
    # ==========================================================================

    # threshold(s) = BASE - s * SPAN  ->  0.40 rad (s=0) .. 0.02 rad (s=1)
    GESTURE_THRESHOLD_BASE = 0.40
    GESTURE_THRESHOLD_SPAN = 0.38
    GESTURE_COOLDOWN = 1.0                  # Seconds, shared by all four directions
    DEFAULT_SENSITIVITY = 0.7

    # ==========================================================================
    # WAKE ME: Inactivity watchdog
    # ==========================================================================

    # activity(s) = BASE - s * SPAN  ->  0.10 rad (s=0) .. 0.01 rad (s=1)
    WATCHDOG_ACTIVITY_BASE = 0.10
    WATCHDOG_ACTIVITY_SPAN = 0.09
    WATCHDOG_TICK_INTERVAL = 1.0            # Seconds between watchdog ticks
    WAKE_ME_ENABLED = False
    WAKE_ME_SENSITIVITY = 0.7
    WAKE_ME_TIMEOUT = 300.0                 # 5 minutes of stillness
    WAKE_ME_SOUND = "Glass"

    # ==========================================================================
    # ACTION MAPPING: Defaults per direction
    # ==========================================================================

    DEFAULT_PRESETS = {
        "up": "volume_up",
        "down": "volume_down",
        "left": "previous_track",
        "right": "next_track",
    }

    # ==========================================================================
    # AUDIO: Alarm sounds
    # ==========================================================================

    SYSTEM_SOUND_DIRS = (
        "/System/Library/Sounds",
        "/usr/share/sounds/freedesktop/stereo",
    )
    SYSTEM_SOUND_EXTENSIONS = (".aiff", ".oga", ".wav")
    SOUND_PLAYER_COMMANDS = ("afplay", "paplay", "aplay")

    BEEP_FREQUENCY = 880                    # Hz, fallback when a sound cannot be resolved
    BEEP_DURATION = 0.25                    # Seconds per beep
    BEEP_GAP = 0.08
    BEEP_COUNT = 3
    BEEP_VOLUME = 0.7
    BEEP_SAMPLE_RATE = 44100

    # ==========================================================================
    # SENSOR: Synthetic sampler (demo mode)
    # ==========================================================================

    SAMPLER_RATE_HZ = 25                    # Headphone motion updates arrive at ~25 Hz
    PIPELINE_QUEUE_SIZE = 256
    PIPELINE_POLL_TIMEOUT = 0.25

    # ==========================================================================
    # INPUT: Hotkey and permissions
    # ==========================================================================

    TOGGLE_HOTKEY = "<ctrl>+<alt>+m"
    ACCESSIBILITY_SETTINGS_URL = (
        "x-apple.systempreferences:com.apple.preference.security?Privacy_Accessibility"
    )

    # ==========================================================================
    # STORAGE & LOGGING
    # ==========================================================================

    APP_NAME = "AirMove"
    SETTINGS_FILENAME = "settings.json"
    CONFIG_DIR_ENV = "AIRMOVE_CONFIG_DIR"
    LOG_DIR = os.environ.get("AIRMOVE_LOG_DIR", "logs")
