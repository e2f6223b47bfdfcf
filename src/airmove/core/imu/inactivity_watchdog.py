"""
Wake Me: inactivity watchdog over the orientation stream.

The watchdog shares only the raw samples with the gesture recognizer. It
keeps its own previous sample, its own activity threshold and its own
timestamp of the last meaningful head movement. A 1 Hz tick (driven by the
motion pipeline) compares that timestamp against the configured timeout.

States:
- armed: counting down from the last activity
- alarming: timeout elapsed; alarm_active stays True until reset()

After each alarm the countdown re-arms immediately, so continued stillness
raises another alarm one full timeout later, never continuously.

Activity model:
    activity_threshold(s) = 0.10 - 0.09 * s
    s = 0.0 -> 0.10 rad per sample, s = 1.0 -> 0.01 rad per sample

Usage:
    watchdog = InactivityWatchdog(lambda: table.wake_me)
    watchdog.start(now=time.monotonic())
    watchdog.on_sample(sample)
    if watchdog.on_tick(time.monotonic()):
        dispatcher.dispatch_alarm()
"""

import logging
import threading
import time
from typing import Callable, Optional

from airmove.core.imu.orientation_sample import OrientationSample
from airmove.utils.config import Config
from airmove.utils.config_sections import WakeMeConfig

log = logging.getLogger(__name__)


def activity_threshold(sensitivity: float) -> float:
    return Config.WATCHDOG_ACTIVITY_BASE - sensitivity * Config.WATCHDOG_ACTIVITY_SPAN


class InactivityWatchdog:
    """Raise an alarm after a configurable period without head movement."""

    def __init__(
        self,
        config_source: Callable[[], WakeMeConfig],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config_source = config_source
        self.clock = clock

        # Sample delivery and the ticker touch this from different threads
        self._lock = threading.Lock()
        self._last_activity_time: float = clock()
        self._previous: Optional[OrientationSample] = None
        self._alarm_active = False
        self.alarm_count = 0

    @property
    def last_activity_time(self) -> float:
        with self._lock:
            return self._last_activity_time

    @property
    def alarm_active(self) -> bool:
        with self._lock:
            return self._alarm_active

    @property
    def is_enabled(self) -> bool:
        return self.config_source().is_enabled

    def start(self, now: Optional[float] = None) -> None:
        """Arm with a fresh countdown (listening start or re-enable)."""
        with self._lock:
            self._last_activity_time = self.clock() if now is None else now
            self._previous = None
            self._alarm_active = False

    def stop(self) -> None:
        with self._lock:
            self._previous = None
            self._alarm_active = False

    def reset(self, now: Optional[float] = None) -> None:
        """Acknowledge the alarm and restart the countdown."""
        with self._lock:
            self._last_activity_time = self.clock() if now is None else now
            self._alarm_active = False
        log.info("Wake-me alarm acknowledged")

    def on_sample(self, sample: OrientationSample) -> bool:
        """Record the sample; return True when it counted as activity."""
        threshold = activity_threshold(self.config_source().sensitivity)
        with self._lock:
            previous = self._previous
            self._previous = sample
            if previous is None:
                return False
            pitch_delta = abs(sample.pitch - previous.pitch)
            yaw_delta = abs(sample.yaw - previous.yaw)
            if pitch_delta > threshold or yaw_delta > threshold:
                self._last_activity_time = sample.timestamp
                return True
        return False

    def on_tick(self, now: float) -> bool:
        """Check the countdown; return True when an alarm fires on this tick."""
        config = self.config_source()
        if not config.is_enabled:
            return False
        with self._lock:
            idle = now - self._last_activity_time
            if idle < config.timeout:
                return False
            self._last_activity_time = now
            self._alarm_active = True
            self.alarm_count += 1
        log.warning("Wake-me alarm: no head movement for %.0f s", idle)
        return True
