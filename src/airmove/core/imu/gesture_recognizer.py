"""
Head gesture recognition from successive orientation samples.

This module turns the per-sample change in pitch and yaw into at most one
discrete gesture per sample. Each direction has its own threshold derived
from a user-tunable sensitivity, and a single cooldown shared by all four
directions debounces the output.

Features:
- Thresholds re-read from the sensitivity source on every sample, so the user
  can retune while listening
- Fixed scan order: Up, Down (pitch) before Left, Right (yaw); the first
  crossing wins, so a diagonal motion registers as exactly one direction
- Global 1.0 s cooldown measured on sample timestamps
- First sample after a reset is the baseline and never fires

Threshold model:
    threshold(s) = 0.40 - 0.38 * s
    s = 0.0 -> 0.40 rad per sample (hardest)
    s = 1.0 -> 0.02 rad per sample (near hair-trigger)

Known limitation: yaw wrap-around at +/-pi is not unwrapped. A sample pair
straddling the discontinuity reads as an extreme delta; head-scale rotations
stay well inside the range.

Usage:
    recognizer = GestureRecognizer(settings.sensitivity)
    gesture = recognizer.on_sample(sample)
    if gesture is GestureDirection.UP:
        # Dispatch the action mapped to Up
"""

import logging
from typing import Callable, Optional

from airmove.core.imu.orientation_sample import GestureDirection, OrientationSample
from airmove.utils.config import Config

log = logging.getLogger(__name__)

SensitivitySource = Callable[[GestureDirection], float]


def sensitivity_to_threshold(sensitivity: float) -> float:
    """Per-sample delta (radians) a direction must exceed to fire."""
    return Config.GESTURE_THRESHOLD_BASE - sensitivity * Config.GESTURE_THRESHOLD_SPAN


class GestureRecognizer:
    """Detect Up/Down/Left/Right head gestures with a shared cooldown."""

    def __init__(
        self,
        sensitivity_for: SensitivitySource,
        cooldown: float = Config.GESTURE_COOLDOWN,
    ) -> None:
        self.sensitivity_for = sensitivity_for
        self.cooldown = cooldown

        self.previous_pitch: Optional[float] = None
        self.previous_yaw: Optional[float] = None
        self.cooldown_until: Optional[float] = None

    def threshold(self, direction: GestureDirection) -> float:
        return sensitivity_to_threshold(self.sensitivity_for(direction))

    def reset(self) -> None:
        """Forget the baseline and any pending cooldown (cold start)."""
        self.previous_pitch = None
        self.previous_yaw = None
        self.cooldown_until = None

    def in_cooldown(self, timestamp: float) -> bool:
        return self.cooldown_until is not None and timestamp < self.cooldown_until

    def on_sample(self, sample: OrientationSample) -> Optional[GestureDirection]:
        """Process one sample; return the gesture that fired, if any."""
        if self.previous_pitch is None or self.previous_yaw is None:
            self.previous_pitch = sample.pitch
            self.previous_yaw = sample.yaw
            return None

        pitch_delta = sample.pitch - self.previous_pitch
        yaw_delta = sample.yaw - self.previous_yaw

        candidate = self._candidate(pitch_delta, yaw_delta)
        fired = None
        if candidate is not None:
            if self.in_cooldown(sample.timestamp):
                log.debug(
                    "Suppressed %s (cooldown until %.3f, now %.3f)",
                    candidate.value, self.cooldown_until, sample.timestamp,
                )
            else:
                fired = candidate
                self.cooldown_until = sample.timestamp + self.cooldown
                log.info(
                    "Gesture %s (pitch_delta=%.3f, yaw_delta=%.3f)",
                    candidate.value, pitch_delta, yaw_delta,
                )

        self.previous_pitch = sample.pitch
        self.previous_yaw = sample.yaw
        return fired

    def _candidate(self, pitch_delta: float, yaw_delta: float) -> Optional[GestureDirection]:
        # Scan order is the tie-break: only the first crossing counts.
        if pitch_delta > self.threshold(GestureDirection.UP):
            return GestureDirection.UP
        if pitch_delta < -self.threshold(GestureDirection.DOWN):
            return GestureDirection.DOWN
        if yaw_delta > self.threshold(GestureDirection.LEFT):
            return GestureDirection.LEFT
        if yaw_delta < -self.threshold(GestureDirection.RIGHT):
            return GestureDirection.RIGHT
        return None
